"""
HTTP surface of the dispatch engine (FastAPI).
"""
