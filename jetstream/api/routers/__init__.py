"""
API Routers package.
"""

from . import jobs, logs

__all__ = ["jobs", "logs"]
