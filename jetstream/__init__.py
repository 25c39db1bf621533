"""
JetStream - paced event dispatch service.

Spreads a batch of install/event records across a time window and delivers
them one by one to the AppsFlyer in-app-event API.
"""

__version__ = "1.2.0"
