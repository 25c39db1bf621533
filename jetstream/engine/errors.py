"""
Dispatch engine exceptions.

Not-found and conflict outcomes of stop/delete are return values, not
exceptions. Only failures crossing a transport boundary are raised.
"""

from typing import Optional


class EngineError(Exception):
    """Base exception for all dispatch engine errors."""
    pass


class DeliveryError(EngineError):
    """
    Raised by a delivery transport when a record was not accepted.

    Covers non-2xx responses, network failures and timeouts. The
    Dispatcher counts the record as failed and moves on.
    """

    def __init__(self, status_code: Optional[int], body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Delivery failed: status={status_code if status_code is not None else 'n/a'} body={body}")
