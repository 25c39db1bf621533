"""
Dispatch service state management for API integration.

Provides singleton access to the DispatchService instance.
Initialized during FastAPI lifespan.

Usage:
    from ._service_state import get_dispatch_service, init_dispatch_service

    # In lifespan:
    init_dispatch_service(settings)

    # In routers:
    service = get_dispatch_service()
"""

from typing import Optional

from jetstream.config import Settings
from jetstream.engine.service import DispatchService
from jetstream.infra.appsflyer import AppsFlyerTransport
from jetstream.infra.telegram import TelegramNotifier


# Global dispatch service instance
_dispatch_service: Optional[DispatchService] = None


def init_dispatch_service(settings: Settings) -> DispatchService:
    """
    Initialize the dispatch service singleton.

    Called during FastAPI lifespan startup. Reporting loops are started by
    the caller.
    """
    global _dispatch_service

    if _dispatch_service is not None:
        return _dispatch_service

    _dispatch_service = DispatchService.create(
        transport=AppsFlyerTransport(timeout=settings.delivery_timeout_seconds),
        notifier=TelegramNotifier(
            bot_token=settings.telegram_bot_token,
            chat_id=settings.telegram_chat_id,
        ),
    )

    return _dispatch_service


def set_dispatch_service(service: Optional[DispatchService]) -> None:
    """Replace the singleton (used by tests)."""
    global _dispatch_service
    _dispatch_service = service


def get_dispatch_service() -> DispatchService:
    """
    Get the dispatch service singleton.

    Raises:
        RuntimeError: If dispatch service not initialized
    """
    if _dispatch_service is None:
        raise RuntimeError(
            "Dispatch service not initialized. "
            "Ensure init_dispatch_service() is called during startup."
        )

    return _dispatch_service


def shutdown_dispatch_service() -> None:
    """
    Shutdown the dispatch service.

    Called during FastAPI lifespan shutdown. Cancels reporting loops and
    job tasks; in-memory job state is lost with the process.
    """
    global _dispatch_service

    if _dispatch_service is not None:
        _dispatch_service.shutdown()
        transport = _dispatch_service.dispatcher.transport
        if isinstance(transport, AppsFlyerTransport):
            transport.close()
        _dispatch_service = None
