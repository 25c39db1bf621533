"""
Runtime configuration loaded from the environment (and .env).
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv


DEFAULT_PORT = 3000
DEFAULT_LOG_LIMIT = 200
DEFAULT_DELIVERY_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class Settings:
    """Service settings. Secrets are excluded from repr."""

    port: int = DEFAULT_PORT
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""
    log_level: str = "INFO"
    log_dir: str = "logs"
    delivery_timeout_seconds: float = DEFAULT_DELIVERY_TIMEOUT_SECONDS

    def __repr__(self) -> str:
        return (
            f"Settings(port={self.port}, telegram_configured={self.telegram_configured}, "
            f"log_level={self.log_level!r}, log_dir={self.log_dir!r}, "
            f"delivery_timeout_seconds={self.delivery_timeout_seconds})"
        )

    @property
    def telegram_configured(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)


def load_settings(load_env_file: bool = True) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        load_env_file: Read .env into the environment first
    """
    if load_env_file:
        load_dotenv()

    return Settings(
        port=int(os.getenv("PORT", str(DEFAULT_PORT))),
        telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        telegram_chat_id=os.getenv("TELEGRAM_CHAT_ID", ""),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_dir=os.getenv("LOG_DIR", "logs"),
        delivery_timeout_seconds=float(
            os.getenv("DELIVERY_TIMEOUT_SECONDS", str(DEFAULT_DELIVERY_TIMEOUT_SECONDS))
        ),
    )
