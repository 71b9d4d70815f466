"""
Notifier protocol and the log-only fallback.
"""

from typing import Protocol, runtime_checkable

import structlog


logger = structlog.get_logger(__name__)


@runtime_checkable
class Notifier(Protocol):
    """Delivers a message. Raises NotificationError on failure."""

    async def send(self, message: str, formatted_message: str) -> None: ...

    async def close(self) -> None: ...


class LoggingNotifier:
    """Writes reports to the log when no chat is configured."""

    def __init__(self):
        self.logger = logger.bind(service="logging_notifier")

    async def send(self, message: str, formatted_message: str) -> None:
        self.logger.info("📝 Report", report=message)

    async def close(self) -> None:
        pass
