import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Receives user-facing success/failure events from the export pipeline."""

    def success(self, title: str, message: str) -> None: ...

    def failure(self, title: str, message: str) -> None: ...


class LoggingNotifier:
    def success(self, title: str, message: str) -> None:
        logger.info("%s: %s", title, message)

    def failure(self, title: str, message: str) -> None:
        logger.warning("%s: %s", title, message)

