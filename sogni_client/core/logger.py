import logging
from collections import deque
from typing import Callable, Dict, List, Optional

PACKAGE_LOGGER = "sogni_client"


class LogStreamManager:
    def __init__(self, maxlen: int = 2000):
        # Buffer last N lines
        self.buffer: deque = deque(maxlen=maxlen)
        self.subscribers: List[Callable[[Dict[str, str]], None]] = []

    def add_log(self, message: str, level: str = "INFO"):
        """Adds a log message to the buffer and broadcasts it."""
        entry = {
            "message": message,
            "level": level,
        }
        self.buffer.append(entry)

        for callback in list(self.subscribers):
            try:
                callback(entry)
            except Exception:
                # A broken subscriber is dropped, the buffer keeps the entry
                self.subscribers.remove(callback)

    def subscribe(self, callback: Callable[[Dict[str, str]], None]) -> Callable[[], None]:
        self.subscribers.append(callback)

        def unsubscribe():
            if callback in self.subscribers:
                self.subscribers.remove(callback)

        return unsubscribe

    def recent(self, limit: Optional[int] = None) -> List[Dict[str, str]]:
        entries = list(self.buffer)
        if limit is not None:
            entries = entries[-limit:]
        return entries


class ListLogHandler(logging.Handler):
    """Custom logging handler to push logs into LogStreamManager."""

    def __init__(self, manager: LogStreamManager, level: int = logging.NOTSET):
        super().__init__(level)
        self.manager = manager

    def emit(self, record):
        try:
            msg = self.format(record)
            self.manager.add_log(msg, record.levelname)
        except Exception:
            self.handleError(record)


def setup_logging(level: str = "WARNING", manager: Optional[LogStreamManager] = None) -> LogStreamManager:
    """
    Attach a buffered handler to the package logger

    Calling it again replaces the previous buffered handler.
    """
    manager = manager or LogStreamManager()
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level.upper())

    for handler in list(package_logger.handlers):
        if isinstance(handler, ListLogHandler):
            package_logger.removeHandler(handler)

    handler = ListLogHandler(manager)
    handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    package_logger.addHandler(handler)
    return manager
