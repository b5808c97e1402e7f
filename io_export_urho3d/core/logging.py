import logging
from typing import List, Tuple


class ExportLogger:
    """Collects log messages during export for UI display."""

    def __init__(self, max_messages: int = 500):
        self.max_messages = max_messages
        self._messages: List[Tuple[str, str]] = []  # (level, message)
        self._logger = logging.getLogger("io_export_urho3d")

    def debug(self, msg: str) -> None:
        # Debug output goes to the console only, never to the report dialog
        self._logger.debug(msg)

    def info(self, msg: str) -> None:
        self._log("INFO", msg)

    def warning(self, msg: str) -> None:
        self._log("WARNING", msg)

    def error(self, msg: str) -> None:
        self._log("ERROR", msg)

    def _log(self, level: str, msg: str) -> None:
        if len(self._messages) < self.max_messages:
            self._messages.append((level, msg))
        self._logger.log(getattr(logging, level), msg)

    @property
    def messages(self) -> List[Tuple[str, str]]:
        return self._messages

    def by_level(self, *levels: str) -> List[str]:
        return [msg for lvl, msg in self._messages if lvl in levels]

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    @property
    def error_count(self) -> int:
        return sum(1 for lvl, _ in self._messages if lvl == "ERROR")

    @property
    def warning_count(self) -> int:
        return sum(1 for lvl, _ in self._messages if lvl == "WARNING")

    def clear(self) -> None:
        self._messages.clear()
