"""Logging facade that never lets user-identifying data reach the output."""

from __future__ import annotations

import logging
from typing import Any

from sync_app.logging_config import get_logger, log_event
from sync_app.redaction import sanitize


class SecureLogger:
    """Sanitising wrapper shared by the loader, validator and database sync.

    Messages may use ``%``-style placeholders; the message is rendered with its
    arguments first and the full text is sanitised afterwards, so a sensitive
    value is redacted whether it arrives in the template or in an argument.
    Keyword fields become structured extras and are scrubbed recursively.
    """

    def __init__(self, name: str = "wardrobe_sync") -> None:
        self.name = name
        self._logger = get_logger(name)

    @staticmethod
    def sanitize(value: Any) -> str:
        return sanitize(value)

    def _render(self, message: Any, args: tuple) -> str:
        text = message if isinstance(message, str) else sanitize(message)
        if args:
            try:
                text = text % args
            except (TypeError, ValueError):
                text = " ".join([text, *(sanitize(arg) for arg in args)])
        return sanitize(text)

    def _emit(self, level: int, message: Any, args: tuple, fields: dict) -> None:
        if not self._logger.isEnabledFor(level):
            return
        rendered = self._render(message, args)
        event = fields.pop("event", None) or rendered
        log_event(self._logger, level, event, message=rendered, **fields)

    def debug(self, message: Any, *args: Any, **fields: Any) -> None:
        self._emit(logging.DEBUG, message, args, fields)

    def info(self, message: Any, *args: Any, **fields: Any) -> None:
        self._emit(logging.INFO, message, args, fields)

    def success(self, message: Any, *args: Any, **fields: Any) -> None:
        fields.setdefault("outcome", "success")
        self._emit(logging.INFO, message, args, fields)

    def warning(self, message: Any, *args: Any, **fields: Any) -> None:
        self._emit(logging.WARNING, message, args, fields)

    warn = warning

    def error(self, message: Any, *args: Any, **fields: Any) -> None:
        self._emit(logging.ERROR, message, args, fields)


__all__ = ["SecureLogger"]
