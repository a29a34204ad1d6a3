"""Logging configuration helpers."""

from __future__ import annotations

import logging
import sys

_ANNOTATION_COMMANDS = {
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}


def _escape_annotation(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class ActionsAnnotationHandler(logging.Handler):
    """Re-emits warnings and errors as workflow commands so they show up as run annotations."""

    def __init__(self, stream=None) -> None:
        super().__init__(level=logging.WARNING)
        self.stream = stream if stream is not None else sys.stdout

    def emit(self, record: logging.LogRecord) -> None:
        command = _ANNOTATION_COMMANDS.get(record.levelno)
        if command is None:
            return
        try:
            self.stream.write(f"::{command}::{_escape_annotation(record.getMessage())}\n")
            self.stream.flush()
        except Exception:
            self.handleError(record)


def configure_logging(level: str = "INFO", github_actions: bool = False) -> None:
    normalized = level.upper()
    logging.basicConfig(
        level=getattr(logging, normalized, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    if github_actions:
        root = logging.getLogger()
        if not any(isinstance(handler, ActionsAnnotationHandler) for handler in root.handlers):
            root.addHandler(ActionsAnnotationHandler())
