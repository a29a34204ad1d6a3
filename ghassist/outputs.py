"""Step outputs and exported variables for the surrounding workflow."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

from ghassist.config import RunEnvironment

logger = logging.getLogger(__name__)


def _format_entry(name: str, value: str) -> str:
    if "\n" in value or "\r" in value:
        delimiter = f"ghadelimiter_{uuid.uuid4().hex}"
        return f"{name}<<{delimiter}\n{value}\n{delimiter}\n"
    return f"{name}={value}\n"


class ActionOutputs:
    """Writes to ``GITHUB_OUTPUT`` and ``GITHUB_ENV`` and keeps an in-memory copy of every value."""

    def __init__(self, output_path: str | Path | None = None, env_path: str | Path | None = None) -> None:
        self.output_path = Path(output_path) if output_path else None
        self.env_path = Path(env_path) if env_path else None
        self.outputs: dict[str, str] = {}
        self.exported: dict[str, str] = {}

    @classmethod
    def from_run_environment(cls, run_env: RunEnvironment) -> ActionOutputs:
        return cls(output_path=run_env.output_path, env_path=run_env.env_path)

    def set_output(self, name: str, value: str | int | bool | None) -> None:
        text = self._stringify(value)
        self.outputs[name] = text
        if self.output_path is not None:
            with self.output_path.open("a", encoding="utf-8") as handle:
                handle.write(_format_entry(name, text))

    def export_variable(self, name: str, value: str | int | bool | None) -> None:
        text = self._stringify(value)
        self.exported[name] = text
        if self.env_path is not None:
            with self.env_path.open("a", encoding="utf-8") as handle:
                handle.write(_format_entry(name, text))

    @staticmethod
    def _stringify(value: str | int | bool | None) -> str:
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)
