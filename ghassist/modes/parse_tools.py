"""Extraction of the allowed-tools list from user supplied CLI arguments."""

from __future__ import annotations

import re

_ALLOWED_TOOLS_PATTERNS = (
    re.compile(r'--(?:allowedTools|allowed-tools)\s+"([^"]+)"'),
    re.compile(r"--(?:allowedTools|allowed-tools)\s+'([^']+)'"),
    re.compile(r"--(?:allowedTools|allowed-tools)\s+(\S+)"),
)


def parse_allowed_tools(claude_args: str) -> list[str]:
    for pattern in _ALLOWED_TOOLS_PATTERNS:
        match = pattern.search(claude_args)
        if match and match.group(1):
            value = match.group(1)
            # the flag was given without a value
            if value.startswith("--"):
                return []
            return [tool.strip() for tool in value.split(",")]
    return []
