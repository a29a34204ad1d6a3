"""Execution modes and their selection."""

from .base import Mode, ModeOptions
from .detector import detect_mode, get_mode_description
from .registry import AGENT_MODE, TAG_MODE, get_mode

__all__ = ["Mode", "ModeOptions", "detect_mode", "get_mode_description", "get_mode", "TAG_MODE", "AGENT_MODE"]
