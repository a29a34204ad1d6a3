"""Mode lookup."""

from __future__ import annotations

import logging
from typing import assert_never

from ghassist.models import AutomationContext, EntityContext, ModeName
from ghassist.modes.agent import AgentMode
from ghassist.modes.base import Mode
from ghassist.modes.detector import detect_mode
from ghassist.modes.tag import TagMode

logger = logging.getLogger(__name__)

TAG_MODE = TagMode()
AGENT_MODE = AgentMode()

VALID_MODES = tuple(mode.value for mode in ModeName)


def mode_for_name(name: ModeName) -> Mode:
    if name == ModeName.TAG:
        return TAG_MODE
    elif name == ModeName.AGENT:
        return AGENT_MODE
    else:
        assert_never(name)


def get_mode(context: EntityContext | AutomationContext) -> Mode:
    name = detect_mode(context)
    logger.info("Auto-detected mode: %s for event: %s", name.value, context.event_name.value)
    return mode_for_name(name)


def is_valid_mode(name: str) -> bool:
    return name in VALID_MODES
