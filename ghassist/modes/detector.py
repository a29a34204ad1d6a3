"""Selection of the handler mode for a normalized context."""

from __future__ import annotations

import logging
from typing import assert_never

from ghassist.constants import COMMENT_EVENT_NAMES, PR_LIFECYCLE_ACTIONS, TRACK_PROGRESS_EVENTS
from ghassist.context import is_issues_event, is_pull_request_event
from ghassist.errors import ConfigurationError
from ghassist.models import AutomationContext, EntityContext, ModeName
from ghassist.validation.trigger import check_contains_trigger

logger = logging.getLogger(__name__)


def validate_track_progress_event(context: EntityContext | AutomationContext) -> None:
    event_name = context.event_name.value
    if event_name not in TRACK_PROGRESS_EVENTS:
        raise ConfigurationError(
            f"track_progress is only supported for events: {', '.join(TRACK_PROGRESS_EVENTS)}. "
            f"Current event: {event_name}"
        )
    if is_pull_request_event(context) and context.event_action and context.event_action not in PR_LIFECYCLE_ACTIONS:
        raise ConfigurationError(
            f"track_progress for pull_request events is only supported for actions: "
            f"{', '.join(PR_LIFECYCLE_ACTIONS)}. Current action: {context.event_action}"
        )


def detect_mode(context: EntityContext | AutomationContext) -> ModeName:
    """Pick ``tag`` or ``agent``; the first matching rule wins and ``agent`` is the inert default."""
    inputs = context.inputs
    if inputs.track_progress:
        validate_track_progress_event(context)
        if isinstance(context, EntityContext) and context.event_name.value in TRACK_PROGRESS_EVENTS:
            return ModeName.TAG

    if not isinstance(context, EntityContext):
        return ModeName.AGENT

    if context.event_name.value in COMMENT_EVENT_NAMES or is_issues_event(context):
        if inputs.prompt:
            return ModeName.AGENT
        if check_contains_trigger(context):
            return ModeName.TAG

    if is_pull_request_event(context) and context.event_action in PR_LIFECYCLE_ACTIONS and inputs.prompt:
        return ModeName.AGENT

    return ModeName.AGENT


def get_mode_description(mode: ModeName) -> str:
    if mode == ModeName.TAG:
        return "Interactive mode triggered by @claude mentions"
    elif mode == ModeName.AGENT:
        return "Direct automation mode for explicit prompts"
    else:
        assert_never(mode)


def should_use_tracking_comment(mode: ModeName) -> bool:
    return mode == ModeName.TAG


def get_default_prompt_for_mode(mode: ModeName, context: EntityContext | AutomationContext) -> str | None:
    if mode == ModeName.TAG:
        return None
    elif mode == ModeName.AGENT:
        return context.inputs.prompt or None
    else:
        assert_never(mode)
