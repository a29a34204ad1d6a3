"""Trigger condition detection for issue and pull request events."""

from __future__ import annotations

import logging
import re

from ghassist.models import (
    EntityContext,
    IssueCommentPayload,
    IssuesPayload,
    PullRequestPayload,
    PullRequestReviewCommentPayload,
    PullRequestReviewPayload,
)
from ghassist.sanitizer import sanitize_content

logger = logging.getLogger(__name__)

_REVIEW_TRIGGER_ACTIONS = {"submitted", "edited"}


def _trigger_regex(trigger_phrase: str) -> re.Pattern[str]:
    return re.compile(rf"(^|\s){re.escape(trigger_phrase)}([\s.,!?;:]|$)", re.IGNORECASE)


def contains_trigger_phrase(text: str | None, trigger_phrase: str) -> bool:
    """Phrase match on the sanitized text, bounded by whitespace or punctuation."""
    if not trigger_phrase:
        return False
    return bool(_trigger_regex(trigger_phrase).search(sanitize_content(text)))


def check_contains_trigger(context: EntityContext) -> bool:
    """True when any configured trigger condition holds for this event.

    Conditions are OR-ed: an explicit prompt, a matching assignee on
    ``issues.assigned``, a matching label on ``issues.labeled``, or the trigger
    phrase in the sanitized issue/PR/review/comment text.
    """
    inputs = context.inputs
    payload = context.payload
    phrase = inputs.trigger_phrase

    if inputs.prompt:
        logger.info("Explicit prompt provided, triggering")
        return True

    if isinstance(payload, IssuesPayload):
        if context.event_action == "assigned":
            trigger_user = inputs.assignee_trigger.lstrip("@")
            assignee = payload.assignee.login if payload.assignee else ""
            if trigger_user and assignee == trigger_user:
                logger.info("Issue assigned to trigger user '%s'", trigger_user)
                return True

        if context.event_action == "labeled":
            label = payload.label.name if payload.label else ""
            if inputs.label_trigger and label == inputs.label_trigger:
                logger.info("Issue labeled with trigger label '%s'", label)
                return True

        if context.event_action == "opened":
            if contains_trigger_phrase(payload.issue.body, phrase) or contains_trigger_phrase(payload.issue.title, phrase):
                logger.info("Issue body or title contains trigger phrase '%s'", phrase)
                return True

    if isinstance(payload, PullRequestPayload):
        pull = payload.pull_request
        if contains_trigger_phrase(pull.body, phrase) or contains_trigger_phrase(pull.title, phrase):
            logger.info("Pull request body or title contains trigger phrase '%s'", phrase)
            return True

    if isinstance(payload, PullRequestReviewPayload) and context.event_action in _REVIEW_TRIGGER_ACTIONS:
        if contains_trigger_phrase(payload.review.body, phrase):
            logger.info("Pull request review contains trigger phrase '%s'", phrase)
            return True

    if isinstance(payload, IssueCommentPayload | PullRequestReviewCommentPayload):
        if contains_trigger_phrase(payload.comment.body, phrase):
            logger.info("Comment contains trigger phrase '%s'", phrase)
            return True

    logger.info("No trigger was met for %s", phrase)
    return False
