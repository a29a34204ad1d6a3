"""Normalization of raw GitHub event payloads into a typed run context."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ghassist.config import ActionInputs, RunEnvironment
from ghassist.constants import AUTOMATION_EVENT_NAMES, ENTITY_EVENT_NAMES, EVENT_NAME_ALIASES
from ghassist.errors import ConfigurationError, UnsupportedEventError
from ghassist.models import (
    AutomationContext,
    EntityContext,
    EventName,
    IssueCommentPayload,
    IssuesPayload,
    PullRequestPayload,
    PullRequestReviewCommentPayload,
    PullRequestReviewPayload,
    Repository,
    RepositoryDispatchPayload,
    SchedulePayload,
    WorkflowDispatchPayload,
    WorkflowRunPayload,
)

logger = logging.getLogger(__name__)

_AUTOMATION_PAYLOADS = {
    "workflow_dispatch": WorkflowDispatchPayload,
    "repository_dispatch": RepositoryDispatchPayload,
    "schedule": SchedulePayload,
    "workflow_run": WorkflowRunPayload,
}


def normalize_event_name(event_name: str) -> str:
    return EVENT_NAME_ALIASES.get(event_name, event_name)


def parse_repository(full_name: str) -> Repository:
    owner, _, repo = full_name.partition("/")
    if not owner or not repo or "/" in repo:
        raise ConfigurationError(f"Invalid repository format: '{full_name}'. Expected 'owner/repo'.")
    return Repository(owner=owner, repo=repo, full_name=f"{owner}/{repo}")


def parse_github_context(
    event_name: str,
    payload: dict[str, Any],
    *,
    run_id: str,
    actor: str,
    repository: Repository,
    inputs: ActionInputs,
) -> EntityContext | AutomationContext:
    """Build exactly one context variant for the event, or raise for unknown events and malformed payloads."""
    common = {
        "run_id": run_id,
        "event_action": payload.get("action"),
        "repository": repository,
        "actor": actor,
        "inputs": inputs,
    }
    try:
        return _build_context(normalize_event_name(event_name), payload, common)
    except ValidationError as exc:
        raise ConfigurationError(f"Malformed {event_name} event payload: {exc}") from exc


def _build_context(
    normalized: str, payload: dict[str, Any], common: dict[str, Any]
) -> EntityContext | AutomationContext:
    if normalized == "issues":
        issues = IssuesPayload.model_validate(payload)
        return EntityContext(
            **common,
            event_name=EventName.ISSUES,
            payload=issues,
            entity_number=issues.issue.number,
            is_pr=False,
        )
    if normalized == "issue_comment":
        issue_comment = IssueCommentPayload.model_validate(payload)
        return EntityContext(
            **common,
            event_name=EventName.ISSUE_COMMENT,
            payload=issue_comment,
            entity_number=issue_comment.issue.number,
            is_pr=bool(issue_comment.issue.pull_request),
        )
    if normalized == "pull_request":
        pull = PullRequestPayload.model_validate(payload)
        return EntityContext(
            **common,
            event_name=EventName.PULL_REQUEST,
            payload=pull,
            entity_number=pull.pull_request.number,
            is_pr=True,
        )
    if normalized == "pull_request_review":
        review = PullRequestReviewPayload.model_validate(payload)
        return EntityContext(
            **common,
            event_name=EventName.PULL_REQUEST_REVIEW,
            payload=review,
            entity_number=review.pull_request.number,
            is_pr=True,
        )
    if normalized == "pull_request_review_comment":
        review_comment = PullRequestReviewCommentPayload.model_validate(payload)
        return EntityContext(
            **common,
            event_name=EventName.PULL_REQUEST_REVIEW_COMMENT,
            payload=review_comment,
            entity_number=review_comment.pull_request.number,
            is_pr=True,
        )
    if normalized in _AUTOMATION_PAYLOADS:
        return AutomationContext(
            **common,
            event_name=EventName(normalized),
            payload=_AUTOMATION_PAYLOADS[normalized].model_validate(payload),
        )

    raise UnsupportedEventError(normalized)


def load_event_payload(event_path: str | Path) -> dict[str, Any]:
    path = Path(event_path)
    if not path.exists():
        raise ConfigurationError(f"GitHub event payload not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"GitHub event payload at {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"GitHub event payload at {path} must be a JSON object")
    return data


def context_from_environment(run_env: RunEnvironment, inputs: ActionInputs) -> EntityContext | AutomationContext:
    if not run_env.event_name:
        raise ConfigurationError("GITHUB_EVENT_NAME is not set")
    if not run_env.event_path:
        raise ConfigurationError("GITHUB_EVENT_PATH is not set")

    payload = load_event_payload(run_env.event_path)
    full_name = run_env.repository or (payload.get("repository") or {}).get("full_name")
    if not full_name:
        raise ConfigurationError("Unable to determine repository: GITHUB_REPOSITORY is not set and payload has no repository")

    actor = run_env.actor or (payload.get("sender") or {}).get("login", "")
    context = parse_github_context(
        run_env.event_name,
        payload,
        run_id=run_env.run_id,
        actor=actor,
        repository=parse_repository(full_name),
        inputs=inputs,
    )
    logger.info("Parsed %s context for event=%s action=%s", context.kind, context.event_name.value, context.event_action)
    return context


def is_entity_context(context: EntityContext | AutomationContext) -> bool:
    return isinstance(context, EntityContext) and context.event_name.value in ENTITY_EVENT_NAMES


def is_automation_context(context: EntityContext | AutomationContext) -> bool:
    return isinstance(context, AutomationContext) and context.event_name.value in AUTOMATION_EVENT_NAMES


def is_issues_event(context: EntityContext | AutomationContext) -> bool:
    return context.event_name == EventName.ISSUES


def is_issue_comment_event(context: EntityContext | AutomationContext) -> bool:
    return context.event_name == EventName.ISSUE_COMMENT


def is_pull_request_event(context: EntityContext | AutomationContext) -> bool:
    return context.event_name == EventName.PULL_REQUEST


def is_pull_request_review_event(context: EntityContext | AutomationContext) -> bool:
    return context.event_name == EventName.PULL_REQUEST_REVIEW


def is_pull_request_review_comment_event(context: EntityContext | AutomationContext) -> bool:
    return context.event_name == EventName.PULL_REQUEST_REVIEW_COMMENT


def is_issues_assigned_event(context: EntityContext | AutomationContext) -> bool:
    return is_issues_event(context) and context.event_action == "assigned"
