"""GitHub identities and event name sets shared across the package."""

from __future__ import annotations

CLAUDE_APP_BOT_ID = 41898282
CLAUDE_BOT_LOGIN = "claude[bot]"

DEFAULT_TRIGGER_PHRASE = "@claude"
DEFAULT_BRANCH_PREFIX = "claude/"
DEFAULT_BASE_BRANCH = "main"

BOT_SUFFIX = "[bot]"
WILDCARD = "*"
WRITE_PERMISSION_LEVELS = frozenset({"admin", "write"})

ENTITY_EVENT_NAMES = (
    "issues",
    "issue_comment",
    "pull_request",
    "pull_request_review",
    "pull_request_review_comment",
)

AUTOMATION_EVENT_NAMES = (
    "workflow_dispatch",
    "repository_dispatch",
    "schedule",
    "workflow_run",
)

# Platform aliases that normalize onto an internal event name.
EVENT_NAME_ALIASES = {
    "pull_request_target": "pull_request",
}

TRACK_PROGRESS_EVENTS = (
    "pull_request",
    "issues",
    "issue_comment",
    "pull_request_review_comment",
    "pull_request_review",
)

PR_LIFECYCLE_ACTIONS = (
    "opened",
    "synchronize",
    "ready_for_review",
    "reopened",
)

COMMENT_EVENT_NAMES = (
    "issue_comment",
    "pull_request_review_comment",
    "pull_request_review",
)
