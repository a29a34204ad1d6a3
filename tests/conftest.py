import copy
from collections.abc import Callable
from typing import Any

import pytest

from ghassist.config import ActionInputs
from ghassist.context import parse_github_context, parse_repository
from ghassist.models import AutomationContext, EntityContext, GithubUser, IssueData, PullRequestData

REPOSITORY = {"full_name": "acme/widgets", "name": "widgets", "owner": {"login": "acme"}}

_PAYLOADS: dict[str, dict[str, Any]] = {
    "issues": {
        "action": "opened",
        "issue": {
            "number": 42,
            "title": "Crash on startup",
            "body": "The app crashes when the config file is empty.",
            "user": {"login": "alice"},
            "state": "open",
        },
        "repository": REPOSITORY,
        "sender": {"login": "alice"},
    },
    "issue_comment": {
        "action": "created",
        "issue": {
            "number": 42,
            "title": "Crash on startup",
            "body": "The app crashes when the config file is empty.",
            "user": {"login": "alice"},
            "state": "open",
        },
        "comment": {
            "id": 9001,
            "body": "@claude can you take a look?",
            "user": {"login": "alice"},
            "created_at": "2024-01-15T12:00:00Z",
            "updated_at": "2024-01-15T12:00:00Z",
        },
        "repository": REPOSITORY,
        "sender": {"login": "alice"},
    },
    "pull_request": {
        "action": "opened",
        "pull_request": {
            "number": 7,
            "title": "Add retry to uploader",
            "body": "Retries uploads on 5xx responses.",
            "user": {"login": "alice"},
            "state": "open",
            "base": {"ref": "main", "sha": "aaa111"},
            "head": {"ref": "feature/retry", "sha": "bbb222"},
        },
        "repository": REPOSITORY,
        "sender": {"login": "alice"},
    },
    "pull_request_review": {
        "action": "submitted",
        "pull_request": {
            "number": 7,
            "title": "Add retry to uploader",
            "body": "Retries uploads on 5xx responses.",
            "user": {"login": "alice"},
            "base": {"ref": "main"},
            "head": {"ref": "feature/retry"},
        },
        "review": {
            "id": 501,
            "body": "@claude please address the nits",
            "user": {"login": "bob"},
            "state": "commented",
            "submitted_at": "2024-01-15T12:00:00Z",
        },
        "repository": REPOSITORY,
        "sender": {"login": "bob"},
    },
    "pull_request_review_comment": {
        "action": "created",
        "pull_request": {
            "number": 7,
            "title": "Add retry to uploader",
            "body": "Retries uploads on 5xx responses.",
            "user": {"login": "alice"},
            "base": {"ref": "main"},
            "head": {"ref": "feature/retry"},
        },
        "comment": {
            "id": 777,
            "body": "@claude why is this sleep here?",
            "user": {"login": "bob"},
            "created_at": "2024-01-15T12:00:00Z",
        },
        "repository": REPOSITORY,
        "sender": {"login": "bob"},
    },
    "workflow_dispatch": {"inputs": {}, "ref": "refs/heads/main", "repository": REPOSITORY, "sender": {"login": "alice"}},
    "repository_dispatch": {"action": "nightly", "client_payload": {}, "repository": REPOSITORY},
    "schedule": {"schedule": "0 0 * * *", "repository": REPOSITORY},
    "workflow_run": {"action": "completed", "workflow_run": {"id": 1}, "repository": REPOSITORY},
}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@pytest.fixture
def event_payload() -> Callable[..., dict[str, Any]]:
    def _build(event_name: str, **overrides: Any) -> dict[str, Any]:
        base_name = "pull_request" if event_name == "pull_request_target" else event_name
        return _merge(copy.deepcopy(_PAYLOADS[base_name]), overrides)

    return _build


@pytest.fixture
def make_context(event_payload) -> Callable[..., EntityContext | AutomationContext]:  # noqa: ANN001
    def _build(
        event_name: str,
        payload: dict[str, Any] | None = None,
        *,
        actor: str = "alice",
        **inputs: Any,
    ) -> EntityContext | AutomationContext:
        return parse_github_context(
            event_name,
            payload if payload is not None else event_payload(event_name),
            run_id="1234",
            actor=actor,
            repository=parse_repository("acme/widgets"),
            inputs=ActionInputs(**inputs),
        )

    return _build


class FakeConnector:
    def __init__(
        self,
        *,
        user_type: str = "User",
        permission: str = "write",
        display_name: str | None = "Alice Example",
        issue: IssueData | None = None,
        pull_request: PullRequestData | None = None,
        default_branch: str = "main",
    ) -> None:
        self.user_type = user_type
        self.permission = permission
        self.display_name = display_name
        self.issue = issue or IssueData(title="Crash on startup", body="It crashes.")
        self.pull_request = pull_request or PullRequestData(
            title="Add retry", body="Retries uploads.", baseRefName="main", headRefName="feature/retry", state="OPEN"
        )
        self.default_branch = default_branch
        self.calls: list[tuple[str, Any]] = []
        self.comments: dict[int, str] = {}
        self.existing_comment: int | None = None
        self.raise_on: dict[str, Exception] = {}

    def _record(self, name: str, args: Any) -> None:
        self.calls.append((name, args))
        if name in self.raise_on:
            raise self.raise_on[name]

    def get_user(self, login: str) -> GithubUser:
        self._record("get_user", login)
        return GithubUser(login=login, type=self.user_type)

    def get_collaborator_permission(self, owner: str, repo: str, username: str) -> str:
        self._record("get_collaborator_permission", (owner, repo, username))
        return self.permission

    def get_user_display_name(self, login: str) -> str | None:
        self._record("get_user_display_name", login)
        return self.display_name

    def fetch_issue(self, number: int) -> IssueData:
        self._record("fetch_issue", number)
        return self.issue

    def fetch_pull_request(self, number: int) -> PullRequestData:
        self._record("fetch_pull_request", number)
        return self.pull_request

    def get_default_branch(self, owner: str, repo: str) -> str:
        self._record("get_default_branch", (owner, repo))
        return self.default_branch

    def create_comment(self, number: int, body: str) -> int:
        self._record("create_comment", (number, body))
        comment_id = 1000 + len(self.comments)
        self.comments[comment_id] = body
        return comment_id

    def update_comment(self, comment_id: int, body: str) -> None:
        self._record("update_comment", (comment_id, body))
        self.comments[comment_id] = body

    def find_comment_by_author(self, number: int, login: str) -> int | None:
        self._record("find_comment_by_author", (number, login))
        return self.existing_comment

    def called(self, name: str) -> bool:
        return any(call_name == name for call_name, _ in self.calls)


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def make_connector() -> Callable[..., FakeConnector]:
    return FakeConnector
