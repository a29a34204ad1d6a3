import json
from datetime import UTC, datetime
from types import SimpleNamespace

import pytest

from ghassist.connectors.github_gh import GithubApiError, GithubGhClient, GithubGhConnector, GithubRateLimitError


def _ok(payload) -> SimpleNamespace:  # noqa: ANN001
    return SimpleNamespace(returncode=0, stdout=json.dumps(payload), stderr="")


def test_client_passes_token_through_env(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = {}

    def _fake_run(cmd, **kwargs):  # noqa: ANN001,ANN003
        seen["cmd"] = cmd
        seen["env"] = kwargs.get("env")
        return _ok({"login": "alice", "type": "User"})

    monkeypatch.setattr("subprocess.run", _fake_run)
    client = GithubGhClient(repo="acme/widgets", token="secret", env={"PATH": "/usr/bin"})

    assert client._api_json("users/alice") == {"login": "alice", "type": "User"}
    assert seen["cmd"][:3] == ["gh", "api", "users/alice"]
    assert seen["env"] == {"PATH": "/usr/bin", "GH_TOKEN": "secret"}


def test_client_resolves_relative_endpoints(monkeypatch: pytest.MonkeyPatch) -> None:
    endpoints = []

    def _fake_run(cmd, **kwargs):  # noqa: ANN001,ANN003
        endpoints.append(cmd[2])
        return _ok({})

    monkeypatch.setattr("subprocess.run", _fake_run)
    client = GithubGhClient(repo="acme/widgets")
    client._api_json("issues/1/comments")
    client._api_json("repos/other/repo/collaborators/bob/permission")
    client._api_json("graphql", method="POST", body={"query": "{}"})

    assert endpoints == ["repos/acme/widgets/issues/1/comments", "repos/other/repo/collaborators/bob/permission", "graphql"]


def test_graphql_errors_raise(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("subprocess.run", lambda cmd, **kwargs: _ok({"errors": [{"message": "Could not resolve"}]}))
    client = GithubGhClient(repo="acme/widgets")
    with pytest.raises(GithubApiError, match="Could not resolve"):
        client.graphql("query { viewer { login } }", {})


def test_non_rate_limit_failure_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "subprocess.run",
        lambda cmd, **kwargs: SimpleNamespace(returncode=1, stdout="", stderr="HTTP 404: Not Found"),
    )
    client = GithubGhClient(repo="acme/widgets")
    with pytest.raises(GithubApiError, match="404"):
        client._api_json("users/ghost")


def test_rate_limit_error_carries_reset(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = {"api": 0, "rate_limit": 0}

    def _fake_run(cmd, **kwargs):  # noqa: ANN001,ANN003
        if cmd[2] == "rate_limit":
            calls["rate_limit"] += 1
            return _ok({"resources": {"core": {"remaining": 0, "reset": 1700000000}}})
        calls["api"] += 1
        return SimpleNamespace(returncode=1, stdout="", stderr="gh: API rate limit exceeded for user ID 1 (HTTP 403)")

    monkeypatch.setattr("subprocess.run", _fake_run)
    client = GithubGhClient(repo="acme/widgets", rate_limit_retries=0, rate_limit_max_sleep_seconds=10.0)
    with pytest.raises(GithubRateLimitError) as exc:
        client._api_json("users/alice")
    assert exc.value.reset_at == datetime.fromtimestamp(1700000000, UTC)
    assert calls == {"api": 1, "rate_limit": 1}


def test_secondary_rate_limit_retries(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = {"api": 0}

    def _fake_run(cmd, **kwargs):  # noqa: ANN001,ANN003
        if cmd[2] == "rate_limit":
            return SimpleNamespace(returncode=1, stdout="", stderr="unavailable")
        calls["api"] += 1
        if calls["api"] == 1:
            return SimpleNamespace(returncode=1, stdout="", stderr="gh: secondary rate limit. please wait")
        return _ok({"permission": "write"})

    monkeypatch.setattr("subprocess.run", _fake_run)
    client = GithubGhClient(repo="acme/widgets", rate_limit_retries=2, secondary_backoff_base_seconds=1.0)
    monkeypatch.setattr(client, "_wait_for_backoff", lambda: None)

    assert client._api_json("collaborators/alice/permission") == {"permission": "write"}
    assert calls["api"] == 2


class FakeGhClient:
    def __init__(self, responses: dict[str, object]) -> None:
        self.responses = responses
        self.requests: list[tuple[str, str, object]] = []

    def _api_json(self, endpoint: str, method: str = "GET", body=None):  # noqa: ANN001
        self.requests.append((endpoint, method, body))
        return self.responses.get(endpoint)

    def graphql(self, query: str, variables: dict) -> dict:
        self.requests.append(("graphql", "POST", variables))
        return self.responses["graphql"]

    def get_paginated(self, endpoint: str, per_page: int = 100, max_items: int | None = None):
        self.requests.append((endpoint, "GET", None))
        return self.responses.get(endpoint, [])


def _connector(responses: dict[str, object]) -> GithubGhConnector:
    connector = GithubGhConnector(repo="acme/widgets")
    connector.client = FakeGhClient(responses)  # type: ignore[assignment]
    return connector


def test_connector_permission_and_user() -> None:
    connector = _connector(
        {
            "repos/acme/widgets/collaborators/alice/permission": {"permission": "admin", "user": {"login": "alice"}},
            "users/dependabot[bot]": {"login": "dependabot[bot]", "type": "Bot"},
        }
    )
    assert connector.get_collaborator_permission("acme", "widgets", "alice") == "admin"
    assert connector.get_user("dependabot[bot]").type == "Bot"


def test_connector_permission_rejects_malformed_response() -> None:
    connector = _connector({})
    with pytest.raises(GithubApiError):
        connector.get_collaborator_permission("acme", "widgets", "alice")


def test_connector_fetch_pull_request_unwraps_nodes() -> None:
    connector = _connector(
        {
            "graphql": {
                "repository": {
                    "pullRequest": {
                        "title": "Add retry",
                        "body": "b",
                        "baseRefName": "main",
                        "headRefName": "feature/retry",
                        "state": "OPEN",
                        "files": {"nodes": [{"path": "a.py", "additions": 1, "deletions": 0, "changeType": "ADDED"}]},
                        "comments": {"nodes": [{"id": "c1", "body": "hi", "createdAt": "2024-01-15T11:00:00Z"}]},
                        "reviews": {"nodes": []},
                    }
                }
            }
        }
    )
    pull = connector.fetch_pull_request(7)
    assert pull.head_ref_name == "feature/retry"
    assert pull.files[0].change_type == "ADDED"
    assert pull.comments[0].id == "c1"
    assert connector.client.requests[0][2] == {"owner": "acme", "repo": "widgets", "number": 7}


def test_connector_missing_issue_raises() -> None:
    connector = _connector({"graphql": {"repository": {"issue": None}}})
    with pytest.raises(GithubApiError, match="Issue #3 not found"):
        connector.fetch_issue(3)


def test_connector_comments() -> None:
    connector = _connector(
        {
            "issues/5/comments": [
                {"id": 1, "body": "x", "user": {"login": "bob"}},
                {"id": 2, "body": "y", "user": {"login": "claude[bot]"}},
            ]
        }
    )
    assert connector.find_comment_by_author(5, "claude[bot]") == 2
    assert connector.find_comment_by_author(5, "nobody") is None

    connector.update_comment(2, "updated")
    assert connector.client.requests[-1] == ("issues/comments/2", "PATCH", {"body": "updated"})


def test_connector_create_comment_returns_id() -> None:
    connector = _connector({"issues/5/comments": {"id": 321, "body": "hi"}})
    assert connector.create_comment(5, "hi") == 321
    assert connector.client.requests[-1] == ("issues/5/comments", "POST", {"body": "hi"})


def test_connector_display_name_and_default_branch() -> None:
    connector = _connector({"graphql": {"user": {"name": "Alice Example"}}, "repos/acme/widgets": {"default_branch": "trunk"}})
    assert connector.get_user_display_name("alice") == "Alice Example"
    assert connector.get_default_branch("acme", "widgets") == "trunk"
