"""GitHub connector backed by the gh CLI for lookups, history and tracking comments."""

from __future__ import annotations

import json
import logging
import re
import subprocess
import time
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from ghassist.connectors.base import GithubConnector
from ghassist.models import GithubComment, GithubUser, IssueData, PullRequestData

_RATE_LIMIT_RE = re.compile(r"(?:api|secondary) rate limit", re.IGNORECASE)
_ABSOLUTE_PREFIXES = ("repos/", "users/", "graphql", "rate_limit")
logger = logging.getLogger(__name__)

_COMMENT_FIELDS = """
          id
          databaseId
          body
          author { login }
          createdAt
          updatedAt
          lastEditedAt
          isMinimized
"""

ISSUE_QUERY = f"""
query($owner: String!, $repo: String!, $number: Int!) {{
  repository(owner: $owner, name: $repo) {{
    issue(number: $number) {{
      title
      body
      author {{ login }}
      createdAt
      state
      comments(first: 100) {{
        nodes {{{_COMMENT_FIELDS}        }}
      }}
    }}
  }}
}}
"""

PR_QUERY = f"""
query($owner: String!, $repo: String!, $number: Int!) {{
  repository(owner: $owner, name: $repo) {{
    pullRequest(number: $number) {{
      title
      body
      author {{ login }}
      baseRefName
      headRefName
      headRefOid
      createdAt
      additions
      deletions
      state
      files(first: 100) {{
        nodes {{ path additions deletions changeType }}
      }}
      comments(first: 100) {{
        nodes {{{_COMMENT_FIELDS}        }}
      }}
      reviews(first: 100) {{
        nodes {{
          id
          databaseId
          author {{ login }}
          body
          state
          submittedAt
          updatedAt
          lastEditedAt
          comments(first: 100) {{
            nodes {{{_COMMENT_FIELDS}          path
              line
            }}
          }}
        }}
      }}
    }}
  }}
}}
"""

USER_QUERY = """
query($login: String!) {
  user(login: $login) {
    name
  }
}
"""


class GithubApiError(RuntimeError):
    pass


class GithubRateLimitError(GithubApiError):
    def __init__(
        self,
        message: str,
        *,
        reset_at: datetime | None = None,
        retry_after_seconds: float | None = None,
    ) -> None:
        super().__init__(message)
        self.reset_at = reset_at
        self.retry_after_seconds = retry_after_seconds


class GithubGhClient:
    def __init__(
        self,
        repo: str,
        gh_bin: str = "gh",
        *,
        token: str | None = None,
        env: Mapping[str, str] | None = None,
        rate_limit_retries: int = 2,
        secondary_backoff_base_seconds: float = 5.0,
        rate_limit_max_sleep_seconds: float = 90.0,
    ) -> None:
        self.repo = repo
        self.gh_bin = gh_bin
        self.rate_limit_retries = max(0, rate_limit_retries)
        self.secondary_backoff_base_seconds = max(1.0, secondary_backoff_base_seconds)
        self.rate_limit_max_sleep_seconds = max(1.0, rate_limit_max_sleep_seconds)
        self._env = self._build_env(env, token)
        self._backoff_until = 0.0

    @staticmethod
    def _build_env(env: Mapping[str, str] | None, token: str | None) -> dict[str, str] | None:
        if env is None and not token:
            return None
        merged = dict(env or {})
        if token:
            merged["GH_TOKEN"] = token
        return merged

    def get_paginated(self, endpoint: str, per_page: int = 100, max_items: int | None = None) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            payload = self.get_page(endpoint, page=page, per_page=per_page)
            if not isinstance(payload, list) or not payload:
                break
            items.extend(payload)
            if max_items is not None and len(items) >= max_items:
                return items[:max_items]
            page += 1
        return items

    def get_page(self, endpoint: str, *, page: int, per_page: int = 100) -> list[dict[str, Any]]:
        query = f"{endpoint}{'&' if '?' in endpoint else '?'}per_page={per_page}&page={page}"
        payload = self._api_json(query)
        if not isinstance(payload, list):
            return []
        return payload

    def graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        payload = self._api_json("graphql", method="POST", body={"query": query, "variables": variables})
        if not isinstance(payload, dict):
            raise GithubApiError("gh api graphql returned no data")
        errors = payload.get("errors")
        if errors:
            messages = "; ".join(str(error.get("message", error)) for error in errors if isinstance(error, dict))
            raise GithubApiError(f"GraphQL query failed: {messages or errors}")
        return payload.get("data") or {}

    def _resolve_endpoint(self, endpoint: str) -> str:
        trimmed = endpoint.lstrip("/")
        if trimmed.startswith(_ABSOLUTE_PREFIXES):
            return trimmed
        return f"repos/{self.repo}/{trimmed}"

    def _run(self, cmd: list[str], body: dict[str, Any] | None) -> subprocess.CompletedProcess[str]:
        if body is not None:
            return subprocess.run(
                [*cmd, "--input", "-"],
                input=json.dumps(body),
                text=True,
                capture_output=True,
                check=False,
                env=self._env,
            )
        return subprocess.run(cmd, text=True, capture_output=True, check=False, env=self._env)

    def _api_json(self, endpoint: str, method: str = "GET", body: dict[str, Any] | None = None) -> Any:
        cmd = [self.gh_bin, "api", self._resolve_endpoint(endpoint), "-X", method, "-H", "Accept: application/vnd.github+json"]
        attempts = self.rate_limit_retries + 1
        for attempt in range(attempts):
            self._wait_for_backoff()
            proc = self._run(cmd, body)
            if proc.returncode == 0:
                output = proc.stdout.strip()
                return json.loads(output) if output else None

            stderr = proc.stderr.strip()
            failure = f"gh api failed: {' '.join(cmd)}\n{stderr}"
            if not _RATE_LIMIT_RE.search(stderr):
                raise GithubApiError(failure)

            reset_at = self._get_rate_limit_reset_at()
            wait_seconds = self._rate_limit_wait_seconds(reset_at, attempt)
            self._backoff_until = max(self._backoff_until, time.monotonic() + wait_seconds)
            logger.warning(
                "GitHub rate limit hit for %s (attempt %s/%s). backoff=%.1fs reset_at=%s",
                endpoint,
                attempt + 1,
                attempts,
                wait_seconds,
                reset_at.isoformat() if reset_at else "unknown",
            )
            if attempt + 1 < attempts and wait_seconds <= self.rate_limit_max_sleep_seconds:
                continue
            raise GithubRateLimitError(failure, reset_at=reset_at, retry_after_seconds=wait_seconds)
        raise GithubApiError(f"gh api gave up on {endpoint} after {attempts} attempts")

    def _wait_for_backoff(self) -> None:
        remaining = self._backoff_until - time.monotonic()
        if remaining > 0:
            time.sleep(remaining)

    def _rate_limit_wait_seconds(self, reset_at: datetime | None, attempt: int) -> float:
        if reset_at is None:
            # secondary limits carry no reset time; back off exponentially
            return min(self.rate_limit_max_sleep_seconds, self.secondary_backoff_base_seconds * 2**attempt)
        until_reset = (reset_at - datetime.now(UTC)).total_seconds()
        if until_reset > self.rate_limit_max_sleep_seconds:
            return until_reset
        return max(1.0, until_reset + 1.0)

    def _get_rate_limit_reset_at(self) -> datetime | None:
        proc = self._run([self.gh_bin, "api", "rate_limit", "-X", "GET"], None)
        if proc.returncode != 0 or not proc.stdout.strip():
            return None
        try:
            data = json.loads(proc.stdout)
        except json.JSONDecodeError:
            return None

        buckets = list((data.get("resources") or {}).values()) + [data.get("rate")]
        resets = [
            bucket["reset"]
            for bucket in buckets
            if isinstance(bucket, dict)
            and isinstance(bucket.get("remaining"), int)
            and bucket["remaining"] <= 0
            and isinstance(bucket.get("reset"), int)
        ]
        if not resets:
            return None
        return datetime.fromtimestamp(max(resets), UTC)


class GithubGhConnector(GithubConnector):
    def __init__(
        self,
        repo: str,
        gh_bin: str = "gh",
        *,
        token: str | None = None,
        env: Mapping[str, str] | None = None,
        rate_limit_retries: int = 2,
        secondary_backoff_base_seconds: float = 5.0,
        rate_limit_max_sleep_seconds: float = 90.0,
    ) -> None:
        self.repo = repo
        self.owner, _, self.name = repo.partition("/")
        self.client = GithubGhClient(
            repo=repo,
            gh_bin=gh_bin,
            token=token,
            env=env,
            rate_limit_retries=rate_limit_retries,
            secondary_backoff_base_seconds=secondary_backoff_base_seconds,
            rate_limit_max_sleep_seconds=rate_limit_max_sleep_seconds,
        )

    def get_user(self, login: str) -> GithubUser:
        payload = self.client._api_json(f"users/{login}")
        return GithubUser.model_validate(payload or {"login": login})

    def get_collaborator_permission(self, owner: str, repo: str, username: str) -> str:
        payload = self.client._api_json(f"repos/{owner}/{repo}/collaborators/{username}/permission")
        if not isinstance(payload, dict) or "permission" not in payload:
            raise GithubApiError(f"Unexpected permission response for {username}: {payload!r}")
        return str(payload["permission"])

    def get_user_display_name(self, login: str) -> str | None:
        data = self.client.graphql(USER_QUERY, {"login": login})
        user = data.get("user") or {}
        return user.get("name")

    def fetch_issue(self, number: int) -> IssueData:
        data = self.client.graphql(ISSUE_QUERY, {"owner": self.owner, "repo": self.name, "number": number})
        issue = (data.get("repository") or {}).get("issue")
        if not issue:
            raise GithubApiError(f"Issue #{number} not found")
        return IssueData.model_validate(issue)

    def fetch_pull_request(self, number: int) -> PullRequestData:
        data = self.client.graphql(PR_QUERY, {"owner": self.owner, "repo": self.name, "number": number})
        pull = (data.get("repository") or {}).get("pullRequest")
        if not pull:
            raise GithubApiError(f"PR #{number} not found")
        return PullRequestData.model_validate(pull)

    def get_default_branch(self, owner: str, repo: str) -> str:
        payload = self.client._api_json(f"repos/{owner}/{repo}")
        if not isinstance(payload, dict) or not payload.get("default_branch"):
            raise GithubApiError(f"Unable to resolve default branch for {owner}/{repo}")
        return str(payload["default_branch"])

    def create_comment(self, number: int, body: str) -> int:
        payload = self.client._api_json(f"issues/{number}/comments", method="POST", body={"body": body})
        comment = GithubComment.model_validate(payload or {})
        if comment.id is None:
            raise GithubApiError(f"Creating comment on #{number} returned no id")
        return comment.id

    def update_comment(self, comment_id: int, body: str) -> None:
        self.client._api_json(f"issues/comments/{comment_id}", method="PATCH", body={"body": body})

    def find_comment_by_author(self, number: int, login: str) -> int | None:
        for item in self.client.get_paginated(f"issues/{number}/comments"):
            comment = GithubComment.model_validate(item)
            if comment.user is not None and comment.user.login == login and comment.id is not None:
                return comment.id
        return None
