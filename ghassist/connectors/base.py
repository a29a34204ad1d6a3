"""Connector interface the pipeline uses to talk to GitHub."""

from __future__ import annotations

from typing import Protocol

from ghassist.models import GithubUser, IssueData, PullRequestData


class GithubConnector(Protocol):
    def get_user(self, login: str) -> GithubUser: ...

    def get_collaborator_permission(self, owner: str, repo: str, username: str) -> str: ...

    def get_user_display_name(self, login: str) -> str | None: ...

    def fetch_issue(self, number: int) -> IssueData: ...

    def fetch_pull_request(self, number: int) -> PullRequestData: ...

    def get_default_branch(self, owner: str, repo: str) -> str: ...

    def create_comment(self, number: int, body: str) -> int: ...

    def update_comment(self, comment_id: int, body: str) -> None: ...

    def find_comment_by_author(self, number: int, login: str) -> int | None: ...
