"""Connector interfaces and implementations."""

from .base import GithubConnector
from .github_gh import GithubApiError, GithubGhConnector, GithubRateLimitError

__all__ = ["GithubConnector", "GithubGhConnector", "GithubApiError", "GithubRateLimitError"]
