"""Shared helpers for CLI command modules."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import yaml

from ghassist.connectors.github_gh import GithubApiError
from ghassist.errors import AuthorizationError, ConfigurationError, PermissionCheckError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def load_yaml_dict(path: str | None) -> dict | None:
    if not path:
        return None
    data = yaml.safe_load(Path(path).read_text())
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ConfigurationError(f"YAML at {path} must decode to a mapping")
    return data


def exit_code_for(exc: BaseException) -> int:
    if isinstance(exc, ConfigurationError):
        return EXIT_CONFIG
    return EXIT_FAILURE


def add_config_flags(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--repo-path", help="Repository root holding .ghassist.yaml (defaults to GITHUB_WORKSPACE)")
    cmd.add_argument("--org-config", help="Optional org defaults YAML")


# Failures that end a prepare run with a recorded error instead of a traceback.
HANDLED_ERRORS = (ConfigurationError, AuthorizationError, PermissionCheckError, GithubApiError)
