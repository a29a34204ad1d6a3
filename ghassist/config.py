"""Configuration models and loading for ghassist.

Everything the pipeline needs from the process environment is read here,
once, and handed down as explicit models.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ghassist.constants import CLAUDE_APP_BOT_ID, CLAUDE_BOT_LOGIN, DEFAULT_BRANCH_PREFIX, DEFAULT_TRIGGER_PHRASE
from ghassist.errors import ConfigurationError

REPO_CONFIG_FILENAME = ".ghassist.yaml"

# input field -> environment variable set by the action wrapper
INPUT_ENV_VARS = {
    "prompt": "PROMPT",
    "trigger_phrase": "TRIGGER_PHRASE",
    "assignee_trigger": "ASSIGNEE_TRIGGER",
    "label_trigger": "LABEL_TRIGGER",
    "base_branch": "BASE_BRANCH",
    "branch_prefix": "BRANCH_PREFIX",
    "use_sticky_comment": "USE_STICKY_COMMENT",
    "use_commit_signing": "USE_COMMIT_SIGNING",
    "bot_id": "BOT_ID",
    "bot_name": "BOT_NAME",
    "allowed_bots": "ALLOWED_BOTS",
    "allowed_non_write_users": "ALLOWED_NON_WRITE_USERS",
    "track_progress": "TRACK_PROGRESS",
}
_BOOL_INPUTS = {"use_sticky_comment", "use_commit_signing", "track_progress"}


class ActionInputs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    prompt: str = ""
    trigger_phrase: str = DEFAULT_TRIGGER_PHRASE
    assignee_trigger: str = ""
    label_trigger: str = ""
    base_branch: str | None = None
    branch_prefix: str = DEFAULT_BRANCH_PREFIX
    use_sticky_comment: bool = False
    use_commit_signing: bool = False
    bot_id: str = str(CLAUDE_APP_BOT_ID)
    bot_name: str = CLAUDE_BOT_LOGIN
    allowed_bots: str = ""
    allowed_non_write_users: str = ""
    track_progress: bool = False

    @field_validator("base_branch")
    @classmethod
    def _empty_base_branch_is_unset(cls, value: str | None) -> str | None:
        return value or None

    @field_validator("bot_id", mode="before")
    @classmethod
    def _bot_id_as_string(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class RunEnvironment(BaseModel):
    """Process-level facts about the current workflow run."""

    model_config = ConfigDict(extra="forbid")

    run_id: str = ""
    event_name: str = ""
    event_path: str | None = None
    repository: str | None = None
    actor: str = ""
    github_token: str = ""
    github_token_provided: bool = False
    default_workflow_token: str = ""
    runner_temp: str = "/tmp"
    action_path: str = ""
    workspace: str = "."
    claude_args: str = ""
    claude_branch: str | None = None
    head_ref: str | None = None
    ref_name: str | None = None
    api_url: str = "https://api.github.com"
    server_url: str = "https://github.com"
    github_actions: bool = False
    output_path: str | None = None
    env_path: str | None = None
    gh_bin: str = "gh"
    passthrough_env: dict[str, str] = Field(default_factory=dict)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping")
    return data


def _inputs_from_env(env: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for field_name, var in INPUT_ENV_VARS.items():
        if var not in env:
            continue
        raw = env[var]
        if field_name in _BOOL_INPUTS:
            values[field_name] = raw == "true"
        elif field_name == "prompt" and not raw:
            continue
        else:
            values[field_name] = raw
    return values


def load_action_inputs(
    env: Mapping[str, str],
    repo_path: str | Path | None = None,
    org_defaults: dict[str, Any] | None = None,
) -> ActionInputs:
    """Resolve inputs with precedence env > repo .ghassist.yaml > org defaults > built-ins."""
    merged: dict[str, Any] = {}
    if org_defaults:
        merged = _deep_merge(merged, org_defaults.get("inputs", org_defaults))
    if repo_path is not None:
        repo_config = _load_yaml(Path(repo_path) / REPO_CONFIG_FILENAME)
        if repo_config:
            if not isinstance(repo_config.get("inputs", {}), dict):
                raise ConfigurationError(f"'inputs' in {REPO_CONFIG_FILENAME} must be a mapping")
            merged = _deep_merge(merged, repo_config.get("inputs", {}))
    merged = _deep_merge(merged, _inputs_from_env(env))
    try:
        return ActionInputs.model_validate(merged)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid action inputs (env, {REPO_CONFIG_FILENAME} or org defaults): {exc}") from exc


def load_run_environment(env: Mapping[str, str]) -> RunEnvironment:
    override_token = env.get("OVERRIDE_GITHUB_TOKEN", "")
    return RunEnvironment(
        run_id=env.get("GITHUB_RUN_ID", ""),
        event_name=env.get("GITHUB_EVENT_NAME", ""),
        event_path=env.get("GITHUB_EVENT_PATH") or None,
        repository=env.get("GITHUB_REPOSITORY") or None,
        actor=env.get("GITHUB_ACTOR", ""),
        github_token=override_token or env.get("GITHUB_TOKEN", ""),
        github_token_provided=bool(override_token),
        default_workflow_token=env.get("DEFAULT_WORKFLOW_TOKEN", ""),
        runner_temp=env.get("RUNNER_TEMP") or "/tmp",
        action_path=env.get("GITHUB_ACTION_PATH", ""),
        workspace=env.get("GITHUB_WORKSPACE") or ".",
        claude_args=env.get("CLAUDE_ARGS", ""),
        claude_branch=env.get("CLAUDE_BRANCH") or None,
        head_ref=env.get("GITHUB_HEAD_REF") or None,
        ref_name=env.get("GITHUB_REF_NAME") or None,
        api_url=env.get("GITHUB_API_URL") or "https://api.github.com",
        server_url=env.get("GITHUB_SERVER_URL") or "https://github.com",
        github_actions=env.get("GITHUB_ACTIONS") == "true",
        output_path=env.get("GITHUB_OUTPUT") or None,
        env_path=env.get("GITHUB_ENV") or None,
        gh_bin=env.get("GHASSIST_GH_BIN") or "gh",
        passthrough_env=dict(env),
    )
