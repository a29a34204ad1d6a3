"""MCP server configuration handed to the assistant CLI."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ghassist.config import RunEnvironment
from ghassist.connectors.github_gh import GithubApiError, GithubGhClient
from ghassist.models import AutomationContext, EntityContext, ModeName

logger = logging.getLogger(__name__)

GITHUB_MCP_SERVER_IMAGE = "ghcr.io/github/github-mcp-server:sha-23fa0dd"
ACTIONS_PERMISSION_DOCS = (
    "https://docs.github.com/en/actions/security-guides/automatic-token-authentication#permissions-for-the-github_token"
)

COMMENT_TOOL_PREFIX = "mcp__github_comment__"
GITHUB_TOOL_PREFIX = "mcp__github__"
INLINE_COMMENT_TOOL_PREFIX = "mcp__github_inline_comment__"
CI_TOOL_PREFIX = "mcp__github_ci__"


@dataclass(frozen=True)
class McpConfigParams:
    github_token: str
    owner: str
    repo: str
    branch: str
    base_branch: str
    mode: ModeName
    context: EntityContext | AutomationContext
    run_env: RunEnvironment
    claude_comment_id: int | None = None
    allowed_tools: list[str] = field(default_factory=list)


def check_actions_read_permission(run_env: RunEnvironment, token: str, owner: str, repo: str) -> bool:
    """Probe whether ``token`` can list workflow runs, which needs ``actions: read``."""
    client = GithubGhClient(f"{owner}/{repo}", gh_bin=run_env.gh_bin, token=token, rate_limit_retries=0)
    try:
        client._api_json(f"repos/{owner}/{repo}/actions/runs?per_page=1")
    except GithubApiError as exc:
        if "Resource not accessible" not in str(exc):
            logger.debug("Failed to check actions permission: %s", exc)
        return False
    return True


def _has_prefix(tools: list[str], prefix: str) -> bool:
    return any(tool.startswith(prefix) for tool in tools)


def _server_script(run_env: RunEnvironment, name: str) -> list[str]:
    return ["run", f"{run_env.action_path}/src/mcp/{name}"]


def prepare_mcp_config(
    params: McpConfigParams,
    *,
    permission_checker: Callable[[RunEnvironment, str, str, str], bool] = check_actions_read_permission,
) -> dict[str, Any]:
    """Select the GitHub MCP servers this run may use and return ``{"mcpServers": {...}}``."""
    tools = params.allowed_tools
    run_env = params.run_env
    context = params.context
    is_agent = params.mode == ModeName.AGENT
    is_pr_entity = isinstance(context, EntityContext) and context.is_pr
    entity_number = str(context.entity_number) if isinstance(context, EntityContext) else ""
    servers: dict[str, Any] = {}

    if not is_agent or _has_prefix(tools, COMMENT_TOOL_PREFIX):
        comment_env = {
            "GITHUB_TOKEN": params.github_token,
            "REPO_OWNER": params.owner,
            "REPO_NAME": params.repo,
            "GITHUB_EVENT_NAME": run_env.event_name,
            "GITHUB_API_URL": run_env.api_url,
        }
        if params.claude_comment_id is not None:
            comment_env["CLAUDE_COMMENT_ID"] = str(params.claude_comment_id)
        servers["github_comment"] = {
            "command": "bun",
            "args": _server_script(run_env, "github-comment-server.ts"),
            "env": comment_env,
        }

    if context.inputs.use_commit_signing:
        servers["github_file_ops"] = {
            "command": "bun",
            "args": _server_script(run_env, "github-file-ops-server.ts"),
            "env": {
                "GITHUB_TOKEN": params.github_token,
                "REPO_OWNER": params.owner,
                "REPO_NAME": params.repo,
                "BRANCH_NAME": params.branch,
                "BASE_BRANCH": params.base_branch,
                "REPO_DIR": run_env.workspace,
                "GITHUB_EVENT_NAME": run_env.event_name,
                "IS_PR": "true" if is_pr_entity else "false",
                "GITHUB_API_URL": run_env.api_url,
            },
        }

    if is_pr_entity and (_has_prefix(tools, GITHUB_TOOL_PREFIX) or _has_prefix(tools, INLINE_COMMENT_TOOL_PREFIX)):
        servers["github_inline_comment"] = {
            "command": "bun",
            "args": _server_script(run_env, "github-inline-comment-server.ts"),
            "env": {
                "GITHUB_TOKEN": params.github_token,
                "REPO_OWNER": params.owner,
                "REPO_NAME": params.repo,
                "PR_NUMBER": entity_number,
                "GITHUB_API_URL": run_env.api_url,
            },
        }

    workflow_token = run_env.default_workflow_token
    if (not is_agent or _has_prefix(tools, CI_TOOL_PREFIX)) and is_pr_entity and workflow_token:
        if not permission_checker(run_env, workflow_token, params.owner, params.repo):
            logger.warning(
                "The github_ci MCP server requires 'actions: read' permission. "
                "Please ensure your GitHub token has this permission. See: %s",
                ACTIONS_PERMISSION_DOCS,
            )
        servers["github_ci"] = {
            "command": "bun",
            "args": _server_script(run_env, "github-actions-server.ts"),
            "env": {
                "GITHUB_TOKEN": workflow_token,
                "REPO_OWNER": params.owner,
                "REPO_NAME": params.repo,
                "PR_NUMBER": entity_number,
                "RUNNER_TEMP": run_env.runner_temp,
            },
        }

    if _has_prefix(tools, GITHUB_TOOL_PREFIX):
        servers["github"] = {
            "command": "docker",
            "args": [
                "run",
                "-i",
                "--rm",
                "-e",
                "GITHUB_PERSONAL_ACCESS_TOKEN",
                "-e",
                "GITHUB_HOST",
                GITHUB_MCP_SERVER_IMAGE,
            ],
            "env": {
                "GITHUB_PERSONAL_ACCESS_TOKEN": params.github_token,
                "GITHUB_HOST": run_env.server_url,
            },
        }

    logger.info("Prepared MCP config with servers: %s", ", ".join(sorted(servers)) or "none")
    return {"mcpServers": servers}


def dump_mcp_config(config: dict[str, Any]) -> str:
    return json.dumps(config, indent=2)


def build_claude_args(config: dict[str, Any], user_args: str, *, allowed_tools: list[str] | None = None) -> str:
    """Prefix the user's CLI args with our ``--mcp-config`` flag when any server was selected."""
    parts: list[str] = []
    if config.get("mcpServers"):
        escaped = dump_mcp_config(config).replace("'", "'\\''")
        parts.append(f"--mcp-config '{escaped}'")
    if allowed_tools:
        parts.append(f'--allowedTools "{",".join(allowed_tools)}"')
    parts.append(user_args)
    return " ".join(parts).strip()
