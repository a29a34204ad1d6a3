"""Tag mode: interactive runs started by a mention, assignment or label."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from ghassist.connectors.base import GithubConnector
from ghassist.fetcher import fetch_github_data
from ghassist.history import extract_trigger_timestamp
from ghassist.mcp import McpConfigParams, build_claude_args, dump_mcp_config, prepare_mcp_config
from ghassist.models import (
    AutomationContext,
    BranchInfo,
    EntityContext,
    FetchDataResult,
    ModeContext,
    ModeName,
    ModeResult,
    PreparedContext,
    PullRequestData,
)
from ghassist.modes.agent import prompt_file_path
from ghassist.modes.base import ModeOptions
from ghassist.modes.parse_tools import parse_allowed_tools
from ghassist.outputs import ActionOutputs
from ghassist.prompt import build_tag_prompt
from ghassist.validation.actor import check_human_actor
from ghassist.validation.trigger import check_contains_trigger

logger = logging.getLogger(__name__)

COMMENT_UPDATE_TOOL = "mcp__github_comment__update_claude_comment"
COMMIT_SIGNING_TOOLS = ("mcp__github_file_ops__commit_files", "mcp__github_file_ops__delete_files")
INITIAL_COMMENT_HEADER = "Claude Code is working…"
_BRANCH_NAME_LIMIT = 50
_CLOSED_PR_STATES = {"CLOSED", "MERGED"}


def job_run_url(server_url: str, repository: str, run_id: str) -> str:
    return f"{server_url}/{repository}/actions/runs/{run_id}"


def initial_comment_body(server_url: str, repository: str, run_id: str) -> str:
    return f"{INITIAL_COMMENT_HEADER}\n\n[View job run]({job_run_url(server_url, repository, run_id)})"


def create_initial_comment(client: GithubConnector, context: EntityContext, body: str) -> int:
    """Post the tracking comment, or reuse the bot's previous one when sticky comments are on."""
    if context.inputs.use_sticky_comment and context.is_pr:
        existing = client.find_comment_by_author(context.entity_number, context.inputs.bot_name)
        if existing is not None:
            client.update_comment(existing, body)
            logger.info("Reusing sticky comment %s on #%s", existing, context.entity_number)
            return existing
    comment_id = client.create_comment(context.entity_number, body)
    logger.info("Created tracking comment %s on #%s", comment_id, context.entity_number)
    return comment_id


def new_branch_name(prefix: str, context: EntityContext, now: datetime | None = None) -> str:
    stamp = (now or datetime.now(UTC)).strftime("%Y%m%d-%H%M")
    entity_type = "pr" if context.is_pr else "issue"
    return f"{prefix}{entity_type}-{context.entity_number}-{stamp}".lower()[:_BRANCH_NAME_LIMIT]


def resolve_branch_info(
    client: GithubConnector,
    context: EntityContext,
    data: FetchDataResult,
    now: datetime | None = None,
) -> BranchInfo:
    """Work on an open PR's head branch; otherwise name a fresh branch off the base."""
    context_data = data.context_data
    if isinstance(context_data, PullRequestData) and context_data.state.upper() not in _CLOSED_PR_STATES:
        return BranchInfo(
            base_branch=context_data.base_ref_name,
            current_branch=context_data.head_ref_name,
            claude_branch=None,
        )

    base_branch = context.inputs.base_branch or client.get_default_branch(
        context.repository.owner, context.repository.repo
    )
    claude_branch = new_branch_name(context.inputs.branch_prefix, context, now)
    return BranchInfo(base_branch=base_branch, current_branch=claude_branch, claude_branch=claude_branch)


class TagMode:
    name = ModeName.TAG
    description = "Interactive mode triggered by @claude mentions"

    def should_trigger(self, context: EntityContext | AutomationContext) -> bool:
        if not isinstance(context, EntityContext):
            return False
        return check_contains_trigger(context)

    def prepare_context(
        self,
        context: EntityContext | AutomationContext,
        *,
        comment_id: int | None = None,
        base_branch: str | None = None,
        claude_branch: str | None = None,
    ) -> ModeContext:
        return ModeContext(
            mode=self.name,
            github_context=context,
            comment_id=comment_id,
            base_branch=base_branch,
            claude_branch=claude_branch,
        )

    def get_allowed_tools(self, context: EntityContext | AutomationContext) -> list[str]:
        tools = [COMMENT_UPDATE_TOOL]
        if context.inputs.use_commit_signing:
            tools.extend(COMMIT_SIGNING_TOOLS)
        return tools

    def get_disallowed_tools(self, context: EntityContext | AutomationContext) -> list[str]:
        return []

    def should_create_tracking_comment(self) -> bool:
        return True

    def get_system_prompt(self, mode_context: ModeContext) -> str | None:
        return None

    def generate_prompt(
        self,
        prepared: PreparedContext,
        outputs: ActionOutputs,
        data: FetchDataResult | None = None,
    ) -> str:
        if data is None:
            raise ValueError("tag mode needs fetched issue or pull request data to build a prompt")
        return build_tag_prompt(prepared, data)

    def prepare(self, options: ModeOptions) -> ModeResult:
        context = options.context
        if not isinstance(context, EntityContext):
            raise ValueError("Tag mode requires an issue or pull request event")
        run_env = options.run_env
        client = options.client

        check_human_actor(client, context)

        comment_id = create_initial_comment(
            client,
            context,
            initial_comment_body(run_env.server_url, context.repository.full_name, context.run_id),
        )

        data = fetch_github_data(
            client,
            number=context.entity_number,
            is_pr=context.is_pr,
            trigger_username=context.actor or None,
            trigger_time=extract_trigger_timestamp(context),
        )
        branch_info = resolve_branch_info(client, context, data)

        prepared = PreparedContext(
            repository=context.repository.full_name,
            trigger_phrase=context.inputs.trigger_phrase,
            github_context=context,
            claude_comment_id=comment_id,
            trigger_username=context.actor or None,
            prompt=context.inputs.prompt or None,
            claude_branch=branch_info.claude_branch,
            base_branch=branch_info.base_branch,
        )
        prompt_path = prompt_file_path(run_env.runner_temp)
        prompt_path.parent.mkdir(parents=True, exist_ok=True)
        prompt_path.write_text(self.generate_prompt(prepared, options.outputs, data), encoding="utf-8")
        logger.info("Wrote tag prompt to %s", prompt_path)

        tag_tools = self.get_allowed_tools(context)
        mcp_config = prepare_mcp_config(
            McpConfigParams(
                github_token=options.github_token,
                owner=context.repository.owner,
                repo=context.repository.repo,
                branch=branch_info.claude_branch or branch_info.current_branch,
                base_branch=branch_info.base_branch,
                mode=self.name,
                context=context,
                run_env=run_env,
                claude_comment_id=comment_id,
                allowed_tools=tag_tools + parse_allowed_tools(run_env.claude_args),
            )
        )
        options.outputs.set_output(
            "claude_args", build_claude_args(mcp_config, run_env.claude_args, allowed_tools=tag_tools)
        )
        options.outputs.set_output("mcp_config", dump_mcp_config(mcp_config))

        return ModeResult(comment_id=comment_id, branch_info=branch_info, mcp_config=mcp_config)
