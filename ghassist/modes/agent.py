"""Agent mode: runs an explicit workflow prompt with no tracking comment."""

from __future__ import annotations

import logging
from pathlib import Path

from ghassist.constants import DEFAULT_BASE_BRANCH
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
    PullRequestPayload,
    PullRequestReviewCommentPayload,
    PullRequestReviewPayload,
)
from ghassist.modes.base import ModeOptions
from ghassist.modes.parse_tools import parse_allowed_tools
from ghassist.outputs import ActionOutputs

logger = logging.getLogger(__name__)

PROMPT_DIRNAME = "claude-prompts"
PROMPT_FILENAME = "claude-prompt.txt"


def prompt_file_path(runner_temp: str) -> Path:
    return Path(runner_temp) / PROMPT_DIRNAME / PROMPT_FILENAME


def extract_github_env(context: EntityContext | AutomationContext) -> dict[str, str]:
    """GitHub facts exported to the assistant's environment."""
    env_vars = {
        "GITHUB_REPOSITORY": context.repository.full_name,
        "GITHUB_TRIGGER_ACTOR": context.actor,
        "GITHUB_EVENT_NAME": context.event_name.value,
    }
    if isinstance(context, EntityContext):
        if context.is_pr:
            env_vars["GITHUB_PR_NUMBER"] = str(context.entity_number)
            payload = context.payload
            if isinstance(payload, PullRequestPayload | PullRequestReviewPayload | PullRequestReviewCommentPayload):
                pull = payload.pull_request
                env_vars["GITHUB_BASE_REF"] = pull.base.ref if pull.base else ""
                env_vars["GITHUB_HEAD_REF"] = pull.head.ref if pull.head else ""
        else:
            env_vars["GITHUB_ISSUE_NUMBER"] = str(context.entity_number)
    return env_vars


class AgentMode:
    name = ModeName.AGENT
    description = "Direct automation mode for explicit prompts"

    def should_trigger(self, context: EntityContext | AutomationContext) -> bool:
        return bool(context.inputs.prompt)

    def prepare_context(
        self,
        context: EntityContext | AutomationContext,
        *,
        comment_id: int | None = None,
        base_branch: str | None = None,
        claude_branch: str | None = None,
    ) -> ModeContext:
        # no tracking comment and no branch management
        return ModeContext(mode=self.name, github_context=context)

    def get_allowed_tools(self, context: EntityContext | AutomationContext) -> list[str]:
        return []

    def get_disallowed_tools(self, context: EntityContext | AutomationContext) -> list[str]:
        return []

    def should_create_tracking_comment(self) -> bool:
        return False

    def get_system_prompt(self, mode_context: ModeContext) -> str | None:
        return None

    def generate_prompt(
        self,
        prepared: PreparedContext,
        outputs: ActionOutputs,
        data: FetchDataResult | None = None,
    ) -> str:
        for key, value in extract_github_env(prepared.github_context).items():
            outputs.export_variable(key, value)
        if prepared.prompt:
            return prepared.prompt
        return f"Repository: {prepared.repository}"

    def prepare(self, options: ModeOptions) -> ModeResult:
        context = options.context
        run_env = options.run_env
        inputs = context.inputs

        claude_branch = run_env.claude_branch
        base_branch = inputs.base_branch or DEFAULT_BASE_BRANCH
        current_branch = claude_branch or run_env.head_ref or run_env.ref_name or DEFAULT_BASE_BRANCH

        prepared = PreparedContext(
            repository=context.repository.full_name,
            trigger_phrase=inputs.trigger_phrase,
            github_context=context,
            trigger_username=context.actor or None,
            prompt=inputs.prompt or None,
            claude_branch=claude_branch,
            base_branch=base_branch,
        )
        prompt_path = prompt_file_path(run_env.runner_temp)
        prompt_path.parent.mkdir(parents=True, exist_ok=True)
        prompt_path.write_text(self.generate_prompt(prepared, options.outputs), encoding="utf-8")
        logger.info("Wrote agent prompt to %s", prompt_path)

        allowed_tools = parse_allowed_tools(run_env.claude_args)
        mcp_config = prepare_mcp_config(
            McpConfigParams(
                github_token=options.github_token,
                owner=context.repository.owner,
                repo=context.repository.repo,
                branch=current_branch,
                base_branch=base_branch,
                mode=self.name,
                context=context,
                run_env=run_env,
                allowed_tools=allowed_tools,
            )
        )
        options.outputs.set_output("claude_args", build_claude_args(mcp_config, run_env.claude_args))
        options.outputs.set_output("mcp_config", dump_mcp_config(mcp_config))

        return ModeResult(
            comment_id=None,
            # a new branch, when one is made, starts from the base
            branch_info=BranchInfo(base_branch=base_branch, current_branch=base_branch, claude_branch=claude_branch),
            mcp_config=mcp_config,
        )
