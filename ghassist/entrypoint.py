"""The prepare pipeline run at the start of every workflow job."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ghassist.config import RunEnvironment, load_action_inputs, load_run_environment
from ghassist.connectors.base import GithubConnector
from ghassist.connectors.github_gh import GithubGhConnector
from ghassist.context import context_from_environment
from ghassist.models import EntityContext, ModeName, ModeResult
from ghassist.modes.base import ModeOptions
from ghassist.modes.registry import get_mode
from ghassist.outputs import ActionOutputs
from ghassist.validation.permissions import authorize_entity_actor

logger = logging.getLogger(__name__)

ConnectorFactory = Callable[[RunEnvironment, str], GithubConnector]


@dataclass(frozen=True)
class PrepareOutcome:
    mode: ModeName
    contains_trigger: bool
    result: ModeResult | None = None


def default_connector(run_env: RunEnvironment, repository: str) -> GithubConnector:
    return GithubGhConnector(
        repository,
        gh_bin=run_env.gh_bin,
        token=run_env.github_token or None,
        env=run_env.passthrough_env,
    )


def run_prepare(
    env: Mapping[str, str],
    *,
    outputs: ActionOutputs | None = None,
    repo_path: str | Path | None = None,
    org_defaults: dict[str, Any] | None = None,
    connector_factory: ConnectorFactory = default_connector,
) -> PrepareOutcome:
    """Normalize the event, gate the actor, pick a mode and let it prepare the run.

    Returns without side effects beyond the ``contains_trigger`` and
    ``github_token`` outputs when nothing asked for the assistant.
    """
    run_env = load_run_environment(env)
    outputs = outputs or ActionOutputs.from_run_environment(run_env)
    inputs = load_action_inputs(env, repo_path=repo_path or run_env.workspace, org_defaults=org_defaults)

    context = context_from_environment(run_env, inputs)
    mode = get_mode(context)
    client = connector_factory(run_env, context.repository.full_name)

    if isinstance(context, EntityContext):
        authorize_entity_actor(client, context, run_env.github_token_provided)

    contains_trigger = mode.should_trigger(context)
    logger.info("Mode: %s", mode.name.value)
    logger.info("Context prompt: %s", "provided" if inputs.prompt else "NO PROMPT")
    logger.info("Trigger result: %s", contains_trigger)
    outputs.set_output("contains_trigger", contains_trigger)
    outputs.set_output("mode", mode.name.value)

    if not contains_trigger:
        logger.info("No trigger found, skipping remaining steps")
        outputs.set_output("github_token", run_env.github_token)
        return PrepareOutcome(mode=mode.name, contains_trigger=False)

    result = mode.prepare(
        ModeOptions(
            context=context,
            client=client,
            github_token=run_env.github_token,
            run_env=run_env,
            outputs=outputs,
        )
    )

    outputs.set_output("github_token", run_env.github_token)
    outputs.set_output("branch_name", result.branch_info.claude_branch or result.branch_info.current_branch)
    outputs.set_output("base_branch", result.branch_info.base_branch)
    outputs.set_output("claude_comment_id", result.comment_id)

    mode_context = mode.prepare_context(
        context,
        comment_id=result.comment_id,
        base_branch=result.branch_info.base_branch,
        claude_branch=result.branch_info.claude_branch,
    )
    system_prompt = mode.get_system_prompt(mode_context)
    if system_prompt:
        outputs.export_variable("APPEND_SYSTEM_PROMPT", system_prompt)

    return PrepareOutcome(mode=mode.name, contains_trigger=True, result=result)
