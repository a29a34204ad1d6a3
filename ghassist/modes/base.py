"""Mode interface shared by the tag and agent handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ghassist.config import RunEnvironment
from ghassist.connectors.base import GithubConnector
from ghassist.models import (
    AutomationContext,
    EntityContext,
    FetchDataResult,
    ModeContext,
    ModeName,
    ModeResult,
    PreparedContext,
)
from ghassist.outputs import ActionOutputs


@dataclass(frozen=True)
class ModeOptions:
    context: EntityContext | AutomationContext
    client: GithubConnector
    github_token: str
    run_env: RunEnvironment
    outputs: ActionOutputs


class Mode(Protocol):
    name: ModeName
    description: str

    def should_trigger(self, context: EntityContext | AutomationContext) -> bool: ...

    def prepare_context(
        self,
        context: EntityContext | AutomationContext,
        *,
        comment_id: int | None = None,
        base_branch: str | None = None,
        claude_branch: str | None = None,
    ) -> ModeContext: ...

    def prepare(self, options: ModeOptions) -> ModeResult: ...

    def generate_prompt(
        self,
        prepared: PreparedContext,
        outputs: ActionOutputs,
        data: FetchDataResult | None = None,
    ) -> str: ...

    def get_allowed_tools(self, context: EntityContext | AutomationContext) -> list[str]: ...

    def get_disallowed_tools(self, context: EntityContext | AutomationContext) -> list[str]: ...

    def should_create_tracking_comment(self) -> bool: ...

    def get_system_prompt(self, mode_context: ModeContext) -> str | None: ...
