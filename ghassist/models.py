"""Core Pydantic domain models for ghassist."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ghassist.config import ActionInputs
from ghassist.constants import AUTOMATION_EVENT_NAMES, ENTITY_EVENT_NAMES


class EventName(str, Enum):
    ISSUES = "issues"
    ISSUE_COMMENT = "issue_comment"
    PULL_REQUEST = "pull_request"
    PULL_REQUEST_REVIEW = "pull_request_review"
    PULL_REQUEST_REVIEW_COMMENT = "pull_request_review_comment"
    WORKFLOW_DISPATCH = "workflow_dispatch"
    REPOSITORY_DISPATCH = "repository_dispatch"
    SCHEDULE = "schedule"
    WORKFLOW_RUN = "workflow_run"


class ModeName(str, Enum):
    TAG = "tag"
    AGENT = "agent"


# Webhook payload shapes. Only the fields the pipeline reads are declared.


class GithubUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    login: str
    id: int | None = None
    type: str | None = None
    name: str | None = None


class GithubLabel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str


class GithubRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ref: str = ""
    sha: str | None = None


class GithubIssue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    number: int
    title: str = ""
    body: str | None = None
    user: GithubUser | None = None
    state: str = "open"
    pull_request: dict[str, Any] | None = None
    created_at: datetime | None = None


class GithubPullRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    number: int
    title: str = ""
    body: str | None = None
    user: GithubUser | None = None
    state: str = "open"
    draft: bool = False
    base: GithubRef | None = None
    head: GithubRef | None = None
    created_at: datetime | None = None


class GithubComment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    body: str | None = None
    user: GithubUser | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    html_url: str | None = None


class GithubReview(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    body: str | None = None
    user: GithubUser | None = None
    state: str | None = None
    submitted_at: datetime | None = None


class IssuesPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: str | None = None
    issue: GithubIssue
    assignee: GithubUser | None = None
    label: GithubLabel | None = None


class IssueCommentPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: str | None = None
    issue: GithubIssue
    comment: GithubComment


class PullRequestPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: str | None = None
    pull_request: GithubPullRequest


class PullRequestReviewPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: str | None = None
    pull_request: GithubPullRequest
    review: GithubReview


class PullRequestReviewCommentPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: str | None = None
    pull_request: GithubPullRequest
    comment: GithubComment


class WorkflowDispatchPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    inputs: dict[str, Any] = Field(default_factory=dict)
    ref: str | None = None
    workflow: str | None = None


class RepositoryDispatchPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: str | None = None
    client_payload: dict[str, Any] = Field(default_factory=dict)


class SchedulePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    schedule: str | None = None


class WorkflowRunPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: str | None = None
    workflow_run: dict[str, Any] = Field(default_factory=dict)


EntityPayload = (
    IssuesPayload | IssueCommentPayload | PullRequestPayload | PullRequestReviewPayload | PullRequestReviewCommentPayload
)
AutomationPayload = WorkflowDispatchPayload | RepositoryDispatchPayload | SchedulePayload | WorkflowRunPayload


class Repository(BaseModel):
    model_config = ConfigDict(extra="forbid")

    owner: str
    repo: str
    full_name: str


class _BaseContext(BaseModel):
    model_config = ConfigDict(extra="forbid")

    run_id: str
    event_name: EventName
    event_action: str | None = None
    repository: Repository
    actor: str
    inputs: ActionInputs


class EntityContext(_BaseContext):
    """An event tied to one issue or pull request."""

    kind: Literal["entity"] = "entity"
    payload: EntityPayload
    entity_number: int
    is_pr: bool

    @field_validator("event_name")
    @classmethod
    def _entity_event(cls, value: EventName) -> EventName:
        if value.value not in ENTITY_EVENT_NAMES:
            raise ValueError(f"{value.value} is not an issue or pull request event")
        return value


class AutomationContext(_BaseContext):
    """A scheduled or dispatched event with no issue or pull request."""

    kind: Literal["automation"] = "automation"
    payload: AutomationPayload

    @field_validator("event_name")
    @classmethod
    def _automation_event(cls, value: EventName) -> EventName:
        if value.value not in AUTOMATION_EVENT_NAMES:
            raise ValueError(f"{value.value} is not an automation event")
        return value


GithubContext = Annotated[EntityContext | AutomationContext, Field(discriminator="kind")]


# Conversation history as returned by the GraphQL API.


def _unwrap_nodes(value: Any) -> Any:
    if isinstance(value, dict) and "nodes" in value:
        return value.get("nodes") or []
    return value


class HistoryAuthor(BaseModel):
    model_config = ConfigDict(extra="ignore")

    login: str


class HistoryComment(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    database_id: int | None = Field(default=None, alias="databaseId")
    body: str = ""
    author: HistoryAuthor | None = None
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    last_edited_at: datetime | None = Field(default=None, alias="lastEditedAt")
    is_minimized: bool = Field(default=False, alias="isMinimized")
    path: str | None = None
    line: int | None = None


class HistoryReview(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    database_id: int | None = Field(default=None, alias="databaseId")
    body: str = ""
    author: HistoryAuthor | None = None
    state: str | None = None
    submitted_at: datetime | None = Field(default=None, alias="submittedAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    last_edited_at: datetime | None = Field(default=None, alias="lastEditedAt")
    comments: list[HistoryComment] = Field(default_factory=list)

    @field_validator("comments", mode="before")
    @classmethod
    def _comment_nodes(cls, value: Any) -> Any:
        return _unwrap_nodes(value)


class ChangedFile(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    path: str
    additions: int = 0
    deletions: int = 0
    change_type: str = Field(default="MODIFIED", alias="changeType")


class IssueData(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str = ""
    body: str = ""
    author: HistoryAuthor | None = None
    state: str = "OPEN"
    created_at: datetime | None = Field(default=None, alias="createdAt")
    comments: list[HistoryComment] = Field(default_factory=list)

    @field_validator("comments", mode="before")
    @classmethod
    def _comment_nodes(cls, value: Any) -> Any:
        return _unwrap_nodes(value)


class PullRequestData(IssueData):
    base_ref_name: str = Field(default="", alias="baseRefName")
    head_ref_name: str = Field(default="", alias="headRefName")
    head_ref_oid: str = Field(default="", alias="headRefOid")
    additions: int = 0
    deletions: int = 0
    files: list[ChangedFile] = Field(default_factory=list)
    reviews: list[HistoryReview] = Field(default_factory=list)

    @field_validator("files", "reviews", mode="before")
    @classmethod
    def _nested_nodes(cls, value: Any) -> Any:
        return _unwrap_nodes(value)


class FetchDataResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    context_data: IssueData | PullRequestData
    comments: list[HistoryComment] = Field(default_factory=list)
    changed_files: list[ChangedFile] = Field(default_factory=list)
    reviews: list[HistoryReview] = Field(default_factory=list)
    review_comments: list[HistoryComment] = Field(default_factory=list)
    trigger_display_name: str | None = None


# Mode lifecycle


class BranchInfo(BaseModel):
    model_config = ConfigDict(extra="forbid")

    base_branch: str
    current_branch: str
    claude_branch: str | None = None


class ModeResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    comment_id: int | None = None
    branch_info: BranchInfo
    mcp_config: dict[str, Any] = Field(default_factory=dict)


class ModeContext(BaseModel):
    """What a mode knows about the run once preparation has started."""

    model_config = ConfigDict(extra="forbid")

    mode: ModeName
    github_context: GithubContext
    comment_id: int | None = None
    base_branch: str | None = None
    claude_branch: str | None = None


class PreparedContext(BaseModel):
    """Inputs to prompt generation."""

    model_config = ConfigDict(extra="forbid")

    repository: str
    trigger_phrase: str
    github_context: GithubContext
    claude_comment_id: int | None = None
    trigger_username: str | None = None
    prompt: str | None = None
    claude_branch: str | None = None
    base_branch: str | None = None
