"""Context block handed to the assistant in tag mode.

Every piece of user-authored text goes through ``sanitize_content`` before it
is placed in the prompt.
"""

from __future__ import annotations

from ghassist.fetcher import visible_comments, visible_reviews
from ghassist.models import (
    EntityContext,
    FetchDataResult,
    HistoryComment,
    IssueCommentPayload,
    IssuesPayload,
    PreparedContext,
    PullRequestData,
    PullRequestReviewCommentPayload,
    PullRequestReviewPayload,
)
from ghassist.sanitizer import sanitize_content


def _author(comment: HistoryComment) -> str:
    return comment.author.login if comment.author else "ghost"


def format_comments(comments: list[HistoryComment]) -> str:
    lines = [
        f"[{_author(comment)} at {comment.created_at.isoformat()}]: {sanitize_content(comment.body)}"
        for comment in visible_comments(comments)
    ]
    return "\n\n".join(lines) or "No comments"


def format_review_comments(data: FetchDataResult) -> str:
    blocks: list[str] = []
    for review in visible_reviews(data.reviews):
        author = review.author.login if review.author else "ghost"
        submitted = review.submitted_at.isoformat() if review.submitted_at else "pending"
        header = f"[Review by {author} at {submitted}]: {review.state or ''}".rstrip()
        blocks.append(f"{header}\n{sanitize_content(review.body)}")
    for comment in visible_comments(data.review_comments):
        location = f" {comment.path}:{comment.line}" if comment.path else ""
        blocks.append(f"[Comment by {_author(comment)} on{location}]: {sanitize_content(comment.body)}")
    return "\n\n".join(blocks) or "No review comments"


def format_changed_files(data: FetchDataResult) -> str:
    lines = [
        f"- {changed.path} ({changed.change_type}) +{changed.additions}/-{changed.deletions}"
        for changed in data.changed_files
    ]
    return "\n".join(lines) or "No changed files"


def event_description(context: EntityContext) -> tuple[str, str]:
    """Short event type label and a one-line description of what fired the run."""
    payload = context.payload
    if isinstance(payload, PullRequestReviewCommentPayload):
        return "REVIEW_COMMENT", "PR review comment"
    if isinstance(payload, PullRequestReviewPayload):
        return "PR_REVIEW", "PR review"
    if isinstance(payload, IssueCommentPayload):
        return "GENERAL_COMMENT", f"{'PR' if context.is_pr else 'issue'} comment"
    if isinstance(payload, IssuesPayload):
        if context.event_action == "assigned":
            return "ISSUE_ASSIGNED", f"issue assigned to '{context.inputs.assignee_trigger}'"
        if context.event_action == "labeled":
            return "ISSUE_LABELED", f"issue labeled with '{context.inputs.label_trigger}'"
        return "ISSUE_CREATED", "new issue"
    return "PULL_REQUEST", f"pull request {context.event_action or 'event'}"


def _trigger_comment_body(context: EntityContext) -> str | None:
    payload = context.payload
    if isinstance(payload, IssueCommentPayload | PullRequestReviewCommentPayload):
        return payload.comment.body
    if isinstance(payload, PullRequestReviewPayload):
        return payload.review.body
    return None


def build_tag_prompt(prepared: PreparedContext, data: FetchDataResult) -> str:
    context = prepared.github_context
    if not isinstance(context, EntityContext):
        raise TypeError("tag prompts need an issue or pull request context")

    event_type, trigger_context = event_description(context)
    context_data = data.context_data
    sections = [
        f"<event_type>{event_type}</event_type>",
        f"<is_pr>{'true' if context.is_pr else 'false'}</is_pr>",
        f"<trigger_context>{trigger_context}</trigger_context>",
        f"<repository>{prepared.repository}</repository>",
        f"<{'pr' if context.is_pr else 'issue'}_number>{context.entity_number}</{'pr' if context.is_pr else 'issue'}_number>",
        f"<title>{sanitize_content(context_data.title)}</title>",
        f"<body>\n{sanitize_content(context_data.body) or 'No description provided'}\n</body>",
    ]
    if isinstance(context_data, PullRequestData):
        sections.append(f"<branches>{context_data.head_ref_name} -> {context_data.base_ref_name}</branches>")
        sections.append(f"<changed_files>\n{format_changed_files(data)}\n</changed_files>")
        sections.append(f"<review_comments>\n{format_review_comments(data)}\n</review_comments>")
    sections.append(f"<comments>\n{format_comments(data.comments)}\n</comments>")

    trigger_body = _trigger_comment_body(context)
    if trigger_body is not None:
        sections.append(f"<trigger_comment>\n{sanitize_content(trigger_body)}\n</trigger_comment>")
    if prepared.claude_comment_id is not None:
        sections.append(f"<claude_comment_id>{prepared.claude_comment_id}</claude_comment_id>")
    if prepared.trigger_username:
        sections.append(f"<trigger_username>{prepared.trigger_username}</trigger_username>")
    if data.trigger_display_name:
        sections.append(f"<trigger_display_name>{sanitize_content(data.trigger_display_name)}</trigger_display_name>")
    sections.append(f"<trigger_phrase>{prepared.trigger_phrase}</trigger_phrase>")
    if prepared.prompt:
        sections.append(f"<custom_instructions>\n{prepared.prompt}\n</custom_instructions>")
    return "\n".join(sections) + "\n"
