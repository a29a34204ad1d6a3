"""Time-boundary filtering of conversation history.

Only items that existed in their final form before the triggering comment or
review are handed to the assistant, so edits made after the trigger cannot
inject instructions retroactively.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Protocol, TypeVar

from ghassist.models import (
    AutomationContext,
    EntityContext,
    HistoryComment,
    HistoryReview,
    IssueCommentPayload,
    PullRequestReviewCommentPayload,
    PullRequestReviewPayload,
)


class _Editable(Protocol):
    updated_at: datetime | None
    last_edited_at: datetime | None


T = TypeVar("T", bound=_Editable)


def _as_utc(value: datetime) -> datetime:
    # GraphQL and webhook timestamps are UTC; naive values are read the same way.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def effective_last_modified(item: _Editable, created_at: datetime) -> datetime:
    if item.last_edited_at is not None:
        return item.last_edited_at
    if item.updated_at is not None:
        return item.updated_at
    return created_at


def filter_to_trigger_time(
    items: Sequence[T],
    trigger_time: datetime | None,
    *,
    created: Callable[[T], datetime],
) -> list[T]:
    """Keep items created and last modified strictly before ``trigger_time``."""
    if trigger_time is None:
        return list(items)

    cutoff = _as_utc(trigger_time)
    kept: list[T] = []
    for item in items:
        created_at = created(item)
        if _as_utc(created_at) >= cutoff:
            continue
        if _as_utc(effective_last_modified(item, created_at)) >= cutoff:
            continue
        kept.append(item)
    return kept


def filter_comments_to_trigger_time(comments: Sequence[HistoryComment], trigger_time: datetime | None) -> list[HistoryComment]:
    return filter_to_trigger_time(comments, trigger_time, created=lambda comment: comment.created_at)


def filter_reviews_to_trigger_time(reviews: Sequence[HistoryReview], trigger_time: datetime | None) -> list[HistoryReview]:
    if trigger_time is None:
        return list(reviews)
    # pending reviews have no submission time and never predate the trigger
    submitted = [review for review in reviews if review.submitted_at is not None]
    return filter_to_trigger_time(submitted, trigger_time, created=lambda review: review.submitted_at)


def extract_trigger_timestamp(context: EntityContext | AutomationContext) -> datetime | None:
    """Creation time of the comment or review that fired the event, if there is one."""
    if not isinstance(context, EntityContext):
        return None
    payload = context.payload
    if isinstance(payload, IssueCommentPayload | PullRequestReviewCommentPayload):
        return payload.comment.created_at
    if isinstance(payload, PullRequestReviewPayload):
        return payload.review.submitted_at
    return None
