"""Issue and pull request history retrieval, cut at the trigger time."""

from __future__ import annotations

import logging
from datetime import datetime

from ghassist.connectors.base import GithubConnector
from ghassist.connectors.github_gh import GithubApiError
from ghassist.history import filter_comments_to_trigger_time, filter_reviews_to_trigger_time
from ghassist.models import FetchDataResult, HistoryComment, HistoryReview, IssueData, PullRequestData

logger = logging.getLogger(__name__)


def fetch_user_display_name(client: GithubConnector, login: str) -> str | None:
    try:
        return client.get_user_display_name(login)
    except Exception as exc:
        logger.warning("Failed to fetch user display name for %s: %s", login, exc)
        return None


def visible_comments(comments: list[HistoryComment]) -> list[HistoryComment]:
    return [comment for comment in comments if comment.body and not comment.is_minimized]


def visible_reviews(reviews: list[HistoryReview]) -> list[HistoryReview]:
    return [review for review in reviews if review.body]


def fetch_github_data(
    client: GithubConnector,
    *,
    number: int,
    is_pr: bool,
    trigger_username: str | None = None,
    trigger_time: datetime | None = None,
) -> FetchDataResult:
    """Fetch the issue or PR and every piece of history that predates the trigger."""
    kind = "PR" if is_pr else "issue"
    context_data: IssueData | PullRequestData
    try:
        context_data = client.fetch_pull_request(number) if is_pr else client.fetch_issue(number)
    except GithubApiError as exc:
        logger.error("Failed to fetch %s data: %s", kind, exc)
        raise GithubApiError(f"Failed to fetch {kind} data") from exc
    logger.info("Successfully fetched %s #%s data", kind, number)

    comments = filter_comments_to_trigger_time(context_data.comments, trigger_time)
    changed_files = []
    reviews: list[HistoryReview] = []
    review_comments: list[HistoryComment] = []
    if isinstance(context_data, PullRequestData):
        changed_files = list(context_data.files)
        reviews = [
            review.model_copy(update={"comments": filter_comments_to_trigger_time(review.comments, trigger_time)})
            for review in filter_reviews_to_trigger_time(context_data.reviews, trigger_time)
        ]
        nested = [comment for review in context_data.reviews for comment in review.comments]
        review_comments = filter_comments_to_trigger_time(nested, trigger_time)

    trigger_display_name = None
    if trigger_username:
        trigger_display_name = fetch_user_display_name(client, trigger_username)

    return FetchDataResult(
        context_data=context_data,
        comments=comments,
        changed_files=changed_files,
        reviews=reviews,
        review_comments=review_comments,
        trigger_display_name=trigger_display_name,
    )
