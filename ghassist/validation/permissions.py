"""Repository write-permission gate."""

from __future__ import annotations

import logging

from ghassist.connectors.base import GithubConnector
from ghassist.constants import BOT_SUFFIX, WILDCARD, WRITE_PERMISSION_LEVELS
from ghassist.errors import InsufficientPermissionsError, PermissionCheckError
from ghassist.models import EntityContext

logger = logging.getLogger(__name__)


def _bypass_reason(actor: str, allowed_non_write_users: str) -> str | None:
    allowed = allowed_non_write_users.strip()
    if allowed == WILDCARD:
        return f"allowed_non_write_users='{WILDCARD}'"
    users = [user.strip() for user in allowed.split(",") if user.strip()]
    if actor in users:
        return "allowed_non_write_users configuration"
    return None


def _write_access(
    client: GithubConnector,
    context: EntityContext,
    allowed_non_write_users: str,
    github_token_provided: bool,
) -> tuple[bool, str | None]:
    """Decide write access; the second item is the permission level read from GitHub, if one was."""
    actor = context.actor
    repository = context.repository
    logger.info("Checking permissions for actor: %s", actor)

    if allowed_non_write_users and github_token_provided:
        reason = _bypass_reason(actor, allowed_non_write_users)
        if reason is not None:
            logger.warning(
                "SECURITY WARNING: Bypassing write permission check for %s due to %s. "
                "This should only be used for workflows with very limited permissions.",
                actor,
                reason,
            )
            return True, None

    if actor.endswith(BOT_SUFFIX):
        logger.info("Actor is a GitHub App: %s", actor)
        return True, None

    try:
        permission = client.get_collaborator_permission(repository.owner, repository.repo, actor)
    except Exception as exc:
        logger.error("Failed to check permissions: %s", exc)
        raise PermissionCheckError(actor, exc) from exc

    logger.info("Permission level retrieved: %s", permission)
    if permission in WRITE_PERMISSION_LEVELS:
        logger.info("Actor has write access: %s", permission)
        return True, permission
    logger.warning("Actor has insufficient permissions: %s", permission)
    return False, permission


def check_write_permissions(
    client: GithubConnector,
    context: EntityContext,
    allowed_non_write_users: str = "",
    github_token_provided: bool = False,
) -> bool:
    """Return whether the actor may run the assistant against this repository.

    The non-write allow-list is only honoured when the workflow supplied its
    own token; with an app-issued token it is ignored entirely.
    """
    allowed, _ = _write_access(client, context, allowed_non_write_users, github_token_provided)
    return allowed


def authorize_entity_actor(client: GithubConnector, context: EntityContext, github_token_provided: bool) -> None:
    """Write-permission gate as the entrypoint applies it; raises on a negative answer."""
    allowed, permission = _write_access(
        client,
        context,
        context.inputs.allowed_non_write_users,
        github_token_provided,
    )
    if not allowed:
        raise InsufficientPermissionsError(context.actor, permission)
