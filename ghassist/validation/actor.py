"""Human-actor gate for interactive runs."""

from __future__ import annotations

import logging

from ghassist.connectors.base import GithubConnector
from ghassist.constants import BOT_SUFFIX, WILDCARD
from ghassist.errors import AuthorizationError, PermissionCheckError
from ghassist.models import EntityContext

logger = logging.getLogger(__name__)


def normalize_bot_name(name: str) -> str:
    normalized = name.strip().lower()
    if normalized.endswith(BOT_SUFFIX):
        normalized = normalized[: -len(BOT_SUFFIX)]
    return normalized


def parse_allowed_bots(allowed_bots: str) -> list[str]:
    return [name for name in (normalize_bot_name(part) for part in allowed_bots.split(",")) if name]


def check_human_actor(client: GithubConnector, context: EntityContext) -> None:
    """Raise ``AuthorizationError`` unless the actor is a user or an allow-listed bot."""
    try:
        user = client.get_user(context.actor)
    except Exception as exc:
        raise PermissionCheckError(context.actor, exc) from exc

    actor_type = user.type or "Unknown"
    logger.info("Actor type: %s", actor_type)
    if actor_type == "User":
        logger.info("Verified human actor: %s", context.actor)
        return

    allowed_bots = context.inputs.allowed_bots
    if allowed_bots.strip() == WILDCARD:
        logger.info("All bots are allowed, skipping human actor check for: %s", context.actor)
        return

    bot_name = normalize_bot_name(context.actor)
    if bot_name in parse_allowed_bots(allowed_bots):
        logger.info("Bot %s is in allowed list, skipping human actor check", bot_name)
        return

    raise AuthorizationError(
        f"Workflow initiated by non-human actor: {bot_name} (type: {actor_type}). "
        f"Add bot to allowed_bots list or use '{WILDCARD}' to allow all bots.",
        actor=context.actor,
        actor_type=actor_type,
    )
