"""Error taxonomy for the prepare pipeline."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid event or input combination; the run aborts before any side effect."""


class UnsupportedEventError(ConfigurationError):
    def __init__(self, event_name: str) -> None:
        super().__init__(f"Unsupported event type: {event_name}")
        self.event_name = event_name


class AuthorizationError(RuntimeError):
    def __init__(self, message: str, *, actor: str, actor_type: str | None = None) -> None:
        super().__init__(message)
        self.actor = actor
        self.actor_type = actor_type


class InsufficientPermissionsError(AuthorizationError):
    def __init__(self, actor: str, permission: str | None = None) -> None:
        super().__init__(
            f"Actor {actor} does not have write permissions to the repository (permission: {permission or 'unknown'})",
            actor=actor,
        )
        self.permission = permission


class PermissionCheckError(RuntimeError):
    """A permission or user lookup failed for transport/API reasons."""

    def __init__(self, actor: str, cause: BaseException) -> None:
        super().__init__(f"Failed to check permissions for {actor}: {cause}")
        self.actor = actor
        self.cause = cause
