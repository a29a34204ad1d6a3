"""Trigger detection and actor authorization."""

from .actor import check_human_actor
from .permissions import authorize_entity_actor, check_write_permissions
from .trigger import check_contains_trigger

__all__ = ["check_contains_trigger", "check_human_actor", "check_write_permissions", "authorize_entity_actor"]
