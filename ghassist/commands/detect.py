"""Offline event inspection command."""

from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Mapping

from ghassist.commands.common import EXIT_OK, add_config_flags, exit_code_for, load_yaml_dict
from ghassist.config import load_action_inputs
from ghassist.context import load_event_payload, parse_github_context, parse_repository
from ghassist.errors import ConfigurationError
from ghassist.history import extract_trigger_timestamp
from ghassist.models import EntityContext
from ghassist.modes.detector import get_mode_description
from ghassist.modes.registry import get_mode

logger = logging.getLogger(__name__)


def register(sub: argparse._SubParsersAction) -> None:
    detect = sub.add_parser("detect", help="Report mode and trigger result for an event payload without calling GitHub")
    detect.add_argument("--event-name", required=True, help="GitHub event name, e.g. issue_comment")
    detect.add_argument("--event-path", required=True, help="Path to the webhook payload JSON")
    detect.add_argument("--repository", help="owner/repo (defaults to payload.repository.full_name)")
    detect.add_argument("--actor", help="Actor login (defaults to payload.sender.login)")
    add_config_flags(detect)


def run(args: argparse.Namespace, *, env: Mapping[str, str]) -> int:
    try:
        payload = load_event_payload(args.event_path)
        inputs = load_action_inputs(env, repo_path=args.repo_path, org_defaults=load_yaml_dict(args.org_config))
        full_name = args.repository or (payload.get("repository") or {}).get("full_name") or ""
        context = parse_github_context(
            args.event_name,
            payload,
            run_id=env.get("GITHUB_RUN_ID", ""),
            actor=args.actor or (payload.get("sender") or {}).get("login", ""),
            repository=parse_repository(full_name),
            inputs=inputs,
        )
        mode = get_mode(context)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return exit_code_for(exc)

    trigger_time = extract_trigger_timestamp(context)
    report = {
        "event_name": context.event_name.value,
        "event_action": context.event_action,
        "kind": context.kind,
        "mode": mode.name.value,
        "mode_description": get_mode_description(mode.name),
        "contains_trigger": mode.should_trigger(context),
        "trigger_time": trigger_time.isoformat() if trigger_time else None,
        "entity_number": context.entity_number if isinstance(context, EntityContext) else None,
        "is_pr": context.is_pr if isinstance(context, EntityContext) else None,
    }
    print(json.dumps(report, indent=2))
    return EXIT_OK
