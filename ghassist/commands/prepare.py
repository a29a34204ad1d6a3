"""Workflow prepare command."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Mapping

from ghassist.commands.common import EXIT_OK, HANDLED_ERRORS, add_config_flags, exit_code_for, load_yaml_dict
from ghassist.config import load_run_environment
from ghassist.entrypoint import run_prepare
from ghassist.outputs import ActionOutputs

logger = logging.getLogger(__name__)


def register(sub: argparse._SubParsersAction) -> None:
    prepare = sub.add_parser("prepare", help="Normalize the event, gate the actor and prepare the selected mode")
    add_config_flags(prepare)


def run(args: argparse.Namespace, *, env: Mapping[str, str]) -> int:
    outputs = ActionOutputs.from_run_environment(load_run_environment(env))
    try:
        outcome = run_prepare(
            env,
            outputs=outputs,
            repo_path=args.repo_path,
            org_defaults=load_yaml_dict(args.org_config),
        )
    except HANDLED_ERRORS as exc:
        logger.error("Prepare step failed with error: %s", exc)
        outputs.set_output("prepare_error", str(exc))
        return exit_code_for(exc)
    logger.info("Prepare complete: mode=%s contains_trigger=%s", outcome.mode.value, outcome.contains_trigger)
    return EXIT_OK
