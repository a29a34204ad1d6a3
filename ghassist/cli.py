"""CLI entrypoint for ghassist."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from ghassist.commands import detect, prepare, sanitize
from ghassist.commands.parser import build_parser
from ghassist.logging_utils import configure_logging

logger = logging.getLogger(__name__)

COMMANDS = {
    "prepare": prepare.run,
    "detect": detect.run,
    "sanitize": sanitize.run,
}


def main(argv: list[str] | None = None, env: Mapping[str, str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    env = os.environ if env is None else env
    configure_logging(args.log_level, github_actions=env.get("GITHUB_ACTIONS") == "true")

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1
    return handler(args, env=env)


if __name__ == "__main__":
    raise SystemExit(main())
