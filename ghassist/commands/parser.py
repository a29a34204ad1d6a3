"""CLI parser construction."""

from __future__ import annotations

import argparse

from ghassist.commands import detect, prepare, sanitize


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="GitHub event gating and preparation for the Claude assistant")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ERROR)")

    sub = parser.add_subparsers(dest="command", required=True)
    prepare.register(sub)
    detect.register(sub)
    sanitize.register(sub)
    return parser
