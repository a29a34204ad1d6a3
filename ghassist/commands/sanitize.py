"""Sanitize text from a file or stdin."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Mapping
from pathlib import Path

from ghassist.commands.common import EXIT_OK
from ghassist.sanitizer import sanitize_content


def register(sub: argparse._SubParsersAction) -> None:
    sanitize = sub.add_parser("sanitize", help="Print the sanitized form of untrusted text")
    sanitize.add_argument("--input", help="Path to a text file (defaults to stdin)")


def run(args: argparse.Namespace, *, env: Mapping[str, str]) -> int:
    _ = env
    text = Path(args.input).read_text(encoding="utf-8") if args.input else sys.stdin.read()
    sys.stdout.write(sanitize_content(text))
    return EXIT_OK
