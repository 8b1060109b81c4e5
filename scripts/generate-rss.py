#!/usr/bin/env python3
"""Generate an RSS 2.0 feed from a changelog in a local git checkout."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from changelog import parse_changelog
from feed import render_feed
from history import DEFAULT_BLAME_TIMEOUT, make_date_fn
from shared import configure_logging, log_event


DEFAULT_REPO_DIR = "claude-code"
DEFAULT_CHANGELOG = "CHANGELOG.md"
DEFAULT_OUTPUT = "public/claude-code-changelog.xml"
LOGGER = logging.getLogger("changelog_rss.generate")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate an RSS feed from a changelog.")
    parser.add_argument(
        "--repo-dir",
        default=DEFAULT_REPO_DIR,
        help=f"Git checkout containing the changelog (default: {DEFAULT_REPO_DIR}).",
    )
    parser.add_argument(
        "--changelog",
        default=DEFAULT_CHANGELOG,
        help=f"Changelog path relative to repo-dir (default: {DEFAULT_CHANGELOG}).",
    )
    parser.add_argument(
        "--output",
        default=DEFAULT_OUTPUT,
        help=f"RSS feed file to write (default: {DEFAULT_OUTPUT}).",
    )
    parser.add_argument(
        "--blame-timeout",
        type=float,
        default=DEFAULT_BLAME_TIMEOUT,
        help=f"Seconds to wait for each git blame lookup (default: {DEFAULT_BLAME_TIMEOUT}).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Structured log verbosity written to stderr.",
    )
    return parser.parse_args(argv)


def validate_args(args: argparse.Namespace) -> None:
    if not args.repo_dir or not args.repo_dir.strip():
        raise ValueError("repo-dir must be non-empty")
    if not args.changelog or not args.changelog.strip():
        raise ValueError("changelog must be non-empty")
    if not args.output or not args.output.strip():
        raise ValueError("output must be non-empty")
    if args.blame_timeout <= 0:
        raise ValueError("blame-timeout must be greater than zero")


def ensure_parent_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    try:
        validate_args(args)
    except ValueError as exc:
        print(f"::error::{exc}", file=sys.stderr)
        return 1

    repo_dir = Path(args.repo_dir)
    changelog_path = repo_dir / args.changelog
    output_path = Path(args.output)

    log_event(LOGGER, logging.INFO, "rss_generation_started", changelog=changelog_path)

    if not changelog_path.is_file():
        print(f"::error::Changelog not found at {changelog_path}", file=sys.stderr)
        print(f"::error::Make sure the {repo_dir} repository is cloned in the current directory", file=sys.stderr)
        return 1

    records = parse_changelog(changelog_path.read_text(encoding="utf-8"))
    log_event(LOGGER, logging.INFO, "changelog_parsed", versions=len(records))

    date_fn = make_date_fn(repo_dir, args.changelog, timeout=args.blame_timeout)
    rss_xml = render_feed(records, date_fn)

    ensure_parent_directory(output_path)
    output_path.write_text(rss_xml, encoding="utf-8")
    log_event(LOGGER, logging.INFO, "rss_feed_written", output=output_path, versions=len(records))
    print(f"::notice::RSS feed generated: {output_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
