#!/usr/bin/env python3
"""Infer when a changelog version was published from ``git blame``.

The changelog carries no dates, so the best available signal is the commit
that last touched the version's heading line. That is a heuristic: a later
edit to the heading moves the date forward.
"""

from __future__ import annotations

import datetime
import logging
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from changelog import match_version_heading, split_lines
from shared import log_event


DEFAULT_BLAME_TIMEOUT = 30
LOGGER = logging.getLogger("changelog_rss.history")

# <sha> [<filename>] (<author> <iso-strict date> <line>) <content>
BLAME_LINE_RE = re.compile(
    r"^\^?(?P<commit>[0-9a-f]+)(?:\s+\S+)?\s+\("
    r"(?P<author>.*?)\s+"
    r"(?P<committed_at>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:Z|[+-]\d{2}:?\d{2})?)\s+"
    r"(?P<line_number>\d+)\) ?(?P<content>.*)$"
)


@dataclass(frozen=True)
class BlameLine:
    commit: str
    author: str
    committed_at: str
    line_number: int
    content: str


@dataclass(frozen=True)
class DateResolution:
    version: str
    date: datetime.datetime | None = None
    reason: str = ""

    @property
    def resolved(self) -> bool:
        return self.date is not None


BlameFn = Callable[..., list[BlameLine]]


def parse_iso8601(timestamp: str) -> datetime.datetime:
    value = timestamp.strip()
    if not value:
        raise ValueError("timestamp must be non-empty")
    if value.endswith("Z"):
        value = f"{value[:-1]}+00:00"
    dt = datetime.datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc)


def parse_blame_line(line: str) -> BlameLine | None:
    match = BLAME_LINE_RE.match(line)
    if not match:
        return None
    return BlameLine(
        commit=match.group("commit"),
        author=match.group("author").strip(),
        committed_at=match.group("committed_at"),
        line_number=int(match.group("line_number")),
        content=match.group("content"),
    )


def git_blame(repo_dir: Path, changelog_path: str, *, timeout: float) -> list[BlameLine]:
    result = subprocess.run(
        ["git", "-C", str(repo_dir), "blame", "--date=iso-strict", "--", changelog_path],
        check=True,
        capture_output=True,
        encoding="utf-8",
        errors="replace",
        timeout=timeout,
    )
    blame_lines: list[BlameLine] = []
    for raw_line in split_lines(result.stdout):
        parsed = parse_blame_line(raw_line)
        if parsed is not None:
            blame_lines.append(parsed)
    return blame_lines


def find_heading_lines(blame_lines: list[BlameLine], version: str) -> list[BlameLine]:
    return [line for line in blame_lines if match_version_heading(line.content) == version]


def resolve_version_date(
    version: str,
    *,
    repo_dir: Path,
    changelog_path: str,
    timeout: float = DEFAULT_BLAME_TIMEOUT,
    blame: BlameFn = git_blame,
) -> DateResolution:
    """Look up the blame date of ``## <version>``.

    Never raises: every failure comes back as an unresolved ``DateResolution``
    carrying the reason, so the caller decides what to fall back to.
    """
    try:
        blame_lines = blame(repo_dir, changelog_path, timeout=timeout)
    except subprocess.TimeoutExpired:
        return DateResolution(version=version, reason=f"git blame timed out after {timeout}s")
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or "").strip() or f"exit code {exc.returncode}"
        return DateResolution(version=version, reason=f"git blame failed: {detail}")
    except OSError as exc:
        return DateResolution(version=version, reason=f"git blame unavailable: {exc}")

    if not blame_lines:
        return DateResolution(version=version, reason="git blame returned no lines")

    matches = find_heading_lines(blame_lines, version)
    if not matches:
        return DateResolution(version=version, reason="heading not found in blame output")

    timestamps = {line.committed_at for line in matches}
    if len(timestamps) > 1:
        lines = ", ".join(str(line.line_number) for line in matches)
        return DateResolution(version=version, reason=f"heading is ambiguous (lines {lines})")

    try:
        date = parse_iso8601(matches[0].committed_at)
    except ValueError as exc:
        return DateResolution(version=version, reason=f"unparseable blame date: {exc}")

    return DateResolution(version=version, date=date)


def date_or_now(resolution: DateResolution, *, now: datetime.datetime | None = None) -> datetime.datetime:
    if resolution.date is not None:
        return resolution.date

    fallback = now or datetime.datetime.now(tz=datetime.timezone.utc)
    log_event(
        LOGGER,
        logging.WARNING,
        "version_date_fallback",
        version=resolution.version,
        reason=resolution.reason,
        fallback=fallback.isoformat(),
    )
    return fallback


def make_date_fn(
    repo_dir: Path,
    changelog_path: str,
    *,
    timeout: float = DEFAULT_BLAME_TIMEOUT,
    blame: BlameFn = git_blame,
    now: datetime.datetime | None = None,
) -> Callable[[str], datetime.datetime]:
    def _date_for(version: str) -> datetime.datetime:
        resolution = resolve_version_date(
            version,
            repo_dir=repo_dir,
            changelog_path=changelog_path,
            timeout=timeout,
            blame=blame,
        )
        return date_or_now(resolution, now=now)

    return _date_for
