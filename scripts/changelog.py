#!/usr/bin/env python3
"""Split a markdown changelog into per-version records.

A version section starts at a ``## x.y.z`` heading and runs until the next
one. Anything after the version number on the heading line is ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field


VERSION_HEADING_RE = re.compile(r"^## (\d+\.\d+\.\d+)")


@dataclass(frozen=True)
class VersionRecord:
    version: str
    body: str


@dataclass
class _OpenVersion:
    version: str
    lines: list[str] = field(default_factory=list)

    def add(self, line: str) -> None:
        # Blank lines only count once the section has content.
        if not self.lines and not line.strip():
            return
        self.lines.append(line)

    def close(self) -> VersionRecord:
        return VersionRecord(version=self.version, body="\n".join(self.lines).strip())


def split_lines(text: str) -> list[str]:
    # Only "\n" ends a line; U+2028 and friends stay part of the line.
    return [line.removesuffix("\r") for line in text.split("\n")]


def match_version_heading(line: str) -> str | None:
    match = VERSION_HEADING_RE.match(line)
    if not match:
        return None
    return match.group(1)


def parse_changelog(text: str) -> list[VersionRecord]:
    records: list[VersionRecord] = []
    current: _OpenVersion | None = None

    for line in split_lines(text):
        version = match_version_heading(line)
        if version is not None:
            if current is not None:
                records.append(current.close())
            current = _OpenVersion(version)
            continue

        if current is not None:
            current.add(line)

    if current is not None:
        records.append(current.close())

    return records
