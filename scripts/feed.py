#!/usr/bin/env python3
"""Build an RSS 2.0 feed with one item per changelog version."""

from __future__ import annotations

import datetime
import email.utils
from dataclasses import dataclass
from typing import Callable, Iterable
from xml.sax.saxutils import escape, quoteattr

from changelog import VersionRecord
from notes_render import markdown_to_html_fragment


GENERATOR = "changelog-rss"


@dataclass(frozen=True)
class FeedChannel:
    title: str
    description: str
    feed_url: str
    site_url: str
    language: str
    ttl_minutes: int
    product_name: str
    changelog_url: str
    guid_prefix: str


@dataclass(frozen=True)
class FeedEntry:
    title: str
    link: str
    guid: str
    pub_date: datetime.datetime
    description_html: str


DEFAULT_CHANNEL = FeedChannel(
    title="Claude Code Changelog",
    description="Latest updates and changes to Claude Code",
    feed_url="https://anthropics.github.io/claude-code-changelog-rss/claude-code-changelog.xml",
    site_url="https://github.com/anthropics/claude-code",
    language="en",
    ttl_minutes=60 * 24,
    product_name="Claude Code",
    changelog_url="https://github.com/anthropics/claude-code/blob/main/CHANGELOG.md",
    guid_prefix="claude-code-",
)


def format_rfc2822(dt: datetime.datetime) -> str:
    aware = dt if dt.tzinfo is not None else dt.replace(tzinfo=datetime.timezone.utc)
    return email.utils.format_datetime(aware.astimezone(datetime.timezone.utc), usegmt=True)


def cdata_escape(text: str) -> str:
    # Prevent illegal "]]>" in CDATA by splitting sections.
    return text.replace("]]>", "]]]]><![CDATA[>")


def xml_text(text: str) -> str:
    return escape(text, entities={})


def entry_link(channel: FeedChannel, version: str) -> str:
    return f"{channel.changelog_url}#{version}"


def entry_guid(channel: FeedChannel, version: str) -> str:
    return f"{channel.guid_prefix}{version}"


def build_entry(record: VersionRecord, channel: FeedChannel, pub_date: datetime.datetime) -> FeedEntry:
    return FeedEntry(
        title=f"{channel.product_name} {record.version}",
        link=entry_link(channel, record.version),
        guid=entry_guid(channel, record.version),
        pub_date=pub_date,
        description_html=markdown_to_html_fragment(record.body),
    )


def build_entries(
    records: Iterable[VersionRecord],
    date_fn: Callable[[str], datetime.datetime],
    channel: FeedChannel = DEFAULT_CHANNEL,
) -> list[FeedEntry]:
    return [build_entry(record, channel, date_fn(record.version)) for record in records]


def build_rss_xml(channel: FeedChannel, entries: list[FeedEntry], *, generated_at: datetime.datetime) -> str:
    build_date = xml_text(format_rfc2822(generated_at))
    lines: list[str] = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">',
        "  <channel>",
        f"    <title>{xml_text(channel.title)}</title>",
        f"    <description>{xml_text(channel.description)}</description>",
        f"    <link>{xml_text(channel.site_url)}</link>",
        f'    <atom:link href={quoteattr(channel.feed_url)} rel="self" type="application/rss+xml"/>',
        f"    <generator>{xml_text(GENERATOR)}</generator>",
        f"    <lastBuildDate>{build_date}</lastBuildDate>",
        f"    <pubDate>{build_date}</pubDate>",
        f"    <language>{xml_text(channel.language)}</language>",
        f"    <ttl>{channel.ttl_minutes}</ttl>",
    ]

    for entry in entries:
        lines.extend(
            [
                "    <item>",
                f"      <title>{xml_text(entry.title)}</title>",
                f"      <description><![CDATA[{cdata_escape(entry.description_html)}]]></description>",
                f"      <link>{xml_text(entry.link)}</link>",
                f'      <guid isPermaLink="false">{xml_text(entry.guid)}</guid>',
                f"      <pubDate>{xml_text(format_rfc2822(entry.pub_date))}</pubDate>",
                "    </item>",
            ]
        )

    lines.extend(["  </channel>", "</rss>", ""])
    return "\n".join(lines)


def render_feed(
    records: Iterable[VersionRecord],
    date_fn: Callable[[str], datetime.datetime],
    *,
    channel: FeedChannel = DEFAULT_CHANNEL,
    generated_at: datetime.datetime | None = None,
) -> str:
    entries = build_entries(records, date_fn, channel)
    build_time = generated_at or datetime.datetime.now(tz=datetime.timezone.utc)
    return build_rss_xml(channel, entries, generated_at=build_time)
