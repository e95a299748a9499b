"""Utility functions for slugs, dates and text processing."""

from __future__ import annotations

import html
import math
import re
from datetime import date, datetime
from typing import Optional, Union

MONTH_NAMES = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)

_TAG_RE = re.compile(r"<[^>]+>")


def slugify(title: str) -> str:
    """Turn a title into a filesystem and URL safe slug.

    The result only contains ``[a-z0-9-]`` with no leading, trailing or
    repeated hyphens, and ``slugify(slugify(x)) == slugify(x)``.
    """
    if not title:
        return ""

    slug = title.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def strip_html(text: str) -> str:
    """Remove tags and decode entities."""
    if not text:
        return ""
    return html.unescape(_TAG_RE.sub("", text))


def clean_content(content: str, max_length: int = 1000) -> str:
    """Strip markup from feed content and cap its length."""
    text = strip_html(content)
    text = " ".join(text.split())
    return text[:max_length]


def month_name(value: Union[date, datetime]) -> str:
    """Lowercase English month name, independent of the process locale."""
    return MONTH_NAMES[value.month - 1]


def week_of_month(value: Union[date, datetime]) -> int:
    """Week number within the month (1-6), weeks starting on Sunday."""
    first = value.replace(day=1)
    # weekday() counts from Monday; shift so Sunday is 0
    first_dow = (first.weekday() + 1) % 7
    return math.ceil((value.day + first_dow) / 7)


def format_publish_date(value: Union[date, datetime]) -> str:
    """Format a date the way the website shows it, e.g. ``August 5, 2025``."""
    return f"{month_name(value).title()} {value.day}, {value.year}"


def parse_publish_date(value: str) -> Optional[datetime]:
    """Parse a ``Month D, YYYY`` or ISO date string; None when unparseable."""
    if not value:
        return None

    for fmt in ("%B %d, %Y", "%Y-%m-%d"):
        try:
            return datetime.strptime(value.strip(), fmt)
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def strip_code_fences(content: str) -> str:
    """Remove a surrounding ```html fence that models sometimes add."""
    stripped = content.strip()
    match = re.match(r"^```[a-zA-Z]*\n(.*)\n```$", stripped, re.DOTALL)
    return match.group(1) if match else content


def extract_title_from_content(content: str, fallback_date: Union[date, datetime]) -> str:
    """Find a title in generated content.

    Uses the first ``<h1>``, else the first non-empty line when it is
    between 10 and 100 characters, else a dated default title.
    """
    h1_match = re.search(r"<h1[^>]*>(.*?)</h1>", content or "", re.IGNORECASE | re.DOTALL)
    if h1_match:
        title = strip_html(h1_match.group(1)).strip()
        if title:
            return title

    lines = [line for line in (content or "").split("\n") if line.strip()]
    if lines:
        first_line = strip_html(lines[0]).strip().lstrip("#").strip()
        if 10 < len(first_line) < 100:
            return first_line

    return f"AI Weekly Digest - {format_publish_date(fallback_date)}"


def description_for_title(title: str) -> str:
    """Pick a short description from keywords in the title."""
    lowered = title.lower()
    if "weekly" in lowered:
        return "Your weekly roundup of AI news, funding, and industry insights"
    if "innovation" in lowered:
        return "The latest AI tools, research, and technical breakthroughs"
    if "business" in lowered or "career" in lowered:
        return "AI job opportunities, business applications, and career insights"
    return "Latest insights and updates from the AI industry"


def estimate_tokens(content: str) -> int:
    """Rough token count, one token per four characters."""
    return math.ceil(len(content or "") / 4)
