"""Normalization of raw feed entries into cached articles."""

from __future__ import annotations

import logging
import re
import time
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from dateutil import parser as date_parser

from .content import clean_text, decode_html_entities, extract_image_url, reading_time
from .models import Article, RawEntry, Source

LOGGER = logging.getLogger(__name__)

SLUG_MAX_LENGTH = 100

# Abbreviations that dateutil either rejects or leaves naive.
TIMEZONE_OFFSETS = {
    "BST": "+0100",
    "GMT": "+0000",
    "UTC": "+0000",
    "EST": "-0500",
    "EDT": "-0400",
    "CST": "-0600",
    "CDT": "-0500",
    "MST": "-0700",
    "MDT": "-0600",
    "PST": "-0800",
    "PDT": "-0700",
    "CET": "+0100",
    "CEST": "+0200",
}
_TIMEZONE_ABBREVIATION = re.compile(r"\s(%s)\b" % "|".join(TIMEZONE_OFFSETS))

NEWS_KEYWORDS = [
    "breaking", "urgent", "latest", "developing", "exclusive", "report", "update",
    "announces", "confirms", "reveals", "investigation", "crisis", "emergency",
    "warning", "alert", "statement", "press release", "official", "government",
    "president", "minister", "ceo", "chairman", "spokesperson", "analyst",
]

URGENCY_RULES = [
    ("breaking", ("breaking", "urgent", "emergency")),
    ("urgent", ("developing", "just in", "alert")),
    ("normal", ("update", "latest")),
]

CATEGORY_NEWS_TYPES = {
    "government": "politics",
    "business": "business",
    "sports": "sports",
    "technology": "technology",
    "science": "science",
    "entertainment": "entertainment",
}

LOCATION_PATTERNS = [
    re.compile(r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*),\s*([A-Z]{2})\b"),  # City, ST
    re.compile(r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*),\s*([A-Z][a-z]+)\b"),  # City, Country
    re.compile(r"\bWASHINGTON\b|\bLONDON\b|\bPARIS\b|\bTOKYO\b|\bBERLIN\b|\bMOSCOW\b", re.IGNORECASE),
]


def to_iso(value: datetime) -> str:
    """Format an aware datetime as a UTC ISO-8601 string with milliseconds."""

    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def normalize_timezone(value: str) -> str:
    return _TIMEZONE_ABBREVIATION.sub(lambda match: " " + TIMEZONE_OFFSETS[match.group(1)], value)


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a feed date string into an aware UTC datetime, or ``None``."""

    if not value or not isinstance(value, str):
        return None
    try:
        parsed = date_parser.parse(normalize_timezone(value.strip()))
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def resolve_pub_date(entry: RawEntry, now: Optional[datetime] = None) -> str:
    """Pick the publication date of an entry, falling back to ``now``."""

    candidates = [value for value in (entry.pub_date, entry.dc_date, entry.iso_date) if value]
    for value in candidates:
        parsed = parse_date(value)
        if parsed is not None:
            return to_iso(parsed)

    if candidates:
        LOGGER.warning("Invalid date %r for article %r, using current date", candidates[0], entry.title)
    return to_iso(now or datetime.now(timezone.utc))


def slugify(text: Optional[str]) -> str:
    """Convert text to a URL-friendly slug of at most 100 characters."""

    if not text or not isinstance(text, str):
        return ""
    slug = text.lower().strip()
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"[^\w\-]+", "", slug, flags=re.ASCII)
    slug = re.sub(r"--+", "-", slug)
    slug = slug.strip("-")
    return slug[:SLUG_MAX_LENGTH].rstrip("-")


def article_slug(title: str, pub_date: str) -> str:
    """Build ``YYYY-MM-DD-title-slug`` for an article."""

    published = parse_date(pub_date)
    if published is None:
        LOGGER.warning("Invalid pubDate %r, using current date for slug generation", pub_date)
        published = datetime.now(timezone.utc)
    return f"{published.date().isoformat()}-{slugify(title)}"


def extract_news_keywords(title: str, description: str, content: str) -> List[str]:
    text = f"{title} {description} {content}".lower()
    return [keyword for keyword in NEWS_KEYWORDS if keyword in text]


def extract_location(content: str) -> Optional[str]:
    if not content:
        return None
    for pattern in LOCATION_PATTERNS:
        match = pattern.search(content)
        if match:
            return match.group(0)
    return None


def determine_urgency(title: str, content: str) -> str:
    text = f"{title} {content}".lower()
    for urgency, keywords in URGENCY_RULES:
        if any(keyword in text for keyword in keywords):
            return urgency
    return "low"


def categorize_news_type(category: str, title: str, content: str) -> str:
    text = f"{title} {content}".lower()
    if "breaking" in text or "urgent" in text:
        return "breaking"
    return CATEGORY_NEWS_TYPES.get(category, "general")


def unique_tags(categories: Iterable[str]) -> List[str]:
    tags: List[str] = []
    for category in categories:
        tag = (category or "").strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def synthesize_id(source: Source) -> str:
    return f"{source.name}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}"


def normalize(entry: RawEntry, source: Source, now: Optional[datetime] = None) -> Article:
    """Turn one raw feed entry into an :class:`Article`.

    Missing or malformed fields degrade to safe defaults; this never raises
    for a well-typed entry.
    """

    title = clean_text(entry.title)
    description = clean_text(entry.summary or entry.description)
    raw_content = entry.content_encoded or entry.content or entry.summary or entry.description
    content = clean_text(raw_content)
    pub_date = resolve_pub_date(entry, now=now)
    link = (entry.link or "").strip()
    author = clean_text(entry.author) or source.name

    image = extract_image_url(
        decode_html_entities(raw_content),
        entry.enclosure,
        entry.media_content,
        entry.media_thumbnail,
    )

    return Article(
        id=str(entry.guid or link or synthesize_id(source)),
        title=title,
        description=description,
        content=content,
        link=link,
        pub_date=pub_date,
        source=source.name,
        source_color=source.color,
        category=source.category,
        slug=article_slug(title, pub_date),
        reading_time=reading_time(content),
        tags=tuple(unique_tags(entry.categories)),
        image=image,
        author=author,
        news_keywords=tuple(extract_news_keywords(title, description, content)),
        location=extract_location(content),
        urgency=determine_urgency(title, content),
        news_type=categorize_news_type(source.category, title, content),
        original_source=source.name,
        credit_line=f"Originally published by {source.name}",
    )


def is_valid(article: Article) -> bool:
    """Articles without both a title and a link are not cached."""

    return bool(article.title and article.link)
