"""Shared dataclasses and type definitions for the news cache."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from dateutil import parser as date_parser

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Source:
    """A configured feed endpoint with its category and branding."""

    name: str
    url: str
    category: str
    color: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "url": self.url, "category": self.category, "color": self.color}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Source":
        return cls(
            name=data.get("name") or "",
            url=data.get("url") or "",
            category=data.get("category") or "",
            color=data.get("color") or "",
        )


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    color: str
    description: Optional[str] = None


@dataclass(frozen=True)
class MediaAttributes:
    """Attributed media element such as ``<media:content url="..." />``."""

    url: str
    type: Optional[str] = None
    medium: Optional[str] = None


# A media field is either raw markup text or an attributed element.
MediaRef = Union[str, MediaAttributes]


@dataclass(frozen=True)
class RawEntry:
    """Typed view over one entry of a parsed feed."""

    title: str = ""
    link: str = ""
    guid: Optional[str] = None
    summary: str = ""
    description: str = ""
    content: str = ""
    content_encoded: str = ""
    pub_date: Optional[str] = None
    dc_date: Optional[str] = None
    iso_date: Optional[str] = None
    author: Optional[str] = None
    categories: Tuple[str, ...] = ()
    enclosure: Optional[MediaAttributes] = None
    media_content: Optional[MediaRef] = None
    media_thumbnail: Optional[MediaRef] = None


@dataclass(frozen=True)
class Article:
    """Normalized article representation stored in the cache.

    Serialized with the camelCase keys used by the on-disk snapshot.
    """

    id: str
    title: str
    description: str
    content: str
    link: str
    pub_date: str
    source: str
    source_color: str
    category: str
    slug: str
    reading_time: int
    tags: Tuple[str, ...] = ()
    image: Optional[str] = None
    author: Optional[str] = None
    news_keywords: Tuple[str, ...] = ()
    location: Optional[str] = None
    urgency: str = "low"
    news_type: str = "general"
    original_source: Optional[str] = None
    credit_line: Optional[str] = None

    @property
    def published_at(self) -> datetime:
        """``pub_date`` as an aware datetime; unreadable values sort last."""

        try:
            parsed = date_parser.isoparse(self.pub_date)
        except (ValueError, TypeError, OverflowError):
            return EPOCH
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "content": self.content,
            "link": self.link,
            "pubDate": self.pub_date,
            "author": self.author,
            "source": self.source,
            "sourceColor": self.source_color,
            "category": self.category,
            "slug": self.slug,
            "image": self.image,
            "tags": list(self.tags),
            "readingTime": self.reading_time,
            "newsKeywords": list(self.news_keywords),
            "location": self.location,
            "urgency": self.urgency,
            "originalSource": self.original_source,
            "creditLine": self.credit_line,
            "newsType": self.news_type,
        }
        return {key: value for key, value in data.items() if value is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Article":
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            description=data.get("description") or "",
            content=data.get("content") or "",
            link=data.get("link") or "",
            pub_date=data.get("pubDate") or "",
            source=data.get("source") or "",
            source_color=data.get("sourceColor") or "",
            category=data.get("category") or "",
            slug=data.get("slug") or "",
            reading_time=int(data.get("readingTime") or 1),
            tags=tuple(tag for tag in data.get("tags") or () if isinstance(tag, str)),
            image=data.get("image"),
            author=data.get("author"),
            news_keywords=tuple(word for word in data.get("newsKeywords") or () if isinstance(word, str)),
            location=data.get("location"),
            urgency=data.get("urgency") or "low",
            news_type=data.get("newsType") or "general",
            original_source=data.get("originalSource"),
            credit_line=data.get("creditLine"),
        )


@dataclass
class CacheSnapshot:
    """Versioned envelope persisted under the ``articles`` key."""

    articles: List[Article]
    last_updated: int
    version: str


@dataclass
class FeedSnapshot:
    """Companion record persisted under the ``feeds`` key after a refresh."""

    feeds: List[Source]
    articles: List[Article]
    last_updated: int
    version: str


@dataclass
class CacheStats:
    articles_count: int
    last_updated: Optional[int]
    cache_size: int
    is_expired: bool


@dataclass
class CacheInfo(CacheStats):
    is_refreshing: bool = False


@dataclass
class Page:
    """One page of articles returned by paginated queries."""

    articles: List[Article] = field(default_factory=list)
    current_page: int = 1
    total_pages: int = 0
    total_articles: int = 0
    has_next_page: bool = False
    has_previous_page: bool = False


def newest_first(articles: List[Article]) -> List[Article]:
    """Return ``articles`` sorted by publication date, most recent first."""

    return sorted(articles, key=lambda article: article.published_at, reverse=True)
