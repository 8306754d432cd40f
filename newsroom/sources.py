"""Static catalogue of news categories and the feeds that populate them."""

from __future__ import annotations

from typing import List, Optional

from .models import Category, Source

DEFAULT_CATEGORY_COLOR = "bg-gray-500"

NEWS_CATEGORIES: List[Category] = [
    Category("general", "World", "bg-gray-600", "Global news and current events"),
    Category("government", "Politics", "bg-gray-700", "Political news and government updates"),
    Category("business", "Business", "bg-green-600", "Business, finance, and economic news"),
    Category("science", "Science", "bg-purple-600", "Scientific discoveries and research"),
    Category("technology", "Technology", "bg-green-500", "Tech news and innovation"),
    Category("entertainment", "Arts", "bg-yellow-600", "Entertainment, arts, and culture"),
    Category("sports", "Sports", "bg-red-600", "Sports news and updates"),
    Category("environment", "Climate", "bg-green-700", "Environmental and climate news"),
]

NEWS_SOURCES: List[Source] = [
    # World
    Source("BBC News", "https://feeds.bbci.co.uk/news/rss.xml", "general", "bg-red-600"),
    Source(
        "Reuters",
        "https://www.reutersagency.com/feed/?best-topics=business-finance&post_type=best",
        "general",
        "bg-orange-500",
    ),
    Source("NPR", "https://feeds.npr.org/1001/rss.xml", "general", "bg-purple-600"),
    # Politics
    Source("GOV.UK", "https://www.gov.uk/search/news-and-communications.atom", "government", "bg-gray-700"),
    Source("BBC Politics", "https://feeds.bbci.co.uk/news/politics/rss.xml", "government", "bg-red-600"),
    # Business
    Source("Financial Times", "https://www.ft.com/rss/home/uk", "business", "bg-pink-600"),
    Source("MarketWatch", "https://feeds.marketwatch.com/marketwatch/topstories/", "business", "bg-emerald-600"),
    Source("PR Newswire", "https://www.prnewswire.com/rss/all-news-releases-list.rss", "business", "bg-green-600"),
    # Technology
    Source("TechCrunch", "https://techcrunch.com/feed/", "technology", "bg-green-500"),
    Source("Ars Technica", "http://feeds.arstechnica.com/arstechnica/index", "technology", "bg-orange-600"),
    # Science
    Source("NASA", "https://www.nasa.gov/feed/", "science", "bg-slate-700"),
    Source("Science Daily", "https://www.sciencedaily.com/rss/all.xml", "science", "bg-violet-600"),
    # Sports
    Source("ESPN", "https://www.espn.com/espn/rss/news", "sports", "bg-red-700"),
    Source("BBC Sport", "https://feeds.bbci.co.uk/sport/rss.xml", "sports", "bg-red-600"),
    Source("Sky Sports", "https://www.skysports.com/rss/12040", "sports", "bg-times-600"),
    # Entertainment
    Source("Variety", "https://variety.com/feed/", "entertainment", "bg-yellow-600"),
    Source("Rolling Stone", "https://www.rollingstone.com/feed/", "entertainment", "bg-red-500"),
    Source("IGN", "https://feeds.ign.com/ign/all", "entertainment", "bg-orange-500"),
    # Environment
    Source("Climate.gov", "https://www.climate.gov/news-features/feed", "environment", "bg-times-500"),
]


def get_category_by_id(category_id: str) -> Optional[Category]:
    return next((category for category in NEWS_CATEGORIES if category.id == category_id), None)


def get_sources_by_category(category_id: str) -> List[Source]:
    return [source for source in NEWS_SOURCES if source.category == category_id]


def get_category_color(category_id: str) -> str:
    category = get_category_by_id(category_id)
    return category.color if category else DEFAULT_CATEGORY_COLOR


__all__ = [
    "NEWS_CATEGORIES",
    "NEWS_SOURCES",
    "get_category_by_id",
    "get_category_color",
    "get_sources_by_category",
]
