"""Text utilities for turning feed markup into plain article text."""

from __future__ import annotations

import html
import math
import re
from typing import Optional

from bs4 import BeautifulSoup

from .models import MediaAttributes, MediaRef

WORDS_PER_MINUTE = 200

_WHITESPACE = re.compile(r"\s+")
_URL_ATTRIBUTE = re.compile(r"url=[\"']?([^\"'\s>]+)", re.IGNORECASE)
_IMAGE_URL_ATTRIBUTE = re.compile(r"url=[\"']([^\"']+\.(?:jpg|jpeg|png|gif|webp|svg))[\"']", re.IGNORECASE)
_BARE_IMAGE_URL = re.compile(r"https?://[^\s<>\"]+\.(?:jpg|jpeg|png|gif|webp|svg)(?:\?[^\s<>\"]*)?", re.IGNORECASE)


def decode_html_entities(text: Optional[str]) -> str:
    """Decode named, decimal and hexadecimal HTML entities."""

    if not text or not isinstance(text, str):
        return ""
    return html.unescape(text)


def strip_html(text: Optional[str]) -> str:
    """Remove markup tags and collapse whitespace."""

    if not text or not isinstance(text, str):
        return ""
    if "<" in text:
        text = BeautifulSoup(text, "html.parser").get_text()
    return _WHITESPACE.sub(" ", text).strip()


def clean_text(text: Optional[str]) -> str:
    """Decode entities first, then strip tags."""

    return strip_html(decode_html_entities(text))


def media_url(ref: Optional[MediaRef]) -> Optional[str]:
    """Resolve a media field to a URL, if it carries one."""

    if ref is None:
        return None
    if isinstance(ref, MediaAttributes):
        return ref.url or None
    if isinstance(ref, str):
        if "http" not in ref:
            return None
        match = _URL_ATTRIBUTE.search(ref)
        return match.group(1) if match else None
    raise TypeError(f"Unsupported media field: {type(ref).__name__}")


def extract_image_url(
    markup: Optional[str],
    enclosure: Optional[MediaAttributes] = None,
    media_content: Optional[MediaRef] = None,
    media_thumbnail: Optional[MediaRef] = None,
) -> Optional[str]:
    """Pick the best image for an entry.

    Precedence: image enclosure, media:content, media:thumbnail, the first
    ``<img src>`` in the markup, a ``url="..."`` image attribute, and finally a
    bare image URL in the text.
    """

    if enclosure and (enclosure.type or "").startswith("image/") and enclosure.url:
        return enclosure.url

    for ref in (media_content, media_thumbnail):
        url = media_url(ref)
        if url:
            return url

    if not markup:
        return None

    if "<img" in markup.lower():
        img = BeautifulSoup(markup, "html.parser").find("img", src=True)
        if img and img["src"]:
            return img["src"]

    match = _IMAGE_URL_ATTRIBUTE.search(markup)
    if match:
        return match.group(1)

    match = _BARE_IMAGE_URL.search(markup)
    if match:
        return match.group(0)

    return None


def reading_time(text: Optional[str]) -> int:
    """Minutes needed to read ``text`` at 200 words per minute, at least one."""

    if not text:
        return 1
    words = len(text.split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))
