"""
Blog feed: fetch the project's Medium RSS feed and reshape it into posts.

Parsing is regex-based on purpose: Medium feeds are routinely not
well-formed XML, and only a handful of tags per <item> are needed.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

import httpx

from alphiq_backend.alphiq_logging import get_logger
from alphiq_backend.config import Settings

logger = get_logger(__name__)

MAX_POSTS = 10
MAX_TITLE_LEN = 200
MAX_DESCRIPTION_LEN = 500

_ITEM_RE = re.compile(r"<item>([\s\S]*?)</item>")
_CDATA_RE = re.compile(r"<!\[CDATA\[|\]\]>")
_TAG_RES: dict[str, re.Pattern[str]] = {
    tag: re.compile(rf"<{tag}>([\s\S]*?)</{tag}>") for tag in ("title", "link", "pubDate", "description")
}


class FeedError(Exception):
    """Raised when the feed cannot be fetched."""


class InvalidFeedError(FeedError):
    """Fetched body is neither RSS nor Atom."""


@dataclass
class BlogPost:
    title: str
    link: str
    pubDate: str
    description: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _tag_text(block: str, tag: str) -> str:
    m = _TAG_RES[tag].search(block)
    return _CDATA_RE.sub("", m.group(1)).strip() if m else ""


def looks_like_feed(xml: str) -> bool:
    return "<rss" in xml or "<feed" in xml


def parse_feed(xml: str, limit: int = MAX_POSTS, now: datetime | None = None) -> list[BlogPost]:
    """
    First `limit` <item> blocks → posts. Items without title or link are
    dropped (after the limit is applied); non-http links become "".
    """
    fallback_date = (now or datetime.now(timezone.utc)).isoformat()
    posts: list[BlogPost] = []
    for match in list(_ITEM_RE.finditer(xml))[:limit]:
        block = match.group(1)
        title = _tag_text(block, "title")
        link = _tag_text(block, "link")
        if not title or not link:
            continue
        posts.append(
            BlogPost(
                title=title[:MAX_TITLE_LEN],
                link=link if link.startswith("http") else "",
                pubDate=_tag_text(block, "pubDate") or fallback_date,
                description=_tag_text(block, "description")[:MAX_DESCRIPTION_LEN],
            )
        )
    return posts


async def fetch_blog_posts(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[BlogPost]:
    """Fetch and parse the configured feed. Raises FeedError on HTTP or format failure."""
    try:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(settings.timeout_default),
            headers={"User-Agent": settings.user_agent},
            transport=transport,
            follow_redirects=True,
        ) as client:
            resp = await client.get(settings.feed_url)
    except httpx.HTTPError as e:
        logger.error("blog_feed_request_error", error=str(e))
        raise FeedError(f"feed request error: {e}") from e

    if resp.status_code >= 400:
        logger.error("blog_feed_http_error", status=resp.status_code)
        raise FeedError(f"feed HTTP {resp.status_code}")

    xml = resp.text
    if not looks_like_feed(xml):
        logger.error("blog_feed_invalid_format")
        raise InvalidFeedError("invalid feed format")
    return parse_feed(xml)
