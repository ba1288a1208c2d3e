"""
FastAPI router: GET /blogs, the Medium RSS proxy for the dashboard blog card.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

from alphiq_backend.alphiq_logging import get_logger
from alphiq_backend.api_server.deps import get_app_settings, upstream_transport
from alphiq_backend.api_server.middleware import ApiError, enforce_rate_limit
from alphiq_backend.feeds import FeedError, InvalidFeedError, fetch_blog_posts

logger = get_logger(__name__)

router = APIRouter(tags=["blogs"])


@router.get("/blogs")
async def get_blogs(request: Request) -> dict[str, Any]:
    await enforce_rate_limit(request, "blogs", "Too many requests")
    try:
        posts = await fetch_blog_posts(get_app_settings(request), transport=upstream_transport(request))
    except InvalidFeedError as e:
        raise ApiError(502, "Invalid feed format") from e
    except FeedError as e:
        raise ApiError(502, "Failed to fetch blog feed") from e
    logger.info("blogs_served", count=len(posts))
    return {"posts": [p.to_dict() for p in posts]}
