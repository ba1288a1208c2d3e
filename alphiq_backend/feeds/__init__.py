"""
Feeds package: blog RSS proxy.
"""

from alphiq_backend.feeds.rss import BlogPost, FeedError, InvalidFeedError, fetch_blog_posts, parse_feed

__all__ = ["BlogPost", "FeedError", "InvalidFeedError", "fetch_blog_posts", "parse_feed"]
