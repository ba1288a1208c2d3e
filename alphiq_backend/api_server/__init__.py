"""
API server package: HTTP/REST interface for the dashboard.

Exposes scores, AI summaries, blog posts, network statistics and quest XP.
Handles rate limiting and error rendering, and delegates to the analytics,
explorer, feeds and database layers for data.
"""
