"""Routers mounted under /api."""
