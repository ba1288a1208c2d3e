"""
Configuration management for the AlphIQ backend.

Loads settings from environment variables and an optional .env file.
Exposes a single source of truth for all service configuration.
"""

from alphiq_backend.config.settings import Settings, get_settings, validate_settings  # noqa: F401

__all__ = ["Settings", "get_settings", "validate_settings"]
