"""
Core utilities: shared exceptions and cross-cutting helpers used by the
analytics, database and API server layers.
"""
