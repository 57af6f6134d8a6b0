"""API routes package."""

from . import health, quotes

__all__ = ["health", "quotes"]
