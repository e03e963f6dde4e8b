"""API routes."""

from . import food_scan

__all__ = ["food_scan"]
