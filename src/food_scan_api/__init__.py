"""Food Scan API - photo-based nutrition analysis."""

__version__ = "1.0.0"
