"""Weighted Voronoi stippling."""

__version__ = "0.1.0"
