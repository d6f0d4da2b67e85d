"""Trendscope: regional trending topics service."""

__version__ = "0.1.0"
