"""Infinite Runway newsletter content pipeline."""

__version__ = "0.1.0"
