"""Data models and settings."""
