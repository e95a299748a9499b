"""Scoring, prompt building, publishing and orchestration."""
