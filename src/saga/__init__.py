"""Progression and persistence engine for story-driven games."""

__version__ = "0.1.0"
