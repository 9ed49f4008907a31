"""Repository exports."""

from .powers_repo import PowersRepository
from .story_repo import StoryRepository

__all__ = [
    "PowersRepository",
    "StoryRepository",
]
