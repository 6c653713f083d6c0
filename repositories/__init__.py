"""
Repositories package - Data access layer.
"""

from repositories.base import BaseRepository
from repositories.meal_repository import MealRepository
from repositories.tag_repository import TagRepository

__all__ = [
    "BaseRepository",
    "MealRepository",
    "TagRepository",
]
