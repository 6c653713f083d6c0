"""
Domain schemas package - Pydantic models for validation.
"""

from domain.schemas.meal_schemas import EntityRef, MealModel, TagModel

__all__ = [
    "EntityRef",
    "MealModel",
    "TagModel",
]
