"""
Domain mappers package.
Handles transformation between ORM models and domain models.
"""

from domain.mappers.meal_mapper import MealMapper

__all__ = ["MealMapper"]
