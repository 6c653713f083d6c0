"""
Meal domain mappers.
Handles transformation between ORM models and domain models for meals and tags.
"""

from datetime import datetime, timezone
from typing import Optional

from domain.enums import Mood
from domain.models import Meal, Tag
from domain.schemas.meal_schemas import EntityRef, MealModel, TagModel


class MealMapper:
    """Mapper for meal and tag transformations."""

    MEAL_ENTITY = Meal.__name__
    TAG_ENTITY = Tag.__name__

    @staticmethod
    def meal_ref(meal: Meal) -> Optional[EntityRef]:
        if meal.meal_id is None:
            return None
        return EntityRef(entity=MealMapper.MEAL_ENTITY, key=meal.meal_id)

    @staticmethod
    def tag_ref(tag: Tag) -> Optional[EntityRef]:
        if tag.tag_id is None:
            return None
        return EntityRef(entity=MealMapper.TAG_ENTITY, key=tag.tag_id)

    @staticmethod
    def mood_from_model(mood: Optional[Mood]) -> int:
        """Stored value for a domain mood; absence becomes the UNSET sentinel"""
        return int(mood) if mood is not None else int(Mood.UNSET)

    @staticmethod
    def mood_to_model(value: Optional[int]) -> Optional[Mood]:
        """
        Domain mood for a stored value.

        Raises:
            ValueError: If the stored value is not a known mood
        """
        if value is None or value == Mood.UNSET:
            return None
        return Mood(value)

    @staticmethod
    def date_from_model(value: datetime) -> datetime:
        """
        Stored value for a meal date.

        Dates are stored as naive UTC so that ordering compares instants.
        Aware datetimes are converted to UTC; naive ones are taken as UTC.
        """
        if value.tzinfo is None:
            return value
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    @staticmethod
    def tag_to_model(tag: Tag) -> TagModel:
        return TagModel(id=MealMapper.tag_ref(tag), tag=tag.tag)

    @staticmethod
    def to_model(meal: Meal) -> MealModel:
        """
        Convert ORM Meal to MealModel.

        Args:
            meal: Meal ORM instance; its tags are loaded on access

        Returns:
            MealModel with tag texts and tag references from the current tag set
        """
        tags = [MealMapper.tag_to_model(t) for t in meal.tags]

        return MealModel(
            id=MealMapper.meal_ref(meal),
            name=meal.name,
            date=meal.date,
            picture=meal.picture,
            mood=MealMapper.mood_to_model(meal.mood),
            mood_after=MealMapper.mood_to_model(meal.mood_after),
            tag_strings=meal.tags_strings,
            tags=tags,
        )
