"""
Meal Repository - Data access layer for meal operations
"""

from typing import Iterable, List, Optional
from datetime import datetime
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.enums import Mood
from domain.models import Meal, Tag


class MealRepository(BaseRepository[Meal]):
    """Repository for meal data access"""

    def __init__(self, db: Session):
        super().__init__(db, Meal)

    def get_by_id(self, meal_id: int) -> Optional[Meal]:
        """Get meal by ID"""
        return self.db.query(Meal).filter(Meal.meal_id == meal_id).first()

    def list_by_date(self, descending: bool = True, limit: Optional[int] = None) -> List[Meal]:
        """Get meals ordered by date, newest first by default"""
        order = Meal.date.desc() if descending else Meal.date.asc()
        query = self.db.query(Meal).order_by(order, Meal.meal_id)
        if limit:
            query = query.limit(limit)
        return query.all()

    def list_with_moods(self) -> List[Meal]:
        """Get meals that have both moods recorded, oldest first"""
        return (
            self.db.query(Meal)
            .filter(
                Meal.mood.isnot(None),
                Meal.mood != int(Mood.UNSET),
                Meal.mood_after.isnot(None),
                Meal.mood_after != int(Mood.UNSET),
            )
            .order_by(Meal.date.asc(), Meal.meal_id)
            .all()
        )

    def create_meal(
        self,
        name: str,
        date: datetime,
        picture: bytes = None,
        mood: int = int(Mood.UNSET),
        mood_after: int = int(Mood.UNSET),
        tag_strings: Iterable[str] = (),
    ) -> Meal:
        """Create a new meal with one tag per tag string"""
        meal = Meal(
            name=name,
            date=date,
            picture=picture,
            mood=mood,
            mood_after=mood_after,
        )
        meal.tags = [Tag(tag=text) for text in tag_strings]
        return self.create(meal)

    def apply_update(
        self,
        meal: Meal,
        name: str,
        date: datetime,
        picture: Optional[bytes],
        mood: int,
        mood_after: int,
        tags: List[Tag],
    ) -> Meal:
        """Overwrite scalar fields and replace the whole tag set"""
        meal.name = name
        meal.date = date
        meal.picture = picture
        meal.mood = mood
        meal.mood_after = mood_after
        # Tags dropped from the collection are deleted as orphans on flush
        meal.tags = tags
        return meal
