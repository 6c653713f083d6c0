"""
Tag Repository - Data access layer for tag operations
"""

from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import func

from repositories.base import BaseRepository
from domain.models import Meal, Tag


class TagRepository(BaseRepository[Tag]):
    """Repository for tag data access"""

    def __init__(self, db: Session):
        super().__init__(db, Tag)

    def get_by_id(self, tag_id: int) -> Optional[Tag]:
        """Get tag by ID"""
        return self.db.query(Tag).filter(Tag.tag_id == tag_id).first()

    def get_all(self, skip: int = 0, limit: Optional[int] = None) -> List[Tag]:
        """Get all tags in insertion order"""
        query = self.db.query(Tag).order_by(Tag.tag_id).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def list_for_meal(self, meal_id: int) -> List[Tag]:
        """Get a meal's tags sorted alphabetically"""
        return (
            self.db.query(Tag)
            .filter(Tag.meal_id == meal_id)
            .order_by(Tag.tag.asc(), Tag.tag_id)
            .all()
        )

    def add_to_meal(self, meal: Meal, text: str) -> Tag:
        """Create a tag and link it to the meal"""
        tag = Tag(tag=text)
        meal.tags.append(tag)
        return tag

    def unlink(self, meal: Meal, tag: Tag) -> bool:
        """Unlink a tag from its meal; the orphaned tag is deleted on flush"""
        if tag.meal_id != meal.meal_id or tag not in meal.tags:
            return False
        meal.tags.remove(tag)
        return True

    def count_by_text(self, limit: Optional[int] = None) -> List[dict]:
        """Get tag texts with their number of uses, most used first"""
        uses = func.count(Tag.tag_id)
        query = (
            self.db.query(Tag.tag, uses.label("uses"))
            .group_by(Tag.tag)
            .order_by(uses.desc(), Tag.tag.asc())
        )
        if limit is not None:
            query = query.limit(limit)

        return [{"tag": r.tag, "uses": r.uses} for r in query.all()]
