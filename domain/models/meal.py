"""
Meal and tag models.
A meal owns its tags: deleting a meal, or unlinking a tag from it, deletes the tag.
"""

from sqlalchemy import (
    Column,
    Integer,
    Text,
    DateTime,
    LargeBinary,
    SmallInteger,
    ForeignKey,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from domain.enums import Mood
from domain.models.database import Base


class Meal(Base):
    """A logged meal with optional photo and moods"""

    __tablename__ = "meal"

    meal_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False, default="")
    date = Column(DateTime, nullable=False, index=True)
    picture = Column(LargeBinary, nullable=True)
    mood = Column(SmallInteger, nullable=False, default=int(Mood.UNSET))
    mood_after = Column(SmallInteger, nullable=False, default=int(Mood.UNSET))
    created_at = Column(DateTime, server_default=func.now())

    tags = relationship(
        "Tag",
        back_populates="meal",
        cascade="all, delete-orphan",
        order_by="Tag.tag_id",
    )

    @property
    def tags_strings(self) -> list[str]:
        """Text of the current tags, read from the tag set"""
        return [t.tag for t in self.tags]

    def __repr__(self):
        return f"<Meal(id={self.meal_id}, name='{self.name}', date={self.date})>"


class Tag(Base):
    """Free-text label attached to one meal"""

    __tablename__ = "tag"

    tag_id = Column(Integer, primary_key=True, autoincrement=True)
    meal_id = Column(
        Integer,
        ForeignKey("meal.meal_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tag = Column(Text, nullable=False)

    meal = relationship("Meal", back_populates="tags")

    def __repr__(self):
        return f"<Tag(id={self.tag_id}, tag='{self.tag}')>"
