"""
Meal domain models passed across the data service boundary.
These are plain values; they are never attached to a session.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from domain.enums import Mood

REF_SCHEME = "x-takeeateasy"


class EntityRef(BaseModel):
    """Opaque reference to a persisted meal or tag"""

    entity: str = Field(..., description="Entity name, 'Meal' or 'Tag'")
    key: int = Field(..., ge=1, description="Primary key of the entity")

    model_config = ConfigDict(frozen=True)

    @property
    def uri(self) -> str:
        return f"{REF_SCHEME}://{self.entity}/{self.key}"

    @classmethod
    def from_uri(cls, uri: str) -> "EntityRef":
        """
        Parse a reference produced by ``uri``.

        Raises:
            ValueError: If the URI does not use the reference scheme
        """
        prefix = f"{REF_SCHEME}://"
        if not uri.startswith(prefix):
            raise ValueError(f"Not an entity reference: {uri!r}")
        entity, _, key = uri[len(prefix):].partition("/")
        if not entity or not key.isdigit():
            raise ValueError(f"Malformed entity reference: {uri!r}")
        return cls(entity=entity, key=int(key))

    def __str__(self) -> str:
        return self.uri


class TagModel(BaseModel):
    """Tag value; ``id`` is set once the tag is persisted"""

    id: Optional[EntityRef] = None
    tag: str


class MealModel(BaseModel):
    """
    Meal value exchanged with the data service.

    ``tag_strings`` is used when a meal is created; ``tags`` carries
    references to persisted tags and is what ``change_meal`` applies.
    Missing moods are ``None``. Dates are stored as UTC: aware datetimes are
    converted, naive ones are taken as UTC, and stored dates read back naive.
    """

    id: Optional[EntityRef] = None
    name: str
    date: datetime
    picture: Optional[bytes] = None
    mood: Optional[Mood] = None
    mood_after: Optional[Mood] = None
    tag_strings: Optional[List[str]] = None
    tags: Optional[List[TagModel]] = None
