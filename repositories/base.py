"""
Base repository interface for data access layer.
This follows the Repository pattern to separate store queries from the data service.

Repositories never commit: the owning service flushes pending changes once
per operation.
"""

from typing import Generic, TypeVar, Optional, List, Type
from sqlalchemy.orm import Session
from abc import ABC

ModelType = TypeVar("ModelType")


class BaseRepository(Generic[ModelType], ABC):
    """
    Base repository providing common CRUD operations.
    All repositories should inherit from this class.
    """

    def __init__(self, db: Session, model: Type[ModelType]):
        self.db = db
        self.model = model

    def get_by_id(self, entity_id: int) -> Optional[ModelType]:
        """
        Get entity by ID.

        Note: Subclasses override this with their specific ID field
        (meal_id, tag_id).

        Args:
            entity_id: Entity primary key

        Returns:
            Entity or None if not found
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} must implement get_by_id() with specific ID field"
        )

    def get_all(self, skip: int = 0, limit: Optional[int] = None) -> List[ModelType]:
        """Get all entities, optionally paginated"""
        query = self.db.query(self.model).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def create(self, entity: ModelType) -> ModelType:
        """Add new entity to the session"""
        self.db.add(entity)
        return entity

    def delete(self, entity_id: int) -> bool:
        """Mark entity for deletion by ID"""
        entity = self.get_by_id(entity_id)
        if entity:
            self.db.delete(entity)
            return True
        return False

    def exists(self, entity_id: int) -> bool:
        """Check if entity exists"""
        return self.get_by_id(entity_id) is not None
