"""
Base repository for the data access layer.
Repositories keep query mechanics out of the services; services own the
transaction boundaries and decide when to commit.
"""

from typing import Generic, TypeVar, Optional, List, Type
from uuid import UUID
from sqlalchemy.orm import Session
from abc import ABC

ModelType = TypeVar("ModelType")


class BaseRepository(Generic[ModelType], ABC):
    """
    Common CRUD operations over one mapped model.

    Subclasses set ``id_column`` to the name of the model's primary key
    column (food_item_id, alert_id, ...).
    """

    id_column: str = ""

    def __init__(self, db: Session, model: Type[ModelType]):
        self.db = db
        self.model = model

    def get_by_id(self, entity_id: UUID, with_lock: bool = False) -> Optional[ModelType]:
        """
        Get entity by ID.

        Args:
            entity_id: Entity UUID
            with_lock: take a row lock (SELECT ... FOR UPDATE) until the
                current transaction ends

        Returns:
            Entity or None if not found
        """
        if not self.id_column:
            raise NotImplementedError(
                f"{self.__class__.__name__} must set id_column"
            )
        query = self.db.query(self.model).filter(
            getattr(self.model, self.id_column) == entity_id
        )
        if with_lock:
            query = query.with_for_update()
        return query.first()

    def get_all(self, skip: int = 0, limit: int = 100) -> List[ModelType]:
        """Get all entities with pagination"""
        return self.db.query(self.model).offset(skip).limit(limit).all()

    def add(self, entity: ModelType) -> ModelType:
        """Stage a new entity and flush it so generated keys are available"""
        self.db.add(entity)
        self.db.flush()
        return entity

    def create(self, entity: ModelType) -> ModelType:
        """Create new entity in its own commit"""
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def update(self, entity: ModelType) -> ModelType:
        """Commit pending changes on an entity"""
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def remove(self, entity: ModelType) -> None:
        """Delete an entity and flush, so a replacement row can be inserted next"""
        self.db.delete(entity)
        self.db.flush()

    def delete(self, entity_id: UUID) -> bool:
        """Delete entity by ID"""
        entity = self.get_by_id(entity_id)
        if entity:
            self.db.delete(entity)
            self.db.commit()
            return True
        return False
