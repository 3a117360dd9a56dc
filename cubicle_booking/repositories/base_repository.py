"""
Base repository shared by the student, cubicle and rental repositories.

Repositories never commit. Transactions belong to the calling service, and
store-level exceptions (``SQLAlchemyError`` subclasses) propagate to it so
it can map them onto the application error taxonomy.
"""

from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from cubicle_booking.models.base import BaseModel

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Data access for one mapped table.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    def get_by_id(self, entity_id: Any) -> Optional[ModelType]:
        return self.db.get(self.model, entity_id)

    def add(self, entity: ModelType) -> ModelType:
        """Stage an entity and flush so generated keys are available."""
        self.db.add(entity)
        self.db.flush()
        return entity
