"""
Cubicle repository.
"""

from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from cubicle_booking.models.cubicle import Cubicle
from cubicle_booking.models.rental import Rental
from cubicle_booking.repositories.base_repository import BaseRepository


class CubicleRepository(BaseRepository[Cubicle]):
    """
    Data access for the fixed cubicle set.
    """

    def __init__(self, db: Session):
        super().__init__(Cubicle, db)

    def list_with_rentals(self) -> List[Cubicle]:
        """All cubicles ordered by id with their active rental and student loaded."""
        return (
            self.db.query(Cubicle)
            .options(selectinload(Cubicle.active_rental).joinedload(Rental.student))
            .order_by(Cubicle.id.asc())
            .all()
        )

    def get_with_rental(self, cubicle_id: int) -> Optional[Cubicle]:
        return (
            self.db.query(Cubicle)
            .options(selectinload(Cubicle.active_rental).joinedload(Rental.student))
            .filter(Cubicle.id == cubicle_id)
            .first()
        )
