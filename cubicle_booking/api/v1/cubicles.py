"""
Cubicle registry and rental lifecycle endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from cubicle_booking.api import deps
from cubicle_booking.schemas.rental import BookingRequest, CubicleResponse, RentalResponse
from cubicle_booking.services import CubicleBoard, CubicleRegistryService, RentalLifecycleService

router = APIRouter(prefix="/cubicles", tags=["Cubicles"])


@router.get("", response_model=List[CubicleResponse])
def list_cubicles(board: CubicleBoard = Depends(deps.get_board)):
    """Live occupancy board, refreshed whenever a rental or cubicle changes."""
    return board.snapshot().unwrap()


@router.get("/{cubicle_id}", response_model=CubicleResponse)
def get_cubicle(
    cubicle_id: int,
    registry: CubicleRegistryService = Depends(deps.get_cubicle_registry),
):
    return CubicleResponse.from_model(registry.get(cubicle_id).unwrap())


@router.post("/{cubicle_id}/book", response_model=RentalResponse, status_code=status.HTTP_201_CREATED)
def book_cubicle(
    cubicle_id: int,
    booking: BookingRequest,
    lifecycle: RentalLifecycleService = Depends(deps.get_rental_lifecycle),
):
    return lifecycle.book(cubicle_id, booking.student_id, booking.hours).unwrap()


@router.post("/{cubicle_id}/release", response_model=RentalResponse)
def release_cubicle(
    cubicle_id: int,
    lifecycle: RentalLifecycleService = Depends(deps.get_rental_lifecycle),
):
    return lifecycle.release(cubicle_id).unwrap()


@router.get("/{cubicle_id}/rental", response_model=Optional[RentalResponse])
def get_active_rental(
    cubicle_id: int,
    lifecycle: RentalLifecycleService = Depends(deps.get_rental_lifecycle),
):
    return lifecycle.get_active_rental(cubicle_id).unwrap()


@router.get("/{cubicle_id}/rentals", response_model=List[RentalResponse])
def rental_history(
    cubicle_id: int,
    limit: int = Query(default=50, ge=1, le=500),
    lifecycle: RentalLifecycleService = Depends(deps.get_rental_lifecycle),
):
    return lifecycle.history(cubicle_id, limit).unwrap()
