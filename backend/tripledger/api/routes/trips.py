"""
Trip management routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from tripledger.db.session import get_db
from tripledger.models.user import User
from tripledger.schemas.trip import TripCreate, TripUpdate, TripResponse
from tripledger.api.dependencies import get_current_user
from tripledger.services import trip_service

router = APIRouter(prefix="/trips", tags=["trips"])


@router.get("", response_model=List[TripResponse])
async def list_trips(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List all trips where the current user is owner or participant."""
    return trip_service.list_trips(current_user, db)


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a new trip owned by the current user."""
    return trip_service.create_trip(trip_data, current_user, db)


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get trip details."""
    return trip_service.get_trip(trip_id, current_user, db)


@router.patch("/{trip_id}", response_model=TripResponse)
@router.post("/{trip_id}", response_model=TripResponse)
async def update_trip(
    trip_id: int,
    trip_data: TripUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update a trip (owner only)."""
    return trip_service.update_trip(trip_id, trip_data, current_user, db)


@router.delete("/{trip_id}")
async def delete_trip(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a trip with its expenses and settlements (owner only)."""
    trip_service.delete_trip(trip_id, current_user, db)
    return {"message": "Trip deleted"}
