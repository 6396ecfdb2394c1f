"""
Membership authority: who may read or mutate a trip's data.
"""
from sqlalchemy.orm import Session
from tripledger.core.exceptions import AuthorizationError, NotFoundError
from tripledger.models.trip import Trip, TripParticipant


def get_trip(trip_id: int, db: Session) -> Trip:
    """Load a trip or raise NotFoundError."""
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise NotFoundError("Trip not found")
    return trip


def is_trip_member(trip: Trip, user_id: int, db: Session) -> bool:
    """Owner implies membership; otherwise a participant row is required."""
    if trip.owner_id == user_id:
        return True
    participant = db.query(TripParticipant.id).filter(
        TripParticipant.trip_id == trip.id,
        TripParticipant.user_id == user_id
    ).first()
    return participant is not None


def check_trip_access(trip_id: int, user_id: int, db: Session) -> Trip:
    """
    Check if user has access to trip.
    Always reads the current trip state; nothing is cached between calls.
    """
    trip = get_trip(trip_id, db)
    if not is_trip_member(trip, user_id, db):
        raise AuthorizationError("Access denied to this trip")
    return trip


def check_trip_owner(trip_id: int, user_id: int, db: Session) -> Trip:
    """Check that the user owns the trip (required for trip mutation)."""
    trip = get_trip(trip_id, db)
    if trip.owner_id != user_id:
        raise AuthorizationError("Only the trip owner can modify this trip")
    return trip
