"""
Trip service: creation, membership listing and owner-only mutation.
"""
import logging
from typing import List
from sqlalchemy import or_, select
from sqlalchemy.orm import Session
from tripledger.core.exceptions import ValidationError
from tripledger.models.expense import Expense, ExpenseParticipant
from tripledger.models.settlement import Settlement
from tripledger.models.trip import Trip, TripParticipant
from tripledger.models.user import User
from tripledger.schemas.trip import TripCreate, TripUpdate
from tripledger.services.membership_service import check_trip_access, check_trip_owner

logger = logging.getLogger(__name__)


def _resolve_participants(participant_ids: List[int], owner_id: int, db: Session) -> List[int]:
    """Deduplicate, drop the owner and make sure every id is a registered user."""
    ids = []
    for user_id in participant_ids:
        if user_id != owner_id and user_id not in ids:
            ids.append(user_id)
    if not ids:
        return ids

    found = {row.id for row in db.query(User.id).filter(User.id.in_(ids)).all()}
    missing = [user_id for user_id in ids if user_id not in found]
    if missing:
        raise ValidationError("Unknown participant user ids", details=missing)
    return ids


def create_trip(data: TripCreate, caller: User, db: Session) -> Trip:
    """Create a trip owned by the caller."""
    participant_ids = _resolve_participants(data.participant_ids, caller.id, db)

    trip = Trip(
        name=data.name,
        description=data.description,
        owner_id=caller.id,
    )
    trip.participants = [TripParticipant(user_id=user_id) for user_id in participant_ids]
    db.add(trip)
    db.commit()
    db.refresh(trip)

    logger.info(f"User {caller.id} created trip {trip.id} with {len(participant_ids)} participant(s)")
    return trip


def list_trips(caller: User, db: Session) -> List[Trip]:
    """List all trips where the caller is owner or participant."""
    return db.query(Trip).outerjoin(TripParticipant).filter(
        or_(Trip.owner_id == caller.id, TripParticipant.user_id == caller.id)
    ).distinct().order_by(Trip.id).all()


def get_trip(trip_id: int, caller: User, db: Session) -> Trip:
    """Trip detail for members."""
    return check_trip_access(trip_id, caller.id, db)


def update_trip(trip_id: int, data: TripUpdate, caller: User, db: Session) -> Trip:
    """Owner-only update. A participant list, when given, replaces the current one."""
    trip = check_trip_owner(trip_id, caller.id, db)

    participant_ids = None
    if data.participant_ids is not None:
        participant_ids = _resolve_participants(data.participant_ids, trip.owner_id, db)

    if data.name is not None:
        trip.name = data.name
    if data.description is not None:
        trip.description = data.description
    if participant_ids is not None:
        current = {p.user_id: p for p in trip.participants}
        for user_id, participant in current.items():
            if user_id not in participant_ids:
                db.delete(participant)
        for user_id in participant_ids:
            if user_id not in current:
                db.add(TripParticipant(trip_id=trip.id, user_id=user_id))

    db.commit()
    db.refresh(trip)
    return trip


def delete_trip(trip_id: int, caller: User, db: Session):
    """
    Owner-only delete. Expenses and settlements are removed explicitly, then the
    trip itself, in two commits. A crash in between leaves the trip without its
    ledger records; repeating the delete finishes the job.
    """
    check_trip_owner(trip_id, caller.id, db)

    expense_ids = select(Expense.id).where(Expense.trip_id == trip_id)
    db.query(ExpenseParticipant).filter(
        ExpenseParticipant.expense_id.in_(expense_ids)
    ).delete(synchronize_session=False)
    expenses_deleted = db.query(Expense).filter(
        Expense.trip_id == trip_id
    ).delete(synchronize_session=False)
    settlements_deleted = db.query(Settlement).filter(
        Settlement.trip_id == trip_id
    ).delete(synchronize_session=False)
    db.commit()

    db.query(TripParticipant).filter(
        TripParticipant.trip_id == trip_id
    ).delete(synchronize_session=False)
    db.query(Trip).filter(Trip.id == trip_id).delete(synchronize_session=False)
    db.commit()

    logger.info(
        f"User {caller.id} deleted trip {trip_id} "
        f"({expenses_deleted} expense(s), {settlements_deleted} settlement(s))"
    )
