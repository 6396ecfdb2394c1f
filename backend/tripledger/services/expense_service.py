"""
Expense service for expense-related business logic.
"""
import logging
from typing import Dict, List, Optional
from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload
from tripledger.core.exceptions import NotFoundError, ValidationError
from tripledger.core.utils import to_cents
from tripledger.models.expense import Expense, ExpenseParticipant, SplitKind
from tripledger.models.trip import Trip, TripParticipant
from tripledger.models.user import User
from tripledger.schemas.expense import ExpenseCreate, ExpenseUpdate
from tripledger.services.membership_service import check_trip_access
from tripledger.services.split_service import compute_split

logger = logging.getLogger(__name__)


def _shares_to_cents(shares: Optional[Dict[int, object]]) -> Dict[int, int]:
    if not shares:
        return {}
    return {int(user_id): to_cents(value, field=f"share of user {user_id}") for user_id, value in shares.items()}


def _check_members(trip: Trip, payer_id: int, participant_ids: List[int]):
    """Payer and every participant must belong to the trip."""
    member_ids = trip.member_ids()
    if payer_id not in member_ids:
        raise ValidationError(f"Payer {payer_id} is not a participant of this trip")
    for user_id in participant_ids:
        if user_id not in member_ids:
            raise ValidationError(f"User {user_id} is not a participant of this trip")


def _set_participants(expense: Expense, split_kind: SplitKind, participant_ids: List[int], shares: Dict[int, int]):
    expense.participants = [
        ExpenseParticipant(
            user_id=user_id,
            position=position,
            share_cents=shares.get(user_id, 0) if split_kind == SplitKind.UNEQUAL else None,
        )
        for position, user_id in enumerate(participant_ids)
    ]


def computed_shares(expense: Expense) -> Dict[int, int]:
    """Normalized share per participant in cents, for equal and unequal splits alike."""
    return compute_split(
        expense.amount_cents,
        expense.split_kind,
        expense.participant_ids,
        expense.shares_cents,
    )


def create_expense(data: ExpenseCreate, caller: User, db: Session) -> Expense:
    """Create an expense after validating its split. Nothing is written on failure."""
    trip = check_trip_access(data.trip_id, caller.id, db)

    amount_cents = to_cents(data.amount)
    shares = _shares_to_cents(data.shares) if data.split_kind == SplitKind.UNEQUAL else {}
    participant_ids = list(data.participants)

    compute_split(amount_cents, data.split_kind, participant_ids, shares)
    _check_members(trip, data.paid_by, participant_ids)

    expense = Expense(
        trip_id=trip.id,
        payer_id=data.paid_by,
        created_by=caller.id,
        description=data.description,
        amount_cents=amount_cents,
        split_kind=data.split_kind,
        settled=False,
    )
    _set_participants(expense, data.split_kind, participant_ids, shares)
    db.add(expense)
    db.commit()
    db.refresh(expense)

    logger.info(f"User {caller.id} created expense {expense.id} in trip {trip.id} ({amount_cents} cents)")
    return expense


def get_expense(expense_id: int, caller: User, db: Session) -> Expense:
    """
    Load an expense the caller may act on.
    Membership is checked against the trip the stored expense belongs to.
    """
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise NotFoundError("Expense not found")
    check_trip_access(expense.trip_id, caller.id, db)
    return expense


def list_expenses(trip_id: Optional[int], caller: User, db: Session) -> List[Expense]:
    """Expenses of one trip, or of every trip the caller belongs to when trip_id is None."""
    query = db.query(Expense).options(selectinload(Expense.participants))

    if trip_id is not None:
        check_trip_access(trip_id, caller.id, db)
        query = query.filter(Expense.trip_id == trip_id)
    else:
        member_trip_ids = select(Trip.id).outerjoin(TripParticipant).where(
            or_(Trip.owner_id == caller.id, TripParticipant.user_id == caller.id)
        )
        query = query.filter(Expense.trip_id.in_(member_trip_ids))

    return query.order_by(Expense.created_at, Expense.id).all()


def update_expense(expense_id: int, data: ExpenseUpdate, caller: User, db: Session) -> Expense:
    """
    Apply a partial update. The merged expense is re-validated through the split
    calculator before anything is written.
    """
    expense = get_expense(expense_id, caller, db)
    trip = db.get(Trip, expense.trip_id)

    amount_cents = to_cents(data.amount) if data.amount is not None else expense.amount_cents
    split_kind = data.split_kind if data.split_kind is not None else expense.split_kind
    participant_ids = list(data.participants) if data.participants is not None else expense.participant_ids
    payer_id = data.paid_by if data.paid_by is not None else expense.payer_id

    if split_kind == SplitKind.UNEQUAL:
        shares = _shares_to_cents(data.shares) if data.shares is not None else expense.shares_cents
    else:
        shares = {}

    compute_split(amount_cents, split_kind, participant_ids, shares)
    _check_members(trip, payer_id, participant_ids)

    if data.description is not None:
        expense.description = data.description
    expense.amount_cents = amount_cents
    expense.split_kind = split_kind
    expense.payer_id = payer_id
    # Old rows must be gone before re-inserting the same (expense, user) pairs
    expense.participants.clear()
    db.flush()
    _set_participants(expense, split_kind, participant_ids, shares)

    db.commit()
    db.refresh(expense)

    logger.info(f"User {caller.id} updated expense {expense.id}")
    return expense


def delete_expense(expense_id: int, caller: User, db: Session):
    """Delete an expense and its participant rows."""
    expense = get_expense(expense_id, caller, db)
    db.delete(expense)
    db.commit()
    logger.info(f"User {caller.id} deleted expense {expense_id}")
