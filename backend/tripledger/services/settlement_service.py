"""
Settlement state machine.

A settlement key is (trip, debtor, creditor, amount). For each key a record moves
NONE -> PENDING -> SETTLED and SETTLED is terminal: once a key is settled, neither
remind nor settle writes anything for it again. The store only has to provide
single-row atomicity: the PENDING -> SETTLED step is one conditional UPDATE that
matches on status, and the unique constraint on (key, status) keeps two requests
from opening the same key twice or settling it twice.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from sqlalchemy import update, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from tripledger.core.config import settings
from tripledger.core.exceptions import DeliveryError, ValidationError
from tripledger.core.utils import format_amount
from tripledger.db.base import utcnow
from tripledger.models.expense import Expense, ExpenseParticipant
from tripledger.models.settlement import Settlement, SettlementStatus
from tripledger.models.trip import Trip
from tripledger.models.user import User
from tripledger.services.membership_service import check_trip_access
from tripledger.services.notification_service import Notifier, render_reminder

logger = logging.getLogger(__name__)


@dataclass
class RemindResult:
    """Outcome of a reminder: the open record and whether the email went out."""
    settlement: Settlement
    created: bool
    notified: bool
    warning: Optional[str] = None


@dataclass
class SettleResult:
    """Outcome of a settle call. transitioned is False for a no-op repeat."""
    settlement: Settlement
    transitioned: bool
    expenses_marked: int = 0


def _key(trip_id: int, from_user_id: int, to_user_id: int, amount_cents: int):
    return (
        Settlement.trip_id == trip_id,
        Settlement.from_user_id == from_user_id,
        Settlement.to_user_id == to_user_id,
        Settlement.amount_cents == amount_cents,
    )


def _validate_parties(trip: Trip, from_user_id: int, to_user_id: int, amount_cents: int):
    if amount_cents <= 0:
        raise ValidationError("Amount must be positive")
    if from_user_id == to_user_id:
        raise ValidationError("A user cannot settle with themselves")
    member_ids = trip.member_ids()
    for user_id in (from_user_id, to_user_id):
        if user_id not in member_ids:
            raise ValidationError(f"User {user_id} is not a participant of this trip")


def _find(db: Session, key, status: SettlementStatus) -> Optional[Settlement]:
    return db.query(Settlement).filter(*key, Settlement.status == status).order_by(
        Settlement.id.desc()
    ).first()


def _open_pending(
    db: Session,
    trip_id: int,
    from_user_id: int,
    to_user_id: int,
    amount_cents: int,
    initiated_by: int,
    now: datetime,
    reminded: bool
) -> bool:
    """
    Insert a pending record without committing. Returns False, with the transaction
    rolled back, if another request opened the key first.
    """
    settlement = Settlement(
        trip_id=trip_id,
        from_user_id=from_user_id,
        to_user_id=to_user_id,
        amount_cents=amount_cents,
        status=SettlementStatus.PENDING,
        initiated_by=initiated_by,
        created_at=now,
        reminded_at=now if reminded else None,
    )
    db.add(settlement)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        return False
    return True


def _touch_pending(db: Session, key, now: datetime) -> int:
    result = db.execute(
        update(Settlement)
        .where(*key, Settlement.status == SettlementStatus.PENDING)
        .values(reminded_at=now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def _close_pending(db: Session, key, now: datetime) -> Optional[int]:
    """
    Conditionally move the pending record for the key to SETTLED.
    Returns the record id when this call performed the transition, None otherwise.
    Does not commit; rolls back if the key already has a settled record.
    """
    pending_id = db.execute(
        select(Settlement.id).where(*key, Settlement.status == SettlementStatus.PENDING)
    ).scalar()
    if pending_id is None:
        return None

    try:
        result = db.execute(
            update(Settlement)
            .where(Settlement.id == pending_id, Settlement.status == SettlementStatus.PENDING)
            .values(status=SettlementStatus.SETTLED, settled_at=now)
            .execution_options(synchronize_session=False)
        )
    except IntegrityError:
        db.rollback()
        return None
    return pending_id if result.rowcount == 1 else None


def mark_expenses_settled(db: Session, trip_id: int, from_user_id: int, to_user_id: int, now: datetime) -> int:
    """
    Mark every unsettled expense of the trip paid by to_user and shared by from_user.
    Matches on the (payer, participant) pair only, not on amount. Does not commit.
    """
    shared_by_debtor = select(ExpenseParticipant.expense_id).where(
        ExpenseParticipant.user_id == from_user_id
    )
    result = db.execute(
        update(Expense)
        .where(
            Expense.trip_id == trip_id,
            Expense.payer_id == to_user_id,
            Expense.settled.is_(False),
            Expense.id.in_(shared_by_debtor),
        )
        .values(settled=True, settled_at=now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def _already_settled(settlement: Settlement) -> RemindResult:
    logger.info(f"Settlement {settlement.id} already settled; no reminder sent")
    return RemindResult(
        settlement=settlement,
        created=False,
        notified=False,
        warning="Debt already settled; no reminder sent",
    )


def remind(
    trip_id: int,
    from_user_id: int,
    to_user_id: int,
    amount_cents: int,
    caller: User,
    db: Session,
    notifier: Notifier
) -> RemindResult:
    """
    Record (or refresh) a pending debt and email the debtor, with the creditor in BCC.

    Never creates a second pending record for the same key, and never reopens a key
    that is already settled: that call returns the settled record and sends nothing.
    Otherwise each call sends exactly one notification; a delivery failure is
    returned as a warning and does not undo the ledger change.
    """
    trip = check_trip_access(trip_id, caller.id, db)
    _validate_parties(trip, from_user_id, to_user_id, amount_cents)

    key = _key(trip_id, from_user_id, to_user_id, amount_cents)
    existing = _find(db, key, SettlementStatus.SETTLED)
    if existing:
        return _already_settled(existing)

    now = utcnow()
    created = False

    if _touch_pending(db, key, now):
        db.commit()
    elif _open_pending(db, trip_id, from_user_id, to_user_id, amount_cents, caller.id, now, reminded=True):
        db.commit()
        created = True
    else:
        # Opened concurrently between the update and the insert
        _touch_pending(db, key, now)
        db.commit()

    settlement = _find(db, key, SettlementStatus.PENDING)
    if settlement is None:
        # Settled concurrently after the pending record was written
        return _already_settled(_find(db, key, SettlementStatus.SETTLED))

    logger.info(
        f"Reminder for trip {trip_id}: user {from_user_id} owes user {to_user_id} "
        f"{amount_cents} cents (settlement {settlement.id}, created={created})"
    )

    debtor = db.get(User, from_user_id)
    creditor = db.get(User, to_user_id)
    subject, html_body = render_reminder(
        debtor_name=debtor.name,
        creditor_name=creditor.name,
        amount=format_amount(amount_cents, settings.CURRENCY_SYMBOL),
        initiated_by=caller.name,
        trip_name=trip.name,
    )
    try:
        notifier.send(debtor.email, subject, html_body, bcc=creditor.email)
    except DeliveryError as e:
        logger.warning(f"Reminder email for settlement {settlement.id} not delivered: {e.message}")
        return RemindResult(settlement=settlement, created=created, notified=False, warning=e.message)

    return RemindResult(settlement=settlement, created=created, notified=True)


def settle(
    trip_id: int,
    from_user_id: int,
    to_user_id: int,
    amount_cents: int,
    caller: User,
    db: Session
) -> SettleResult:
    """
    Mark the debt for the key as settled.

    An existing settled record makes the call a no-op. Otherwise the pending record
    is closed by one conditional UPDATE; without one, a record is opened and closed
    in the same transaction. The unique constraint on (key, status) rejects a second
    settled record, so of two racing calls exactly one performs the transition and
    the other returns the settled record unchanged.
    """
    trip = check_trip_access(trip_id, caller.id, db)
    _validate_parties(trip, from_user_id, to_user_id, amount_cents)

    key = _key(trip_id, from_user_id, to_user_id, amount_cents)
    existing = _find(db, key, SettlementStatus.SETTLED)
    if existing:
        logger.info(f"Settlement {existing.id} already settled; nothing to do")
        return SettleResult(settlement=existing, transitioned=False)

    now = utcnow()
    settled_id = _close_pending(db, key, now)
    if settled_id is None:
        db.rollback()
        existing = _find(db, key, SettlementStatus.SETTLED)
        if existing:
            logger.info(f"Settlement {existing.id} settled by a concurrent request")
            return SettleResult(settlement=existing, transitioned=False)

        # A False result means a concurrent request opened the key; close that record
        _open_pending(db, trip_id, from_user_id, to_user_id, amount_cents, caller.id, now, reminded=False)
        settled_id = _close_pending(db, key, now)
        if settled_id is None:
            db.rollback()
            existing = _find(db, key, SettlementStatus.SETTLED)
            logger.info(f"Settlement for trip {trip_id} settled by a concurrent request")
            return SettleResult(settlement=existing, transitioned=False)

    marked = mark_expenses_settled(db, trip_id, from_user_id, to_user_id, now)
    db.commit()

    settlement = db.get(Settlement, settled_id)
    logger.info(
        f"Settlement {settled_id} settled: user {from_user_id} paid user {to_user_id} "
        f"{amount_cents} cents in trip {trip_id}; {marked} expense(s) marked settled"
    )
    return SettleResult(settlement=settlement, transitioned=True, expenses_marked=marked)


def list_settlements(trip_id: int, caller: User, db: Session) -> List[Settlement]:
    """All settlement records of a trip, oldest first."""
    check_trip_access(trip_id, caller.id, db)
    return db.query(Settlement).filter(
        Settlement.trip_id == trip_id
    ).order_by(Settlement.created_at, Settlement.id).all()
