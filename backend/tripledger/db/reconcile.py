"""
Reconciliation sweep for ledger records whose trip no longer exists.
Run with: python -m tripledger.db.reconcile
"""
import logging
from sqlalchemy import select
from sqlalchemy.orm import Session
from tripledger.models.expense import Expense, ExpenseParticipant
from tripledger.models.settlement import Settlement
from tripledger.models.trip import Trip

logger = logging.getLogger(__name__)


def sweep_orphans(db: Session) -> dict:
    """Delete expenses (with participant rows) and settlements that reference a missing trip."""
    existing_trips = select(Trip.id)
    orphan_expenses = select(Expense.id).where(Expense.trip_id.not_in(existing_trips))

    participants_deleted = db.query(ExpenseParticipant).filter(
        ExpenseParticipant.expense_id.in_(orphan_expenses)
    ).delete(synchronize_session=False)
    expenses_deleted = db.query(Expense).filter(
        Expense.trip_id.not_in(existing_trips)
    ).delete(synchronize_session=False)
    settlements_deleted = db.query(Settlement).filter(
        Settlement.trip_id.not_in(existing_trips)
    ).delete(synchronize_session=False)
    db.commit()

    result = {
        "expense_participants": participants_deleted,
        "expenses": expenses_deleted,
        "settlements": settlements_deleted,
    }
    logger.info(f"Reconciliation sweep removed {result}")
    return result


if __name__ == "__main__":
    from tripledger.db.session import SessionLocal

    db = SessionLocal()
    try:
        print("Sweeping orphaned ledger records...")
        counts = sweep_orphans(db)
        for table, count in counts.items():
            print(f"  {table}: {count} removed")
        print("Sweep completed successfully!")
    except Exception as e:
        db.rollback()
        print(f"Sweep failed: {e}")
        raise
    finally:
        db.close()
