"""Models package - Import all models for SQLAlchemy registration."""
from tripledger.models.user import User
from tripledger.models.trip import Trip, TripParticipant
from tripledger.models.expense import Expense, ExpenseParticipant, SplitKind
from tripledger.models.settlement import Settlement, SettlementStatus

__all__ = [
    "User",
    "Trip",
    "TripParticipant",
    "Expense",
    "ExpenseParticipant",
    "SplitKind",
    "Settlement",
    "SettlementStatus",
]
