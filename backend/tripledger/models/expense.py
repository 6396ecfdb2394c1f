"""
Expense model for tracking shared spending.
"""
import enum
from sqlalchemy import (
    Column, String, Text, ForeignKey, Integer, BigInteger, Boolean, DateTime,
    Enum as SQLEnum, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from tripledger.db.base import BaseModel


class SplitKind(str, enum.Enum):
    """How an expense amount divides across its participants."""
    EQUAL = "equal"
    UNEQUAL = "unequal"


class Expense(BaseModel):
    """Expense model representing a single payment shared by participants."""
    __tablename__ = "expenses"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    payer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    description = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    split_kind = Column(
        SQLEnum(SplitKind, values_callable=lambda e: [m.value for m in e]),
        default=SplitKind.EQUAL,
        nullable=False,
    )
    settled = Column(Boolean, default=False, nullable=False, index=True)
    settled_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    payer = relationship("User", foreign_keys=[payer_id])
    participants = relationship(
        "ExpenseParticipant",
        back_populates="expense",
        order_by="ExpenseParticipant.position",
        cascade="all, delete-orphan",
    )

    @property
    def participant_ids(self):
        return [p.user_id for p in self.participants]

    @property
    def shares_cents(self):
        """Explicit shares, only present for unequal splits."""
        if self.split_kind != SplitKind.UNEQUAL:
            return {}
        return {p.user_id: p.share_cents for p in self.participants if p.share_cents is not None}


class ExpenseParticipant(BaseModel):
    """A participant of an expense, in input order, with an optional explicit share."""
    __tablename__ = "expense_participants"

    expense_id = Column(Integer, ForeignKey("expenses.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)  # Order matters for leftover-cent distribution
    share_cents = Column(BigInteger, nullable=True)  # Only set for unequal splits

    # Relationships
    expense = relationship("Expense", back_populates="participants")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint('expense_id', 'user_id', name='uq_expense_participant'),
    )
