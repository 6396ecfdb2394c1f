"""
Settlement model for debts between two trip members.
"""
import enum
from sqlalchemy import (
    Column, ForeignKey, Integer, BigInteger, DateTime, UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from tripledger.db.base import BaseModel


class SettlementStatus(str, enum.Enum):
    """Settlement status enumeration. SETTLED is terminal."""
    PENDING = "pending"
    SETTLED = "settled"


class Settlement(BaseModel):
    """A debt of from_user to to_user within a trip, and whether it has been paid."""
    __tablename__ = "settlements"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    from_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # Debtor
    to_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # Creditor
    amount_cents = Column(BigInteger, nullable=False)
    status = Column(
        SQLEnum(SettlementStatus, values_callable=lambda e: [m.value for m in e]),
        default=SettlementStatus.PENDING,
        nullable=False,
    )
    initiated_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    reminded_at = Column(DateTime(timezone=True), nullable=True)
    settled_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    from_user = relationship("User", foreign_keys=[from_user_id])
    to_user = relationship("User", foreign_keys=[to_user_id])

    # At most one pending and one settled record per key
    __table_args__ = (
        UniqueConstraint(
            'trip_id', 'from_user_id', 'to_user_id', 'amount_cents', 'status',
            name='uq_settlement_key_status',
        ),
    )
