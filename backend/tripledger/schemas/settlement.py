"""
Pydantic schemas for Settlement entity.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal
from tripledger.models.settlement import SettlementStatus


class SettlementRequest(BaseModel):
    """Body of /settlements/remind and /settlements/settle."""
    model_config = ConfigDict(populate_by_name=True)

    trip_id: int = Field(alias="tripId")
    from_user_id: int = Field(alias="fromUserId")  # Debtor
    to_user_id: int = Field(alias="toUserId")  # Creditor
    amount: Decimal


class SettlementResponse(BaseModel):
    """Schema for settlement record response."""
    id: int
    trip_id: int
    from_user_id: int
    to_user_id: int
    amount: Decimal
    status: SettlementStatus
    initiated_by: int
    created_at: datetime
    reminded_at: Optional[datetime] = None
    settled_at: Optional[datetime] = None


class RemindResponse(BaseModel):
    """Result of a reminder. warning is set when the email could not be sent."""
    message: str
    settlement: SettlementResponse
    created: bool
    notified: bool
    warning: Optional[str] = None


class SettleResponse(BaseModel):
    """Result of a settle call. transitioned is False when it was already settled."""
    message: str
    settlement: SettlementResponse
    transitioned: bool
    expenses_marked: int
