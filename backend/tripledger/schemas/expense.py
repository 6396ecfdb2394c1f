"""
Pydantic schemas for Expense entity.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional
from datetime import datetime
from decimal import Decimal
from tripledger.models.expense import SplitKind


class ExpenseCreate(BaseModel):
    """Schema for expense creation."""
    model_config = ConfigDict(populate_by_name=True)

    trip_id: int = Field(alias="tripId")
    description: str = Field(min_length=1)
    amount: Decimal
    paid_by: int = Field(alias="paidBy")
    participants: List[int]
    split_kind: SplitKind = Field(default=SplitKind.EQUAL, alias="splitType")
    shares: Dict[int, Decimal] = Field(default_factory=dict)  # Only for unequal: user id -> amount owed


class ExpenseUpdate(BaseModel):
    """Schema for expense update. Omitted fields keep their stored value."""
    model_config = ConfigDict(populate_by_name=True)

    description: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[Decimal] = None
    paid_by: Optional[int] = Field(default=None, alias="paidBy")
    participants: Optional[List[int]] = None
    split_kind: Optional[SplitKind] = Field(default=None, alias="splitType")
    shares: Optional[Dict[int, Decimal]] = None


class ExpenseResponse(BaseModel):
    """Schema for expense response."""
    id: int
    trip_id: int
    description: str
    amount: Decimal
    paid_by: int
    participants: List[int]
    split_kind: SplitKind
    shares: Dict[int, Decimal] = {}  # As entered, unequal splits only
    computed_shares: Dict[int, Decimal] = {}  # What each participant owes
    created_by: int
    settled: bool
    settled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
