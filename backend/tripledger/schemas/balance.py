"""
Pydantic schemas for derived trip balances.
"""
from pydantic import BaseModel
from typing import List
from decimal import Decimal


class PairBalanceResponse(BaseModel):
    """Net balance of a pair. Positive: user_b owes user_a. Negative: user_a owes user_b."""
    user_a: int
    user_b: int
    amount: Decimal


class Transfer(BaseModel):
    """Schema for a single suggested transfer."""
    from_user_id: int
    to_user_id: int
    amount: Decimal


class BalanceSummary(BaseModel):
    """Schema for balance summary."""
    trip_id: int
    balances: List[PairBalanceResponse]
    transfers: List[Transfer]
