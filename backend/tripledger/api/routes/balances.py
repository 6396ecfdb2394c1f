"""
Balance routes.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from tripledger.core.utils import from_cents
from tripledger.db.session import get_db
from tripledger.models.user import User
from tripledger.schemas.balance import BalanceSummary, PairBalanceResponse, Transfer
from tripledger.api.dependencies import get_current_user
from tripledger.services import balance_service

router = APIRouter(prefix="/balances", tags=["balances"])


@router.get("", response_model=BalanceSummary)
async def get_balances(
    trip_id: int = Query(alias="tripId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Net balance per user pair, plus the fewest transfers that clear them."""
    pairs = balance_service.net_balances(trip_id, current_user, db)
    transfers = balance_service.suggest_transfers(pairs)

    return BalanceSummary(
        trip_id=trip_id,
        balances=[
            PairBalanceResponse(user_a=p.user_a, user_b=p.user_b, amount=from_cents(p.amount_cents))
            for p in pairs
        ],
        transfers=[
            Transfer(from_user_id=t.from_user_id, to_user_id=t.to_user_id, amount=from_cents(t.amount_cents))
            for t in transfers
        ]
    )
