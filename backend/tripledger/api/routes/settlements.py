"""
Settlement routes.

The list endpoint sits under /api/settlements; the remind and settle actions are
served from /settlements at the root.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List
from tripledger.core.utils import from_cents, to_cents
from tripledger.db.session import get_db
from tripledger.models.settlement import Settlement, SettlementStatus
from tripledger.models.user import User
from tripledger.schemas.settlement import (
    SettlementRequest, SettlementResponse, RemindResponse, SettleResponse
)
from tripledger.api.dependencies import get_current_user, get_notifier
from tripledger.services import settlement_service
from tripledger.services.notification_service import Notifier

router = APIRouter(prefix="/settlements", tags=["settlements"])
actions_router = APIRouter(prefix="/settlements", tags=["settlements"])


def to_settlement_response(settlement: Settlement) -> SettlementResponse:
    return SettlementResponse(
        id=settlement.id,
        trip_id=settlement.trip_id,
        from_user_id=settlement.from_user_id,
        to_user_id=settlement.to_user_id,
        amount=from_cents(settlement.amount_cents),
        status=settlement.status,
        initiated_by=settlement.initiated_by,
        created_at=settlement.created_at,
        reminded_at=settlement.reminded_at,
        settled_at=settlement.settled_at
    )


@router.get("", response_model=List[SettlementResponse])
async def list_settlements(
    trip_id: int = Query(alias="tripId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List settlement records of a trip."""
    settlements = settlement_service.list_settlements(trip_id, current_user, db)
    return [to_settlement_response(s) for s in settlements]


@actions_router.post("/remind", response_model=RemindResponse)
def remind(
    request: SettlementRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Open (or refresh) a pending settlement and email the debtor.
    Declared sync so FastAPI runs the blocking SMTP delivery in its threadpool.
    """
    result = settlement_service.remind(
        request.trip_id,
        request.from_user_id,
        request.to_user_id,
        to_cents(request.amount),
        current_user,
        db,
        notifier
    )
    if result.notified:
        message = "Reminder sent"
    elif result.settlement.status == SettlementStatus.SETTLED:
        message = "Already settled"
    else:
        message = "Reminder recorded, email not sent"
    return RemindResponse(
        message=message,
        settlement=to_settlement_response(result.settlement),
        created=result.created,
        notified=result.notified,
        warning=result.warning
    )


@actions_router.post("/settle", response_model=SettleResponse)
async def settle(
    request: SettlementRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Mark a debt as settled."""
    result = settlement_service.settle(
        request.trip_id,
        request.from_user_id,
        request.to_user_id,
        to_cents(request.amount),
        current_user,
        db
    )
    message = "Settlement recorded" if result.transitioned else "Already settled"
    return SettleResponse(
        message=message,
        settlement=to_settlement_response(result.settlement),
        transitioned=result.transitioned,
        expenses_marked=result.expenses_marked
    )
