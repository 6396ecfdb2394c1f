"""
Expense management routes.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from tripledger.core.utils import from_cents
from tripledger.db.session import get_db
from tripledger.models.expense import Expense
from tripledger.models.user import User
from tripledger.schemas.expense import ExpenseCreate, ExpenseUpdate, ExpenseResponse
from tripledger.api.dependencies import get_current_user
from tripledger.services import expense_service

router = APIRouter(prefix="/expenses", tags=["expenses"])


def to_expense_response(expense: Expense) -> ExpenseResponse:
    """Map a stored expense (cents) to its API shape (decimal amounts)."""
    return ExpenseResponse(
        id=expense.id,
        trip_id=expense.trip_id,
        description=expense.description,
        amount=from_cents(expense.amount_cents),
        paid_by=expense.payer_id,
        participants=expense.participant_ids,
        split_kind=expense.split_kind,
        shares={uid: from_cents(c) for uid, c in expense.shares_cents.items()},
        computed_shares={
            uid: from_cents(c) for uid, c in expense_service.computed_shares(expense).items()
        },
        created_by=expense.created_by,
        settled=expense.settled,
        settled_at=expense.settled_at,
        created_at=expense.created_at,
        updated_at=expense.updated_at
    )


@router.get("", response_model=List[ExpenseResponse])
async def list_expenses(
    trip_id: Optional[int] = Query(default=None, alias="tripId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List expenses of a trip, or of all the user's trips when tripId is omitted."""
    expenses = expense_service.list_expenses(trip_id, current_user, db)
    return [to_expense_response(expense) for expense in expenses]


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense_data: ExpenseCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a new expense."""
    expense = expense_service.create_expense(expense_data, current_user, db)
    return to_expense_response(expense)


@router.patch("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: int,
    expense_data: ExpenseUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update an expense."""
    expense = expense_service.update_expense(expense_id, expense_data, current_user, db)
    return to_expense_response(expense)


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete an expense."""
    expense_service.delete_expense(expense_id, current_user, db)
    return {"message": "Expense deleted"}
