"""
Main API routers.

api_router is mounted under /api; root_router carries the credential endpoints
and the settlement actions, which live outside the /api prefix.
"""
from fastapi import APIRouter
from tripledger.api.routes import auth, users, trips, expenses, settlements, balances

api_router = APIRouter()

api_router.include_router(users.router)
api_router.include_router(trips.router)
api_router.include_router(expenses.router)
api_router.include_router(settlements.router)
api_router.include_router(balances.router)

root_router = APIRouter()

root_router.include_router(auth.router)
root_router.include_router(settlements.actions_router)
