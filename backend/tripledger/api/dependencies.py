"""
Shared FastAPI dependencies: current user and notifier.
"""
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from tripledger.core.exceptions import AuthenticationError
from tripledger.core.security import decode_access_token
from tripledger.db.session import get_db
from tripledger.models.user import User
from tripledger.services.notification_service import EmailNotifier, Notifier

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the bearer token to a stored user."""
    if credentials is None:
        raise AuthenticationError("No token provided")

    identity = decode_access_token(credentials.credentials)
    if identity is None:
        raise AuthenticationError("Invalid or expired token")

    user = db.get(User, identity.user_id)
    if user is None or user.email != identity.email:
        raise AuthenticationError("Invalid token payload")
    return user


def get_notifier() -> Notifier:
    """Notifier used for settlement reminders."""
    return EmailNotifier()
