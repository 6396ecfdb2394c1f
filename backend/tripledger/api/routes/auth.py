"""
Authentication routes for signup and login.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from tripledger.core.exceptions import AuthenticationError, ConflictError
from tripledger.core.security import verify_password, get_password_hash, create_access_token
from tripledger.db.session import get_db
from tripledger.models.user import User
from tripledger.schemas.user import UserCreate, UserLogin, AuthResponse

router = APIRouter(tags=["auth"])


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(user_data: UserCreate, db: Session = Depends(get_db)):
    """Register a new user and return a token for them."""
    existing_email = db.query(User).filter(User.email == user_data.email).first()
    if existing_email:
        raise ConflictError("Email already registered")

    new_user = User(
        email=user_data.email,
        name=user_data.name,
        hashed_password=get_password_hash(user_data.password)
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    access_token = create_access_token(new_user.id, new_user.email)
    return {"access_token": access_token, "token_type": "bearer", "user": new_user}


@router.post("/login", response_model=AuthResponse)
async def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Login and get JWT token."""
    user = db.query(User).filter(User.email == credentials.email).first()

    if not user or not verify_password(credentials.password, user.hashed_password):
        raise AuthenticationError("Invalid email or password")

    access_token = create_access_token(user.id, user.email)
    return {"access_token": access_token, "token_type": "bearer", "user": user}
