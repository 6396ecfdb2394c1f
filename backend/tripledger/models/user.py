"""
User model for authentication and user management.
"""
from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from tripledger.db.base import BaseModel


class User(BaseModel):
    """User model. Email is the login identity and never changes."""
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)

    # Relationships
    owned_trips = relationship("Trip", back_populates="owner")
    trips = relationship("TripParticipant", back_populates="user")
