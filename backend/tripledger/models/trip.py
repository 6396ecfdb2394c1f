"""
Trip model for group expense tracking.
"""
from sqlalchemy import Column, String, Text, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from tripledger.db.base import BaseModel


class Trip(BaseModel):
    """Trip model. The owner is always a member even without a participant row."""
    __tablename__ = "trips"

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Relationships
    owner = relationship("User", back_populates="owned_trips")
    participants = relationship("TripParticipant", back_populates="trip", order_by="TripParticipant.id")

    @property
    def participant_ids(self):
        return [p.user_id for p in self.participants]

    def member_ids(self):
        """Owner first, then participants in insertion order."""
        ids = [self.owner_id]
        for user_id in self.participant_ids:
            if user_id not in ids:
                ids.append(user_id)
        return ids


class TripParticipant(BaseModel):
    """Junction table for Trip and User many-to-many relationship."""
    __tablename__ = "trip_participants"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Relationships
    trip = relationship("Trip", back_populates="participants")
    user = relationship("User", back_populates="trips")

    __table_args__ = (
        UniqueConstraint('trip_id', 'user_id', name='uq_trip_participant'),
    )
