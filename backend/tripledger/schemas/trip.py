"""
Pydantic schemas for Trip entity.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime


class TripCreate(BaseModel):
    """Schema for trip creation. The caller becomes the owner."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    participant_ids: List[int] = Field(default_factory=list, alias="participants")


class TripUpdate(BaseModel):
    """Schema for trip update. participant_ids replaces the current list."""
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    participant_ids: Optional[List[int]] = Field(default=None, alias="participants")


class TripResponse(BaseModel):
    """Schema for trip response."""
    id: int
    name: str
    description: Optional[str] = None
    owner_id: int
    participant_ids: List[int] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
