"""Schemas for user records"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from uuid import UUID


class UserCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    full_name: Optional[str] = Field(None, max_length=200)


class UserResponse(BaseModel):
    user_id: UUID
    email: str
    full_name: Optional[str]
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}
