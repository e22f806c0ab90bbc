"""
Schemas for the account endpoints
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class CreateUserRequest(BaseModel):
    email: EmailStr
    first_name: str = Field(..., min_length=1)


class UpdateUserRequest(BaseModel):
    # Only fields present in the payload are applied; phone_number may be null
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, min_length=1)
    phone_number: Optional[str] = None
    phone_verified: Optional[bool] = None


class UserOut(BaseModel):
    id: int
    email: str
    first_name: str
    phone_number: Optional[str] = None
    phone_verified: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
