"""
Guest-related Pydantic schemas
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator

class GuestCreate(BaseModel):
    """Schema for creating a guest"""
    name: str = Field(min_length=1)
    department: Optional[str] = None
    email: Optional[str] = None

class GuestUpdate(BaseModel):
    """Schema for updating a guest; omitted fields are left unchanged"""
    name: Optional[str] = Field(default=None, min_length=1)
    department: Optional[str] = None
    email: Optional[str] = None
    checked_in: Optional[bool] = None

    @field_validator("name", "checked_in")
    @classmethod
    def not_null(cls, value):
        # Only runs for fields the client actually sent
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

class GuestResponse(BaseModel):
    """Guest response schema"""
    id: int
    name: str
    department: Optional[str] = None
    email: Optional[str] = None
    table_number: Optional[int] = None
    check_in_id: Optional[str] = None
    checked_in: bool
    
    class Config:
        from_attributes = True

class LookupRequest(BaseModel):
    """Guest lookup request"""
    public_code: str
    name: str = Field(min_length=1)

class CheckInRequest(BaseModel):
    """Guest check-in request"""
    check_in_id: str
