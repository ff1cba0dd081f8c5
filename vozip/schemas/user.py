# vozip/schemas/user.py
"""
Pydantic schemas for staff users.
These schemas control what data is sent/received via the API.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class UserRead(BaseModel):
    """
    Schema for reading user data (API responses).
    Never includes the password hash.
    """

    id: int
    national_id: str
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    status_id: int
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class UserDetail(UserRead):
    """UserRead plus the effective permission names."""

    permissions: list[str] = []


class UserCreate(BaseModel):
    """
    Schema for creating new users.
    national_id, username and password are validated by the service
    so the API answers 400 with a readable message.
    """

    national_id: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    status_id: int = 1


class UserUpdate(BaseModel):
    """
    Schema for updating existing users.
    All fields are optional; the password changes through PasswordChange.
    """

    national_id: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    status_id: Optional[int] = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: str
