from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class AssignmentCreate(BaseModel):
    user_id: Optional[int] = None
    permission_id: Optional[int] = None


class Assignment(BaseModel):
    id: int
    user_id: int
    username: str
    user_full_name: str
    user_role: Optional[str] = None
    permission_id: int
    permission_name: str
    permission_description: Optional[str] = None
    assigned_at: datetime
