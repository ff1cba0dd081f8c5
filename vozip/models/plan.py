from typing import Optional

from sqlmodel import Field, SQLModel


class Plan(SQLModel, table=True):
    __tablename__ = "plan_mb"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=100)
    speed: str = Field(nullable=False, max_length=50)  # ej. "10MB"
