# vozip/models/user.py
"""
Staff user model (cuentas del personal).
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from ..core.timeutils import utc_now


class User(SQLModel, table=True):
    """
    Staff account.

    - national_id and username are globally unique
    - hashed_password: passlib hash (argon2, or legacy hex sha256)
    - role: free-text function label ("Administrador", "Técnico", "Empleado"...)
    - status_id: FK to estados; only "activo" users may log in
    - updated_at is refreshed by the database layer on every UPDATE
    """

    __tablename__ = "master_users"

    id: Optional[int] = Field(default=None, primary_key=True)
    national_id: str = Field(unique=True, index=True, nullable=False, max_length=20)
    username: str = Field(unique=True, index=True, nullable=False, max_length=100)
    hashed_password: str = Field(nullable=False, max_length=1024)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=30)
    role: Optional[str] = Field(default=None, max_length=50)
    status_id: int = Field(default=1, foreign_key="estados.id", nullable=False)
    created_at: datetime = Field(
        default_factory=utc_now, nullable=False, sa_type=DateTime(timezone=True)
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        nullable=False,
        sa_column_kwargs={"onupdate": utc_now},
    )

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p) or self.username
