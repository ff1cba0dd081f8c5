from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer
from sqlmodel import Field, SQLModel

from ..core.timeutils import utc_now


class AuditLog(SQLModel, table=True):
    """Registro de bitácora. Solo se inserta; el borrado es por retención."""

    __tablename__ = "bitacora"

    id: Optional[int] = Field(default=None, primary_key=True)
    # None = acción del sistema o no autenticada
    user_id: Optional[int] = Field(
        default=None,
        sa_column=Column(
            Integer,
            ForeignKey("master_users.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        ),
    )
    action: str = Field(nullable=False, index=True, max_length=100)
    module: str = Field(nullable=False, index=True, max_length=50)
    description: Optional[str] = None
    previous_data: Optional[Any] = Field(default=None, sa_column=Column(JSON, nullable=True))
    new_data: Optional[Any] = Field(default=None, sa_column=Column(JSON, nullable=True))
    ip_address: Optional[str] = Field(default=None, max_length=45)
    user_agent: Optional[str] = None
    created_at: datetime = Field(
        default_factory=utc_now, nullable=False, index=True, sa_type=DateTime(timezone=True)
    )
