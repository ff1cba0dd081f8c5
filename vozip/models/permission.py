from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from ..core.timeutils import utc_now


class Permission(SQLModel, table=True):
    """Permiso con convención "modulo.accion" (ej. clientes.crear)."""

    __tablename__ = "permisos"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True, index=True, nullable=False, max_length=100)
    description: Optional[str] = Field(default=None, max_length=255)


class UserPermission(SQLModel, table=True):
    __tablename__ = "usuario_permiso"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="master_users.id", nullable=False, index=True)
    permission_id: int = Field(foreign_key="permisos.id", nullable=False, index=True)
    assigned_at: datetime = Field(
        default_factory=utc_now, nullable=False, sa_type=DateTime(timezone=True)
    )
