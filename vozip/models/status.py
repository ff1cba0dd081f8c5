from typing import Optional

from sqlmodel import Field, SQLModel


class Status(SQLModel, table=True):
    """Estado compartido por clientes y usuarios (activo, suspendido, retirado, convenio)."""

    __tablename__ = "estados"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=50)
