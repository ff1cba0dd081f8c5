from typing import Optional

from sqlmodel import Field, SQLModel


class ServiceType(SQLModel, table=True):
    __tablename__ = "tipo_servicio"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=100)
