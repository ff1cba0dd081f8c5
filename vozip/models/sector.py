from typing import Optional

from sqlmodel import Field, SQLModel


class Sector(SQLModel, table=True):
    """Zona geográfica donde se ubica el cliente."""

    __tablename__ = "sector"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=100)
    description: Optional[str] = Field(default=None)
