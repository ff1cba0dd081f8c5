from decimal import Decimal
from typing import Optional

from sqlmodel import Field, SQLModel


class Tariff(SQLModel, table=True):
    """Valor mensual que se cobra al cliente."""

    __tablename__ = "tarifa"

    id: Optional[int] = Field(default=None, primary_key=True)
    value: Decimal = Field(nullable=False, max_digits=10, decimal_places=2)
