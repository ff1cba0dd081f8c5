# vozip/models/client.py
"""
Client model for ISP customer management.
"""
from datetime import date
from typing import Optional

from sqlmodel import Field, SQLModel


class Client(SQLModel, table=True):
    """
    Client model representing ISP customers.

    Fields:
    - id: Auto-increment primary key
    - first_name / last_name: Client name (required)
    - national_id: Cédula
    - phone, address, ip_address: Contact and network data
    - installation_date: Anchors the billing cycle (day of month).
      Immutable once the client has payments.
    - status_id, service_type_id, plan_id, sector_id, tariff_id: Catalog FKs
    """

    __tablename__ = "clientes"

    id: Optional[int] = Field(default=None, primary_key=True)
    first_name: str = Field(nullable=False, index=True, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    national_id: str = Field(nullable=False, index=True, max_length=20)
    phone: str = Field(nullable=False, max_length=30)
    address: str = Field(nullable=False, max_length=255)
    ip_address: Optional[str] = Field(default=None, max_length=45)
    installation_date: date = Field(nullable=False)

    status_id: int = Field(foreign_key="estados.id", nullable=False, index=True)
    service_type_id: int = Field(foreign_key="tipo_servicio.id", nullable=False)
    plan_id: int = Field(foreign_key="plan_mb.id", nullable=False)
    sector_id: int = Field(foreign_key="sector.id", nullable=False)
    tariff_id: int = Field(foreign_key="tarifa.id", nullable=False)

    @property
    def billing_day(self) -> int:
        return self.installation_date.day
