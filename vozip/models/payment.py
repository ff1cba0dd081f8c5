# vozip/models/payment.py
"""
Payment model for client payment tracking.
"""
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlmodel import Field, SQLModel


class Payment(SQLModel, table=True):
    """
    Payment model representing client payments.

    Fields:
    - id: Auto-increment primary key
    - client_id: Foreign key to clientes table (required)
    - payment_date: Date the money was received
    - month / year: Billing period paid (month is a Spanish month name)
    - amount: Payment amount (required)
    - payment_method_id: Foreign key to metodo_de_pago
    - plan_name / plan_speed / tariff_value: snapshot of the client's plan at
      registration time, kept for history

    (client_id, month, year) is intentionally not unique.
    """

    __tablename__ = "pagos"

    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: int = Field(foreign_key="clientes.id", nullable=False, index=True)
    payment_date: date = Field(nullable=False)
    month: str = Field(nullable=False, max_length=20)
    year: int = Field(nullable=False, index=True)
    amount: Decimal = Field(nullable=False, max_digits=10, decimal_places=2)
    payment_method_id: int = Field(foreign_key="metodo_de_pago.id", nullable=False)

    plan_name: Optional[str] = Field(default=None, max_length=100)
    plan_speed: Optional[str] = Field(default=None, max_length=50)
    tariff_value: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
