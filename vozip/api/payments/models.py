from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


# --- Modelos Pydantic (Pagos) ---
class Payment(BaseModel):
    id: int
    client_id: int
    payment_date: date
    month: str
    year: int
    amount: Decimal
    payment_method_id: int
    plan_name: str | None = None
    plan_speed: str | None = None
    tariff_value: Decimal | None = None
    model_config = ConfigDict(from_attributes=True)


class PaymentListItem(Payment):
    client_name: str | None = None
    payment_method_name: str | None = None


class PaymentCreate(BaseModel):
    client_id: int
    payment_date: date
    month: str
    year: int = Field(ge=2000, le=2100)
    amount: Decimal = Field(gt=0)
    payment_method_id: int


class PaymentUpdate(BaseModel):
    payment_date: date | None = None
    month: str | None = None
    year: int | None = Field(default=None, ge=2000, le=2100)
    amount: Decimal | None = Field(default=None, gt=0)
    payment_method_id: int | None = None


class MonthlyIncome(BaseModel):
    month: str
    month_number: int
    total: Decimal
    payments: int


class MonthlyIncomeReport(BaseModel):
    year: int
    total: Decimal
    months: list[MonthlyIncome]
