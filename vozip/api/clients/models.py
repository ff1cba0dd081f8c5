from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


# --- Modelos Pydantic (Cliente) ---
class Client(BaseModel):
    id: int
    first_name: str
    last_name: str | None = None
    national_id: str
    phone: str
    address: str
    ip_address: str | None = None
    installation_date: date
    status_id: int
    service_type_id: int
    plan_id: int
    sector_id: int
    tariff_id: int
    model_config = ConfigDict(from_attributes=True)


class ClientListItem(Client):
    status_name: str | None = None
    service_type_name: str | None = None
    plan_name: str | None = None
    plan_speed: str | None = None
    sector_name: str | None = None
    tariff_value: Decimal | None = None


class ClientCreate(BaseModel):
    first_name: str
    last_name: str | None = None
    national_id: str
    phone: str
    address: str
    ip_address: str | None = None
    installation_date: date
    status_id: int = 1
    service_type_id: int
    plan_id: int
    sector_id: int
    tariff_id: int


class ClientUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    national_id: str | None = None
    phone: str | None = None
    address: str | None = None
    ip_address: str | None = None
    installation_date: date | None = None
    status_id: int | None = None
    service_type_id: int | None = None
    plan_id: int | None = None
    sector_id: int | None = None
    tariff_id: int | None = None


# --- Morosos ---
class DelinquentClient(BaseModel):
    client_id: int
    first_name: str
    last_name: str | None = None
    national_id: str
    phone: str | None = None
    address: str | None = None
    sector: str | None = None
    service_type: str | None = None
    installation_date: date
    unpaid_periods: int
    tariff_value: Decimal
    amount_owed: Decimal
    is_delinquent: bool


class DelinquentReport(BaseModel):
    threshold: int
    total: int
    clients: list[DelinquentClient]
