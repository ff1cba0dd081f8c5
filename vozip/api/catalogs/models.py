from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


# --- Tarifas ---
class Tariff(BaseModel):
    id: int
    value: Decimal
    model_config = ConfigDict(from_attributes=True)


class TariffCreate(BaseModel):
    value: Decimal = Field(ge=0, max_digits=10, decimal_places=2)


class TariffUpdate(BaseModel):
    value: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)


# --- Planes ---
class Plan(BaseModel):
    id: int
    name: str
    speed: str
    model_config = ConfigDict(from_attributes=True)


class PlanCreate(BaseModel):
    name: str
    speed: str


class PlanUpdate(BaseModel):
    name: str | None = None
    speed: str | None = None


# --- Sectores ---
class Sector(BaseModel):
    id: int
    name: str
    description: str | None = None
    model_config = ConfigDict(from_attributes=True)


class SectorCreate(BaseModel):
    name: str
    description: str | None = None


class SectorUpdate(BaseModel):
    name: str | None = None
    description: str | None = None


# --- Catálogos con solo nombre (tipos de servicio, estados, métodos de pago) ---
class NamedItem(BaseModel):
    id: int
    name: str
    model_config = ConfigDict(from_attributes=True)


class NamedItemCreate(BaseModel):
    name: str


class NamedItemUpdate(BaseModel):
    name: str | None = None


# --- Permisos ---
class Permission(BaseModel):
    id: int
    name: str
    description: str | None = None
    model_config = ConfigDict(from_attributes=True)


class PermissionCreate(BaseModel):
    name: str
    description: str | None = None


class PermissionUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
