# vozip/services/client_service.py
import logging
from typing import Any, Dict, List

from sqlalchemy import or_
from sqlmodel import Session, func, select

from ..api.clients.models import ClientCreate, ClientUpdate
from ..core.exceptions import ConflictError
from ..models.client import Client
from ..models.payment import Payment
from ..models.plan import Plan
from ..models.sector import Sector
from ..models.service_type import ServiceType
from ..models.status import Status
from ..models.tariff import Tariff

logger = logging.getLogger(__name__)

# campo FK -> (modelo, nombre legible para el mensaje de error)
CATALOG_REFERENCES = {
    "status_id": (Status, "estado"),
    "service_type_id": (ServiceType, "tipo de servicio"),
    "plan_id": (Plan, "plan"),
    "sector_id": (Sector, "sector"),
    "tariff_id": (Tariff, "tarifa"),
}

TEXT_FIELDS = ("first_name", "national_id", "phone", "address")
# columnas NOT NULL que un PUT parcial no puede dejar en null
REQUIRED_FIELDS = ("installation_date", *CATALOG_REFERENCES)


class ClientService:
    def __init__(self, session: Session):
        self.session = session

    def _listing_statement(self):
        return (
            select(Client, Status, ServiceType, Plan, Sector, Tariff)
            .join(Status, Status.id == Client.status_id, isouter=True)
            .join(ServiceType, ServiceType.id == Client.service_type_id, isouter=True)
            .join(Plan, Plan.id == Client.plan_id, isouter=True)
            .join(Sector, Sector.id == Client.sector_id, isouter=True)
            .join(Tariff, Tariff.id == Client.tariff_id, isouter=True)
            .order_by(Client.id)
        )

    @staticmethod
    def _to_listing(row) -> Dict[str, Any]:
        client, status, service_type, plan, sector, tariff = row
        data = client.model_dump()
        data.update(
            status_name=status.name if status else None,
            service_type_name=service_type.name if service_type else None,
            plan_name=plan.name if plan else None,
            plan_speed=plan.speed if plan else None,
            sector_name=sector.name if sector else None,
            tariff_value=tariff.value if tariff else None,
        )
        return data

    def get_all_clients(self) -> List[Dict[str, Any]]:
        """Clientes con los nombres de sus catálogos (estado, tipo, plan, sector, tarifa)."""
        return [self._to_listing(row) for row in self.session.exec(self._listing_statement())]

    def search_clients(self, name: str) -> List[Dict[str, Any]]:
        if not name or not name.strip():
            raise ValueError("El parámetro nombre es requerido")
        pattern = f"%{name.strip().lower()}%"
        full_name = func.lower(Client.first_name + " " + func.coalesce(Client.last_name, ""))
        statement = self._listing_statement().where(
            or_(
                func.lower(Client.first_name).like(pattern),
                func.lower(Client.last_name).like(pattern),
                full_name.like(pattern),
            )
        )
        return [self._to_listing(row) for row in self.session.exec(statement)]

    def get_client(self, client_id: int) -> Client:
        client = self.session.get(Client, client_id)
        if not client:
            raise FileNotFoundError("Cliente no encontrado")
        return client

    def has_payments(self, client_id: int) -> bool:
        statement = select(func.count()).select_from(Payment).where(Payment.client_id == client_id)
        return self.session.exec(statement).one() > 0

    def _validate_references(self, data: Dict[str, Any]) -> None:
        for field, (model, label) in CATALOG_REFERENCES.items():
            if field in data and data[field] is not None:
                if not self.session.get(model, data[field]):
                    raise ValueError(f"El {label} proporcionado no existe")

    def _validate_text(self, data: Dict[str, Any]) -> None:
        for field in TEXT_FIELDS:
            if field in data and (data[field] is None or not str(data[field]).strip()):
                raise ValueError("Todos los campos son obligatorios")

    def create_client(self, client_data: ClientCreate) -> Client:
        data = client_data.model_dump()
        self._validate_text(data)
        self._validate_references(data)

        client = Client(**data)
        self.session.add(client)
        self.session.commit()
        self.session.refresh(client)
        logger.info(f"Cliente creado: {client.first_name} (id={client.id})")
        return client

    def update_client(self, client_id: int, client_update: ClientUpdate) -> Client:
        client = self.get_client(client_id)
        update_data = client_update.model_dump(exclude_unset=True)
        self._validate_text(update_data)
        missing = [f for f in REQUIRED_FIELDS if f in update_data and update_data[f] is None]
        if missing:
            raise ValueError(f"Campos obligatorios no pueden ser nulos: {', '.join(missing)}")
        self._validate_references(update_data)

        new_date = update_data.get("installation_date")
        if (
            new_date is not None
            and new_date != client.installation_date
            and self.has_payments(client_id)
        ):
            # el día de facturación sale de esta fecha
            raise ConflictError(
                "No se puede modificar la fecha de instalación de un cliente con pagos registrados"
            )

        for key, value in update_data.items():
            setattr(client, key, value)
        self.session.add(client)
        self.session.commit()
        self.session.refresh(client)
        return client

    def delete_client(self, client_id: int) -> Client:
        client = self.get_client(client_id)
        payments = self.session.exec(
            select(func.count()).select_from(Payment).where(Payment.client_id == client_id)
        ).one()
        if payments:
            raise ConflictError(
                f"No se puede eliminar el cliente porque tiene {payments} pagos registrados",
                extra={"pagosAsociados": payments},
            )
        self.session.delete(client)
        self.session.commit()
        logger.info(f"Cliente eliminado: id={client_id}")
        return client
