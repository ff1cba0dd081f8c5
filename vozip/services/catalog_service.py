# vozip/services/catalog_service.py
"""
Servicios de catálogos (tarifas, planes, sectores, tipos de servicio, estados,
métodos de pago). Todos comparten las mismas reglas:

- el campo identificador (nombre o valor) es único -> ConflictError
- no se puede eliminar un registro referenciado por otros -> ConflictError
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

from sqlmodel import Session, func, select

from ..core.exceptions import ConflictError
from ..models.client import Client
from ..models.payment import Payment
from ..models.payment_method import PaymentMethod
from ..models.plan import Plan
from ..models.sector import Sector
from ..models.service_type import ServiceType
from ..models.status import Status
from ..models.tariff import Tariff
from ..models.user import User
from .base_service import BaseCRUDService, ModelType

logger = logging.getLogger(__name__)


class CatalogService(BaseCRUDService[ModelType]):
    model_class: Type[Any]
    label = "Registro"
    noun = "registro"
    feminine = False
    unique_field = "name"
    unique_label = "nombre"
    case_insensitive = False
    required_message = "El nombre es obligatorio"
    # (modelo, columna FK, sustantivo plural)
    referenced_by: Sequence[Tuple[Type[Any], str, str]] = ()

    def __init__(self, session: Session):
        super().__init__(session, self.model_class)

    # --- mensajes ---
    @property
    def _article(self) -> str:
        return "una" if self.feminine else "un"

    @property
    def _other(self) -> str:
        return "otra" if self.feminine else "otro"

    def _in_use_message(self, count: int, referrer: str) -> str:
        article = "la" if self.feminine else "el"
        used = "utilizada" if self.feminine else "utilizado"
        return (
            f"No se puede eliminar {article} {self.noun} porque está siendo "
            f"{used} por {count} {referrer}"
        )

    # --- consultas ---
    def get_all(self) -> List[ModelType]:
        column = getattr(self.model, self.unique_field)
        return list(self.session.exec(select(self.model).order_by(column)).all())

    def find_duplicate(self, value: Any, exclude_id: Optional[int] = None) -> Optional[ModelType]:
        column = getattr(self.model, self.unique_field)
        if self.case_insensitive and isinstance(value, str):
            statement = select(self.model).where(func.lower(column) == value.lower())
        else:
            statement = select(self.model).where(column == value)
        if exclude_id is not None:
            statement = statement.where(self.model.id != exclude_id)
        return self.session.exec(statement).first()

    def count_references(self, id: int) -> Tuple[int, Optional[str]]:
        for ref_model, fk, referrer in self.referenced_by:
            statement = select(func.count()).select_from(ref_model).where(
                getattr(ref_model, fk) == id
            )
            count = self.session.exec(statement).one()
            if count:
                return count, referrer
        return 0, None

    # --- escritura ---
    def _validate(self, data: Dict[str, Any]) -> Dict[str, Any]:
        value = data.get(self.unique_field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError(self.required_message)
        if isinstance(value, str):
            data[self.unique_field] = value.strip()
        return data

    def create(self, data: Dict[str, Any]) -> ModelType:
        data = self._validate(dict(data))
        if self.find_duplicate(data[self.unique_field]):
            raise ConflictError(
                f"Ya existe {self._article} {self.noun} con ese {self.unique_label}"
            )
        return super().create(data)

    def update(self, id: int, data: Dict[str, Any]) -> ModelType:
        self.get_by_id(id)
        data = dict(data)
        if self.unique_field in data:
            data = self._validate(data)
            if self.find_duplicate(data[self.unique_field], exclude_id=id):
                raise ConflictError(
                    f"Ya existe {self._other} {self.noun} con ese {self.unique_label}"
                )
        return super().update(id, data)

    def delete(self, id: int) -> ModelType:
        self.get_by_id(id)
        count, referrer = self.count_references(id)
        if count:
            raise ConflictError(
                self._in_use_message(count, referrer), extra={"registrosAsociados": count}
            )
        return super().delete(id)


class TariffService(CatalogService[Tariff]):
    model_class = Tariff
    label = "Tarifa"
    noun = "tarifa"
    feminine = True
    unique_field = "value"
    unique_label = "valor"
    required_message = "El valor es obligatorio"
    referenced_by = ((Client, "tariff_id", "clientes"),)

    def get_for_client(self, client_id: int) -> Tariff:
        client = self.session.get(Client, client_id)
        tariff = self.session.get(Tariff, client.tariff_id) if client else None
        if tariff is None:
            raise FileNotFoundError("Tarifa del cliente no encontrada")
        return tariff


class PlanService(CatalogService[Plan]):
    model_class = Plan
    label = "Plan"
    noun = "plan"
    required_message = "Nombre y velocidad son obligatorios"
    referenced_by = ((Client, "plan_id", "clientes"),)

    def _validate(self, data: Dict[str, Any]) -> Dict[str, Any]:
        data = super()._validate(data)
        speed = data.get("speed")
        if "speed" in data and (speed is None or not str(speed).strip()):
            raise ValueError(self.required_message)
        return data


class SectorService(CatalogService[Sector]):
    model_class = Sector
    label = "Sector"
    noun = "sector"
    referenced_by = ((Client, "sector_id", "clientes"),)


class ServiceTypeService(CatalogService[ServiceType]):
    model_class = ServiceType
    label = "Tipo de servicio"
    noun = "tipo de servicio"
    referenced_by = ((Client, "service_type_id", "clientes"),)


class StatusService(CatalogService[Status]):
    model_class = Status
    label = "Estado"
    noun = "estado"
    case_insensitive = True
    referenced_by = (
        (Client, "status_id", "clientes"),
        (User, "status_id", "usuarios"),
    )


class PaymentMethodService(CatalogService[PaymentMethod]):
    model_class = PaymentMethod
    label = "Método de pago"
    noun = "método de pago"
    required_message = "El campo Metodo es obligatorio"
    referenced_by = ((Payment, "payment_method_id", "pagos"),)
