# vozip/services/delinquency_service.py
"""
Cálculo de clientes morosos.

Para cada cliente se recorren los períodos de facturación (un mes calendario
por paso, en el día de instalación) desde un período ancla hasta el mes
actual, y se descuentan los períodos con pago registrado:

- ancla: el último pago por orden calendario (año, mes); sin pagos, el mes
  de instalación acotado a enero del año de referencia.
- el mes en curso se considera adeudado.
- tarifa <= 0: no facturable, nunca moroso.
- pagos con mes ilegible se ignoran; si ninguno se puede leer, el cliente
  se omite del reporte.
"""
import calendar
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from sqlmodel import Session, select

from ..core.config import Settings, get_settings
from ..core.constants import Month
from ..models.client import Client
from ..models.payment import Payment
from ..models.sector import Sector
from ..models.service_type import ServiceType
from ..models.tariff import Tariff

logger = logging.getLogger(__name__)

Period = Tuple[int, int]  # (año, número de mes)


def billing_date(year: int, month: int, day: int) -> date:
    """Fecha de facturación del mes, con el día acotado al último día del mes."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def next_period(period: Period) -> Period:
    year, month = period
    if month == 12:
        return year + 1, 1
    return year, month + 1


def iter_billing_periods(anchor: Period, billing_day: int, today: date) -> Iterator[date]:
    """
    Fechas de facturación desde el período ancla hasta el mes de `today`
    (inclusive).
    """
    current = anchor
    last = (today.year, today.month)
    while current <= last:
        yield billing_date(current[0], current[1], billing_day)
        current = next_period(current)


def paid_periods(payments: Iterable[Tuple[Optional[str], Optional[int]]]) -> Set[Period]:
    """Conjunto de (año, mes) pagados. Los meses que no se reconocen se ignoran."""
    paid = set()
    for month_name, year in payments:
        month = Month.parse(month_name)
        if month is None or year is None:
            continue
        paid.add((int(year), month.number))
    return paid


def anchor_period(
    installation_date: date, paid: Set[Period], reference_year: int
) -> Period:
    if paid:
        return max(paid)
    return max((installation_date.year, installation_date.month), (reference_year, 1))


@dataclass(frozen=True)
class DelinquencyResult:
    unpaid_periods: int
    tariff_value: Decimal
    amount_owed: Decimal
    is_delinquent: bool
    billable: bool = True


NOT_BILLABLE = DelinquencyResult(
    unpaid_periods=0,
    tariff_value=Decimal("0"),
    amount_owed=Decimal("0"),
    is_delinquent=False,
    billable=False,
)


def evaluate_client(
    installation_date: date,
    tariff_value: Optional[Any],
    payments: List[Tuple[Optional[str], Optional[int]]],
    today: date,
    threshold: int = 3,
    reference_year: int = 2024,
) -> Optional[DelinquencyResult]:
    """
    Evalúa un cliente. Devuelve None si tiene pagos pero ninguno legible
    (el cliente se omite).
    """
    tariff = Decimal(str(tariff_value)) if tariff_value is not None else Decimal("0")
    if tariff <= 0:
        return NOT_BILLABLE

    paid = paid_periods(payments)
    if payments and not paid:
        return None

    anchor = anchor_period(installation_date, paid, reference_year)
    candidates = {
        (d.year, d.month)
        for d in iter_billing_periods(anchor, installation_date.day, today)
    }
    unpaid = len(candidates - paid)
    return DelinquencyResult(
        unpaid_periods=unpaid,
        tariff_value=tariff,
        amount_owed=tariff * unpaid,
        is_delinquent=unpaid >= threshold,
    )


class DelinquencyService:
    def __init__(self, session: Session, settings: Optional[Settings] = None):
        self.session = session
        self.settings = settings or get_settings()

    def _client_rows(self, client_id: Optional[int] = None):
        statement = (
            select(Client, Sector, ServiceType, Tariff)
            .join(Sector, Sector.id == Client.sector_id, isouter=True)
            .join(ServiceType, ServiceType.id == Client.service_type_id, isouter=True)
            .join(Tariff, Tariff.id == Client.tariff_id, isouter=True)
            .order_by(Client.id)
        )
        if client_id is not None:
            statement = statement.where(Client.id == client_id)
        return self.session.exec(statement).all()

    def _payments_by_client(self, client_id: Optional[int] = None) -> Dict[int, List[Tuple[str, int]]]:
        statement = select(Payment.client_id, Payment.month, Payment.year)
        if client_id is not None:
            statement = statement.where(Payment.client_id == client_id)
        grouped: Dict[int, List[Tuple[str, int]]] = defaultdict(list)
        for cid, month, year in self.session.exec(statement):
            grouped[cid].append((month, year))
        return grouped

    def _is_excluded(self, client: Client) -> bool:
        return client.status_id in set(self.settings.delinquency_excluded_status_ids)

    @staticmethod
    def _to_row(client, sector, service_type, result: DelinquencyResult) -> Dict[str, Any]:
        return {
            "client_id": client.id,
            "first_name": client.first_name,
            "last_name": client.last_name,
            "national_id": client.national_id,
            "phone": client.phone,
            "address": client.address,
            "sector": sector.name if sector else None,
            "service_type": service_type.name if service_type else None,
            "installation_date": client.installation_date,
            "unpaid_periods": result.unpaid_periods,
            "tariff_value": result.tariff_value,
            "amount_owed": result.amount_owed,
            "is_delinquent": result.is_delinquent,
        }

    def list_delinquent(
        self, threshold: Optional[int] = None, today: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        """Clientes con `threshold` o más períodos impagos, de mayor a menor deuda."""
        threshold = self.settings.delinquency_threshold if threshold is None else threshold
        if threshold < 1:
            raise ValueError("El número de meses debe ser mayor o igual a 1")
        today = today or date.today()
        payments = self._payments_by_client()

        rows = []
        for client, sector, service_type, tariff in self._client_rows():
            if self._is_excluded(client):
                continue
            try:
                result = evaluate_client(
                    client.installation_date,
                    tariff.value if tariff else None,
                    payments.get(client.id, []),
                    today,
                    threshold,
                    self.settings.delinquency_reference_year,
                )
            except (ValueError, TypeError, InvalidOperation) as e:
                logger.warning(f"Cliente {client.id} omitido del cálculo de morosos: {e}")
                continue
            if result is None:
                logger.warning(f"Cliente {client.id} omitido: ningún pago con mes válido")
                continue
            if result.is_delinquent:
                rows.append(self._to_row(client, sector, service_type, result))

        rows.sort(key=lambda r: (-r["unpaid_periods"], r["client_id"]))
        logger.info(f"Morosos calculados: {len(rows)} clientes con {threshold}+ meses impagos")
        return rows

    def evaluate(
        self, client_id: int, threshold: Optional[int] = None, today: Optional[date] = None
    ) -> Dict[str, Any]:
        """Detalle de un cliente, sea o no moroso."""
        threshold = self.settings.delinquency_threshold if threshold is None else threshold
        rows = self._client_rows(client_id)
        if not rows:
            raise FileNotFoundError("Cliente no encontrado")
        client, sector, service_type, tariff = rows[0]

        if self._is_excluded(client):
            result = NOT_BILLABLE
        else:
            result = evaluate_client(
                client.installation_date,
                tariff.value if tariff else None,
                self._payments_by_client(client_id).get(client_id, []),
                today or date.today(),
                threshold,
                self.settings.delinquency_reference_year,
            )
            if result is None:
                raise ValueError("Ningún pago del cliente tiene un mes válido")
        return self._to_row(client, sector, service_type, result)
