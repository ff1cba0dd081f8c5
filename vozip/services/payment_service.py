# vozip/services/payment_service.py
import logging
from decimal import Decimal
from typing import Any, Dict, List

from sqlmodel import Session, select

from ..api.payments.models import PaymentCreate, PaymentUpdate
from ..core.constants import Month
from ..models.client import Client
from ..models.payment import Payment
from ..models.payment_method import PaymentMethod
from ..models.plan import Plan
from ..models.tariff import Tariff

logger = logging.getLogger(__name__)


def normalize_month(value: str) -> str:
    """Devuelve el nombre canónico del mes o lanza ValueError."""
    month = Month.parse(value)
    if month is None:
        raise ValueError(f"Mes inválido: {value}. Use un mes en español (ENERO ... DICIEMBRE)")
    return month.value


class PaymentService:
    def __init__(self, session: Session):
        self.session = session

    def _listing(self, statement) -> List[Dict[str, Any]]:
        statement = (
            statement.join(Client, Client.id == Payment.client_id, isouter=True)
            .join(PaymentMethod, PaymentMethod.id == Payment.payment_method_id, isouter=True)
            .order_by(Payment.year.desc(), Payment.payment_date.desc(), Payment.id.desc())
        )
        rows = []
        for payment, client, method in self.session.exec(statement):
            data = payment.model_dump()
            data["client_name"] = (
                " ".join(p for p in (client.first_name, client.last_name) if p) if client else None
            )
            data["payment_method_name"] = method.name if method else None
            rows.append(data)
        return rows

    def get_all_payments(self) -> List[Dict[str, Any]]:
        return self._listing(select(Payment, Client, PaymentMethod))

    def get_payments_for_client(self, client_id: int) -> List[Dict[str, Any]]:
        if not self.session.get(Client, client_id):
            raise FileNotFoundError("Cliente no encontrado")
        return self._listing(
            select(Payment, Client, PaymentMethod).where(Payment.client_id == client_id)
        )

    def get_payment(self, payment_id: int) -> Payment:
        payment = self.session.get(Payment, payment_id)
        if not payment:
            raise FileNotFoundError("Pago no encontrado")
        return payment

    def _check_method(self, method_id: int) -> None:
        if not self.session.get(PaymentMethod, method_id):
            raise ValueError("El método de pago proporcionado no existe")

    def add_payment(self, payment_data: PaymentCreate) -> Payment:
        client = self.session.get(Client, payment_data.client_id)
        if not client:
            raise FileNotFoundError("Cliente no encontrado")
        self._check_method(payment_data.payment_method_id)

        data = payment_data.model_dump()
        data["month"] = normalize_month(data["month"])

        # Copia del plan/tarifa vigente para el histórico
        plan = self.session.get(Plan, client.plan_id)
        tariff = self.session.get(Tariff, client.tariff_id)
        data["plan_name"] = plan.name if plan else None
        data["plan_speed"] = plan.speed if plan else None
        data["tariff_value"] = tariff.value if tariff else None

        payment = Payment(**data)
        self.session.add(payment)
        self.session.commit()
        self.session.refresh(payment)
        logger.info(
            f"Pago registrado: cliente={payment.client_id} {payment.month}/{payment.year} monto={payment.amount}"
        )
        return payment

    def update_payment(self, payment_id: int, payment_update: PaymentUpdate) -> Payment:
        payment = self.get_payment(payment_id)
        update_data = payment_update.model_dump(exclude_unset=True)
        if update_data.get("month") is not None:
            update_data["month"] = normalize_month(update_data["month"])
        if update_data.get("payment_method_id") is not None:
            self._check_method(update_data["payment_method_id"])

        for key, value in update_data.items():
            if value is not None:
                setattr(payment, key, value)
        self.session.add(payment)
        self.session.commit()
        self.session.refresh(payment)
        return payment

    def delete_payment(self, payment_id: int) -> Payment:
        payment = self.get_payment(payment_id)
        self.session.delete(payment)
        self.session.commit()
        return payment

    def monthly_income(self, year: int) -> Dict[str, Any]:
        """
        Ingresos por período facturado (mes/año del pago) para un año.
        Siempre devuelve los 12 meses; los meses sin pagos suman 0.
        """
        totals = {month: Decimal("0") for month in Month}
        counts = {month: 0 for month in Month}

        statement = select(Payment.month, Payment.amount).where(Payment.year == year)
        for month_name, amount in self.session.exec(statement):
            month = Month.parse(month_name)
            if month is None:
                continue
            totals[month] += Decimal(str(amount))
            counts[month] += 1

        months = [
            {
                "month": month.value,
                "month_number": month.number,
                "total": totals[month],
                "payments": counts[month],
            }
            for month in Month
        ]
        return {"year": year, "total": sum(totals.values(), Decimal("0")), "months": months}
