from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from ...core.audit import AuditTrail, get_audit_trail
from ...core.constants import AuditModule
from ...core.security import Principal
from ...core.users import PermissionChecker
from ...db.engine import get_session
from ...services.payment_service import PaymentService
from ..errors import bad_request, not_found
from ..users.models import MessageResponse
from .models import MonthlyIncomeReport, Payment, PaymentCreate, PaymentListItem, PaymentUpdate

router = APIRouter()


def get_payment_service(session: Session = Depends(get_session)) -> PaymentService:
    return PaymentService(session)


@router.get("/all", response_model=list[PaymentListItem])
def api_get_all_payments(
    service: PaymentService = Depends(get_payment_service),
    principal: Principal = Depends(PermissionChecker(["pagos.leer"])),
):
    return service.get_all_payments()


@router.get("/cliente/{client_id}", response_model=list[PaymentListItem])
def api_get_client_payments(
    client_id: int,
    service: PaymentService = Depends(get_payment_service),
    principal: Principal = Depends(PermissionChecker(["pagos.leer"])),
):
    try:
        return service.get_payments_for_client(client_id)
    except FileNotFoundError as e:
        raise not_found(e)


@router.get("/ingresos-mensuales", response_model=MonthlyIncomeReport)
def api_monthly_income(
    anio: Optional[int] = Query(None, ge=2000, le=2100),
    service: PaymentService = Depends(get_payment_service),
    principal: Principal = Depends(PermissionChecker(["pagos.leer"])),
):
    return service.monthly_income(anio or date.today().year)


@router.get("/{payment_id}", response_model=Payment)
def api_get_payment(
    payment_id: int,
    service: PaymentService = Depends(get_payment_service),
    principal: Principal = Depends(PermissionChecker(["pagos.leer"])),
):
    try:
        return service.get_payment(payment_id)
    except FileNotFoundError as e:
        raise not_found(e)


@router.post("/add", response_model=Payment, status_code=status.HTTP_201_CREATED)
def api_add_payment(
    payment: PaymentCreate,
    service: PaymentService = Depends(get_payment_service),
    principal: Principal = Depends(PermissionChecker(["pagos.crear"])),
    audit: AuditTrail = Depends(get_audit_trail),
):
    try:
        new_payment = service.add_payment(payment)
    except FileNotFoundError as e:
        raise not_found(e)
    except ValueError as e:
        raise bad_request(e)
    audit.record_request(
        AuditModule.PAGOS,
        f"Pago registrado: cliente {new_payment.client_id} - {new_payment.month} {new_payment.year}",
        new_data=payment.model_dump(),
    )
    return new_payment


@router.put("/update/{payment_id}", response_model=Payment)
def api_update_payment(
    payment_id: int,
    payment_update: PaymentUpdate,
    service: PaymentService = Depends(get_payment_service),
    principal: Principal = Depends(PermissionChecker(["pagos.actualizar"])),
    audit: AuditTrail = Depends(get_audit_trail),
):
    try:
        previous = service.get_payment(payment_id).model_dump()
        updated = service.update_payment(payment_id, payment_update)
    except FileNotFoundError as e:
        raise not_found(e)
    except ValueError as e:
        raise bad_request(e)
    audit.record_request(
        AuditModule.PAGOS,
        f"Pago actualizado ID: {payment_id}",
        previous_data=previous,
        new_data=payment_update.model_dump(exclude_unset=True),
    )
    return updated


@router.delete("/delete/{payment_id}", response_model=MessageResponse)
def api_delete_payment(
    payment_id: int,
    service: PaymentService = Depends(get_payment_service),
    principal: Principal = Depends(PermissionChecker(["pagos.eliminar"])),
    audit: AuditTrail = Depends(get_audit_trail),
):
    try:
        previous = service.get_payment(payment_id).model_dump()
        service.delete_payment(payment_id)
    except FileNotFoundError as e:
        raise not_found(e)
    audit.record_request(
        AuditModule.PAGOS, f"Pago eliminado ID: {payment_id}", previous_data=previous
    )
    return {"message": "Pago eliminado correctamente"}
