from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from ...core.audit import AuditTrail, get_audit_trail
from ...core.config import Settings, get_settings
from ...core.constants import AuditModule
from ...core.exceptions import ConflictError
from ...core.security import Principal
from ...core.users import PermissionChecker
from ...db.engine import get_session
from ...reports.excel import clients_workbook, delinquent_workbook, xlsx_response
from ...services.client_service import ClientService
from ...services.delinquency_service import DelinquencyService
from ..errors import bad_request, conflict, not_found
from ..users.models import MessageResponse
from .models import (
    Client,
    ClientCreate,
    ClientListItem,
    ClientUpdate,
    DelinquentClient,
    DelinquentReport,
)

router = APIRouter()


# --- Dependency Injectors ---
def get_client_service(session: Session = Depends(get_session)) -> ClientService:
    return ClientService(session)


def get_delinquency_service(
    session: Session = Depends(get_session), settings: Settings = Depends(get_settings)
) -> DelinquencyService:
    return DelinquencyService(session, settings)


# --- Client Endpoints ---


@router.get("/all", response_model=list[ClientListItem])
def api_get_all_clients(
    service: ClientService = Depends(get_client_service),
    principal: Principal = Depends(PermissionChecker(["clientes.leer"])),
):
    return service.get_all_clients()


@router.get("/search", response_model=list[ClientListItem])
def api_search_clients(
    nombre: str = Query(..., description="Nombre o apellido (coincidencia parcial)"),
    service: ClientService = Depends(get_client_service),
    principal: Principal = Depends(PermissionChecker(["clientes.leer"])),
):
    try:
        return service.search_clients(nombre)
    except ValueError as e:
        raise bad_request(e)


# --- Morosos ---


@router.get("/morosos", response_model=DelinquentReport)
def api_get_delinquent_clients(
    meses: Optional[int] = Query(None, ge=1, description="Meses impagos mínimos"),
    service: DelinquencyService = Depends(get_delinquency_service),
    principal: Principal = Depends(PermissionChecker(["morosos.leer"])),
    audit: AuditTrail = Depends(get_audit_trail),
):
    threshold = meses or service.settings.delinquency_threshold
    try:
        rows = service.list_delinquent(threshold)
    except ValueError as e:
        raise bad_request(e)
    audit.record_request(
        AuditModule.MOROSOS,
        f"Consulta de morosos ({threshold}+ meses): {len(rows)} clientes",
    )
    return {"threshold": threshold, "total": len(rows), "clients": rows}


@router.get("/morosos/excel")
def api_export_delinquent_clients(
    meses: Optional[int] = Query(None, ge=1),
    service: DelinquencyService = Depends(get_delinquency_service),
    principal: Principal = Depends(PermissionChecker(["morosos.exportar"])),
    audit: AuditTrail = Depends(get_audit_trail),
):
    threshold = meses or service.settings.delinquency_threshold
    try:
        rows = service.list_delinquent(threshold)
    except ValueError as e:
        raise bad_request(e)
    audit.record_request(
        AuditModule.MOROSOS,
        f"Exportación de morosos a Excel ({threshold}+ meses): {len(rows)} clientes",
    )
    return xlsx_response(
        delinquent_workbook(rows, threshold), f"clientes_morosos_{date.today().isoformat()}.xlsx"
    )


@router.get("/morosos/{client_id}", response_model=DelinquentClient)
def api_get_client_delinquency(
    client_id: int,
    meses: Optional[int] = Query(None, ge=1),
    service: DelinquencyService = Depends(get_delinquency_service),
    principal: Principal = Depends(PermissionChecker(["morosos.leer"])),
    audit: AuditTrail = Depends(get_audit_trail),
):
    try:
        result = service.evaluate(client_id, threshold=meses)
    except FileNotFoundError as e:
        raise not_found(e)
    except ValueError as e:
        raise bad_request(e)
    audit.record_request(AuditModule.MOROSOS, f"Consulta de morosidad del cliente ID: {client_id}")
    return result


@router.get("/export/excel")
def api_export_clients(
    service: ClientService = Depends(get_client_service),
    principal: Principal = Depends(PermissionChecker(["clientes.exportar"])),
    audit: AuditTrail = Depends(get_audit_trail),
):
    rows = service.get_all_clients()
    audit.record_request(AuditModule.CLIENTES, f"Exportación de clientes a Excel: {len(rows)}")
    return xlsx_response(clients_workbook(rows), f"clientes_{date.today().isoformat()}.xlsx")


@router.get("/{client_id}", response_model=Client)
def api_get_client(
    client_id: int,
    service: ClientService = Depends(get_client_service),
    principal: Principal = Depends(PermissionChecker(["clientes.leer"])),
):
    try:
        return service.get_client(client_id)
    except FileNotFoundError as e:
        raise not_found(e)


@router.post("/create", response_model=Client, status_code=status.HTTP_201_CREATED)
def api_create_client(
    client: ClientCreate,
    service: ClientService = Depends(get_client_service),
    principal: Principal = Depends(PermissionChecker(["clientes.crear"])),
    audit: AuditTrail = Depends(get_audit_trail),
):
    try:
        new_client = service.create_client(client)
    except ValueError as e:
        raise bad_request(e)
    audit.record_request(
        AuditModule.CLIENTES,
        f"Cliente creado: {new_client.first_name} {new_client.last_name or ''}".strip(),
        new_data=client.model_dump(),
    )
    return new_client


@router.put("/update/{client_id}", response_model=Client)
def api_update_client(
    client_id: int,
    client_update: ClientUpdate,
    service: ClientService = Depends(get_client_service),
    principal: Principal = Depends(PermissionChecker(["clientes.actualizar"])),
    audit: AuditTrail = Depends(get_audit_trail),
):
    try:
        previous = service.get_client(client_id).model_dump()
        updated = service.update_client(client_id, client_update)
    except FileNotFoundError as e:
        raise not_found(e)
    except ConflictError as e:
        raise conflict(e)
    except ValueError as e:
        raise bad_request(e)
    audit.record_request(
        AuditModule.CLIENTES,
        f"Cliente actualizado ID: {client_id}",
        previous_data=previous,
        new_data=client_update.model_dump(exclude_unset=True),
    )
    return updated


@router.delete("/delete/{client_id}", response_model=MessageResponse)
def api_delete_client(
    client_id: int,
    service: ClientService = Depends(get_client_service),
    principal: Principal = Depends(PermissionChecker(["clientes.eliminar"])),
    audit: AuditTrail = Depends(get_audit_trail),
):
    try:
        previous = service.get_client(client_id).model_dump()
        service.delete_client(client_id)
    except FileNotFoundError as e:
        raise not_found(e)
    except ConflictError as e:
        raise conflict(e)
    audit.record_request(
        AuditModule.CLIENTES, f"Cliente eliminado ID: {client_id}", previous_data=previous
    )
    return {"message": "Cliente eliminado correctamente"}
