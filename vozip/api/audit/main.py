# vozip/api/audit/main.py
"""Consulta y mantenimiento de la bitácora (/api/bitacora)."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ...core.audit import AuditTrail, get_audit_trail
from ...core.config import Settings, get_settings
from ...core.constants import AuditAction, AuditModule
from ...core.security import Principal
from ...core.users import PermissionChecker
from ...db.engine import get_session
from ...reports.excel import audit_workbook, xlsx_response
from ...services.audit_service import AuditFilters, AuditService
from ..errors import bad_request
from .models import AuditCleanupResult, AuditPage

router = APIRouter()


def get_audit_service(session: Session = Depends(get_session)) -> AuditService:
    return AuditService(session)


def get_filters(
    usuario_id: Optional[int] = Query(None),
    modulo: Optional[str] = Query(None),
    accion: Optional[str] = Query(None),
    fecha_inicio: Optional[date] = Query(None),
    fecha_fin: Optional[date] = Query(None),
    busqueda: Optional[str] = Query(None),
) -> AuditFilters:
    try:
        return AuditFilters(
            user_id=usuario_id,
            module=modulo,
            action=accion,
            start_date=fecha_inicio,
            end_date=fecha_fin,
            search=busqueda,
        )
    except ValueError as e:
        raise bad_request(e)


@router.get("/all", response_model=AuditPage)
def api_get_audit_logs(
    limit: int = Query(100),
    offset: int = Query(0),
    filters: AuditFilters = Depends(get_filters),
    service: AuditService = Depends(get_audit_service),
    principal: Principal = Depends(PermissionChecker("bitacora.leer")),
):
    try:
        return service.get_audit_logs_paginated(filters, limit=limit, offset=offset)
    except ValueError as e:
        raise bad_request(e)


@router.get("/usuario/{user_id}", response_model=AuditPage)
def api_get_user_audit_logs(
    user_id: int,
    limit: int = Query(50),
    offset: int = Query(0),
    service: AuditService = Depends(get_audit_service),
    principal: Principal = Depends(PermissionChecker("bitacora.leer")),
):
    try:
        return service.get_audit_logs_paginated(
            AuditFilters(user_id=user_id), limit=limit, offset=offset
        )
    except ValueError as e:
        raise bad_request(e)


@router.get("/estadisticas")
def api_get_audit_statistics(
    fecha_inicio: Optional[date] = Query(None),
    fecha_fin: Optional[date] = Query(None),
    service: AuditService = Depends(get_audit_service),
    principal: Principal = Depends(PermissionChecker("bitacora.estadisticas")),
):
    try:
        filters = AuditFilters(start_date=fecha_inicio, end_date=fecha_fin)
    except ValueError as e:
        raise bad_request(e)
    return service.get_statistics(filters)


@router.get("/exportar")
def api_export_audit_logs(
    filters: AuditFilters = Depends(get_filters),
    service: AuditService = Depends(get_audit_service),
    principal: Principal = Depends(PermissionChecker("bitacora.exportar")),
    audit: AuditTrail = Depends(get_audit_trail),
):
    rows = service.get_export_rows(filters)
    audit.record(
        AuditAction.EXPORTAR,
        AuditModule.BITACORA,
        f"Exportación de bitácora a Excel: {len(rows)} registros",
    )
    return xlsx_response(audit_workbook(rows), f"bitacora_{date.today().isoformat()}.xlsx")


@router.get("/modulos", response_model=list[str])
def api_get_audit_modules(
    service: AuditService = Depends(get_audit_service),
    principal: Principal = Depends(PermissionChecker("bitacora.leer")),
):
    return service.get_distinct_modules()


@router.get("/acciones", response_model=list[str])
def api_get_audit_actions(
    service: AuditService = Depends(get_audit_service),
    principal: Principal = Depends(PermissionChecker("bitacora.leer")),
):
    return service.get_distinct_actions()


@router.delete("/limpiar", response_model=AuditCleanupResult)
def api_purge_audit_logs(
    dias: Optional[int] = Query(None),
    service: AuditService = Depends(get_audit_service),
    settings: Settings = Depends(get_settings),
    principal: Principal = Depends(PermissionChecker("bitacora.limpiar")),
    audit: AuditTrail = Depends(get_audit_trail),
):
    days = dias if dias is not None else settings.audit_retention_days
    try:
        deleted, cutoff = service.purge_older_than(days)
    except ValueError as e:
        raise bad_request(e)

    audit.record(
        AuditAction.LIMPIAR,
        AuditModule.BITACORA,
        f"Limpieza de bitácora: {deleted} registros anteriores a {cutoff.date().isoformat()}",
    )
    return {
        "message": f"Se eliminaron {deleted} registros anteriores a {cutoff.date().isoformat()}",
        "eliminados": deleted,
        "fechaLimite": cutoff,
    }
