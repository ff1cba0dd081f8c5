# vozip/api/catalogs/main.py
"""
Routers de catálogos. Todos exponen el mismo CRUD:

    GET /all, GET /{id}, POST /create, PUT /update/{id}, DELETE /delete/{id}
"""
from typing import Type

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlmodel import Session

from ...core.audit import AuditTrail, get_audit_trail
from ...core.constants import AuditModule
from ...core.exceptions import ConflictError
from ...core.security import Principal
from ...core.users import PermissionChecker
from ...db.engine import get_session
from ...services.catalog_service import (
    CatalogService,
    PaymentMethodService,
    PlanService,
    SectorService,
    ServiceTypeService,
    StatusService,
    TariffService,
)
from ...services.permission_service import PermissionService
from ..errors import bad_request, conflict, not_found
from ..users.models import MessageResponse
from . import models


def build_catalog_router(
    service_class: Type[CatalogService],
    read_schema: Type[BaseModel],
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
    permission_prefix: str,
    module: AuditModule,
) -> APIRouter:
    router = APIRouter()

    def get_service(session: Session = Depends(get_session)) -> CatalogService:
        return service_class(session)

    label = service_class.label
    ending = "a" if service_class.feminine else "o"

    @router.get("/all", response_model=list[read_schema])
    def api_get_all(
        service: CatalogService = Depends(get_service),
        principal: Principal = Depends(PermissionChecker([f"{permission_prefix}.leer"])),
    ):
        return service.get_all()

    @router.get("/{item_id}", response_model=read_schema)
    def api_get_one(
        item_id: int,
        service: CatalogService = Depends(get_service),
        principal: Principal = Depends(PermissionChecker([f"{permission_prefix}.leer"])),
    ):
        try:
            return service.get_by_id(item_id)
        except FileNotFoundError as e:
            raise not_found(e)

    @router.post("/create", response_model=read_schema, status_code=status.HTTP_201_CREATED)
    def api_create(
        payload: create_schema,
        service: CatalogService = Depends(get_service),
        principal: Principal = Depends(PermissionChecker([f"{permission_prefix}.crear"])),
        audit: AuditTrail = Depends(get_audit_trail),
    ):
        try:
            item = service.create(payload.model_dump())
        except ConflictError as e:
            raise conflict(e)
        except ValueError as e:
            raise bad_request(e)
        audit.record_request(
            module, f"{label} cread{ending} ID: {item.id}", new_data=payload.model_dump()
        )
        return item

    @router.put("/update/{item_id}", response_model=read_schema)
    def api_update(
        item_id: int,
        payload: update_schema,
        service: CatalogService = Depends(get_service),
        principal: Principal = Depends(PermissionChecker([f"{permission_prefix}.actualizar"])),
        audit: AuditTrail = Depends(get_audit_trail),
    ):
        try:
            previous = service.get_by_id(item_id).model_dump()
            item = service.update(item_id, payload.model_dump(exclude_unset=True))
        except FileNotFoundError as e:
            raise not_found(e)
        except ConflictError as e:
            raise conflict(e)
        except ValueError as e:
            raise bad_request(e)
        audit.record_request(
            module,
            f"{label} actualizad{ending} ID: {item_id}",
            previous_data=previous,
            new_data=payload.model_dump(exclude_unset=True),
        )
        return item

    @router.delete("/delete/{item_id}", response_model=MessageResponse)
    def api_delete(
        item_id: int,
        service: CatalogService = Depends(get_service),
        principal: Principal = Depends(PermissionChecker([f"{permission_prefix}.eliminar"])),
        audit: AuditTrail = Depends(get_audit_trail),
    ):
        try:
            previous = service.get_by_id(item_id).model_dump()
            service.delete(item_id)
        except FileNotFoundError as e:
            raise not_found(e)
        except ConflictError as e:
            raise conflict(e)
        audit.record_request(module, f"{label} eliminad{ending} ID: {item_id}", previous_data=previous)
        return {"message": f"{label} eliminad{ending} correctamente"}

    return router


tariffs_router = build_catalog_router(
    TariffService, models.Tariff, models.TariffCreate, models.TariffUpdate,
    "tarifas", AuditModule.TARIFAS,
)
plans_router = build_catalog_router(
    PlanService, models.Plan, models.PlanCreate, models.PlanUpdate,
    "planes", AuditModule.PLANES,
)
sectors_router = build_catalog_router(
    SectorService, models.Sector, models.SectorCreate, models.SectorUpdate,
    "sectores", AuditModule.SECTORES,
)
service_types_router = build_catalog_router(
    ServiceTypeService, models.NamedItem, models.NamedItemCreate, models.NamedItemUpdate,
    "tipos_servicio", AuditModule.TIPOS_SERVICIO,
)
statuses_router = build_catalog_router(
    StatusService, models.NamedItem, models.NamedItemCreate, models.NamedItemUpdate,
    "estados", AuditModule.ESTADOS,
)
payment_methods_router = build_catalog_router(
    PaymentMethodService, models.NamedItem, models.NamedItemCreate, models.NamedItemUpdate,
    "metodos_pago", AuditModule.METODOS_PAGO,
)
permissions_router = build_catalog_router(
    PermissionService, models.Permission, models.PermissionCreate, models.PermissionUpdate,
    "permisos", AuditModule.PERMISOS,
)


@tariffs_router.get("/cliente/{client_id}", response_model=models.Tariff)
def api_get_client_tariff(
    client_id: int,
    session: Session = Depends(get_session),
    principal: Principal = Depends(PermissionChecker(["tarifas.leer"])),
):
    try:
        return TariffService(session).get_for_client(client_id)
    except FileNotFoundError as e:
        raise not_found(e)
