# vozip/api/permissions/main.py
"""Asignación de permisos a usuarios (/api/usuario-permisos)."""
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from ...core.audit import AuditTrail, get_audit_trail
from ...core.constants import AuditAction, AuditModule
from ...core.exceptions import ConflictError
from ...core.security import Principal
from ...core.users import PermissionChecker
from ...db.engine import get_session
from ...services.permission_service import UserPermissionService
from ..errors import bad_request, conflict, not_found
from ..users.models import MessageResponse
from .models import Assignment, AssignmentCreate

router = APIRouter()


def get_user_permission_service(session: Session = Depends(get_session)) -> UserPermissionService:
    return UserPermissionService(session)


def _to_assignment(row) -> dict:
    assignment, user, permission = row
    return {
        "id": assignment.id,
        "user_id": user.id,
        "username": user.username,
        "user_full_name": user.full_name,
        "user_role": user.role,
        "permission_id": permission.id,
        "permission_name": permission.name,
        "permission_description": permission.description,
        "assigned_at": assignment.assigned_at,
    }


@router.get("/all", response_model=list[Assignment])
def api_get_all_assignments(
    service: UserPermissionService = Depends(get_user_permission_service),
    principal: Principal = Depends(PermissionChecker(["permisos.leer"])),
):
    return [_to_assignment(row) for row in service.get_all()]


@router.get("/usuario/{user_id}", response_model=list[Assignment])
def api_get_user_assignments(
    user_id: int,
    service: UserPermissionService = Depends(get_user_permission_service),
    principal: Principal = Depends(PermissionChecker(["permisos.leer"])),
):
    try:
        return [_to_assignment(row) for row in service.get_by_user(user_id)]
    except FileNotFoundError as e:
        raise not_found(e)


@router.get("/permiso/{permission_id}", response_model=list[Assignment])
def api_get_permission_assignments(
    permission_id: int,
    service: UserPermissionService = Depends(get_user_permission_service),
    principal: Principal = Depends(PermissionChecker(["permisos.leer"])),
):
    try:
        return [_to_assignment(row) for row in service.get_by_permission(permission_id)]
    except FileNotFoundError as e:
        raise not_found(e)


@router.post("/assign", status_code=status.HTTP_201_CREATED)
def api_assign_permission(
    payload: AssignmentCreate,
    service: UserPermissionService = Depends(get_user_permission_service),
    principal: Principal = Depends(PermissionChecker(["permisos.asignar"])),
    audit: AuditTrail = Depends(get_audit_trail),
):
    try:
        assignment = service.assign(payload.user_id, payload.permission_id)
    except FileNotFoundError as e:
        raise not_found(e)
    except ConflictError as e:
        raise conflict(e)
    except ValueError as e:
        raise bad_request(e)

    audit.record(
        AuditAction.ASIGNAR_PERMISO,
        AuditModule.PERMISOS,
        f"Permiso {assignment.permission_id} asignado al usuario {assignment.user_id}",
        new_data=payload.model_dump(),
    )
    return {"message": "Permiso asignado correctamente", "asignacion": assignment.model_dump()}


@router.delete("/revoke/{assignment_id}", response_model=MessageResponse)
def api_revoke_assignment(
    assignment_id: int,
    service: UserPermissionService = Depends(get_user_permission_service),
    principal: Principal = Depends(PermissionChecker(["permisos.asignar"])),
    audit: AuditTrail = Depends(get_audit_trail),
):
    try:
        assignment = service.revoke(assignment_id)
    except FileNotFoundError as e:
        raise not_found(e)

    audit.record(
        AuditAction.REVOCAR_PERMISO,
        AuditModule.PERMISOS,
        f"Permiso {assignment.permission_id} revocado al usuario {assignment.user_id}",
        previous_data={"user_id": assignment.user_id, "permission_id": assignment.permission_id},
    )
    return {"message": "Permiso revocado correctamente"}


@router.delete("/revoke/usuario/{user_id}/permiso/{permission_id}", response_model=MessageResponse)
def api_revoke_user_permission(
    user_id: int,
    permission_id: int,
    service: UserPermissionService = Depends(get_user_permission_service),
    principal: Principal = Depends(PermissionChecker(["permisos.asignar"])),
    audit: AuditTrail = Depends(get_audit_trail),
):
    try:
        service.revoke_for_user(user_id, permission_id)
    except FileNotFoundError as e:
        raise not_found(e)

    audit.record(
        AuditAction.REVOCAR_PERMISO,
        AuditModule.PERMISOS,
        f"Permiso {permission_id} revocado al usuario {user_id}",
        previous_data={"user_id": user_id, "permission_id": permission_id},
    )
    return {"message": "Permiso revocado correctamente del usuario"}
