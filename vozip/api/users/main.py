from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlmodel import Session

from ...core.audit import AuditTrail, get_audit_trail
from ...core.config import Settings, get_settings
from ...core.constants import AuditAction, AuditModule
from ...core.exceptions import AuthenticationError, ConflictError
from ...core.rate_limit import limiter, login_rate_limit
from ...core.security import Principal
from ...core.users import PermissionChecker, get_current_principal
from ...db.engine import get_session
from ...schemas.user import PasswordChange, UserCreate, UserDetail, UserRead, UserUpdate
from ...services.auth_service import AuthService, LoginStatus
from ...services.user_service import UserService
from ..errors import bad_request, conflict, not_found
from .models import LoginRequest, LoginResponse, MessageResponse

router = APIRouter()


# --- Inyección de Dependencias ---
def get_user_service(session: Session = Depends(get_session)) -> UserService:
    return UserService(session)


def get_auth_service(
    session: Session = Depends(get_session), settings: Settings = Depends(get_settings)
) -> AuthService:
    return AuthService(session, settings)


def _user_snapshot(service: UserService, user) -> dict:
    data = UserRead.model_validate(user).model_dump()
    data["permissions"] = service.get_permissions(user.id)
    return data


# --- Sesión ---


@router.post("/login", response_model=LoginResponse)
@limiter.limit(login_rate_limit)
def api_login(
    request: Request,
    credentials: LoginRequest,
    service: AuthService = Depends(get_auth_service),
    audit: AuditTrail = Depends(get_audit_trail),
):
    result = service.login(credentials.user, credentials.password)

    if result.audit_action is not None:
        audit.record(
            result.audit_action,
            AuditModule.AUTENTICACION,
            result.audit_description,
            user_id=result.audit_user_id,
            new_data={"usuario": credentials.user} if result.status == LoginStatus.OK else None,
            allow_anonymous=True,
        )

    if result.status != LoginStatus.OK:
        # BackgroundTasks se adjunta también a esta respuesta
        return JSONResponse(status_code=result.http_status, content={"message": result.message})

    return {"message": result.message, "token": result.token, "user": result.user_payload()}


@router.get("/verify-token")
def api_verify_token(principal: Principal = Depends(get_current_principal)):
    return {"message": "Token válido", "user": principal.model_dump()}


@router.post("/logout", response_model=MessageResponse)
def api_logout(
    principal: Principal = Depends(get_current_principal),
    audit: AuditTrail = Depends(get_audit_trail),
):
    audit.record(
        AuditAction.LOGOUT,
        AuditModule.AUTENTICACION,
        f"Cierre de sesión - Usuario: {principal.nombre or principal.id}",
        user_id=principal.id,
    )
    return {"message": "Sesión cerrada exitosamente"}


# --- Usuarios ---


@router.get("/all", response_model=List[UserRead])
def api_get_all_users(
    service: UserService = Depends(get_user_service),
    principal: Principal = Depends(PermissionChecker(["usuarios.leer"])),
):
    return service.get_all_users()


@router.get("/{user_id}", response_model=UserDetail)
def api_get_user(
    user_id: int,
    service: UserService = Depends(get_user_service),
    principal: Principal = Depends(PermissionChecker(["usuarios.leer"])),
):
    try:
        return _user_snapshot(service, service.get_user(user_id))
    except FileNotFoundError as e:
        raise not_found(e)


@router.post("/create", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def api_create_user(
    user_data: UserCreate,
    service: UserService = Depends(get_user_service),
    principal: Principal = Depends(PermissionChecker(["usuarios.crear"])),
    audit: AuditTrail = Depends(get_audit_trail),
):
    try:
        user = service.create_user(user_data)
    except ConflictError as e:
        raise conflict(e)
    except ValueError as e:
        raise bad_request(e)

    audit.record_request(
        AuditModule.USUARIOS,
        f"Usuario creado: {user.full_name} ({user.username})",
        new_data=user_data.model_dump(),
    )
    return user


@router.put("/update/{user_id}", response_model=UserRead)
def api_update_user(
    user_id: int,
    user_data: UserUpdate,
    service: UserService = Depends(get_user_service),
    principal: Principal = Depends(PermissionChecker(["usuarios.actualizar"])),
    audit: AuditTrail = Depends(get_audit_trail),
):
    try:
        previous = UserRead.model_validate(service.get_user(user_id)).model_dump()
        user = service.update_user(user_id, user_data)
    except FileNotFoundError as e:
        raise not_found(e)
    except ConflictError as e:
        raise conflict(e)
    except ValueError as e:
        raise bad_request(e)

    audit.record_request(
        AuditModule.USUARIOS,
        f"Usuario actualizado ID: {user_id} - {user.full_name}",
        previous_data=previous,
        new_data=user_data.model_dump(exclude_unset=True),
    )
    return user


@router.put("/change-password/{user_id}", response_model=MessageResponse)
def api_change_password(
    user_id: int,
    payload: PasswordChange,
    service: UserService = Depends(get_user_service),
    principal: Principal = Depends(get_current_principal),
    audit: AuditTrail = Depends(get_audit_trail),
):
    # Cada usuario cambia su propia contraseña; para otros se requiere permiso
    if principal.id != user_id and "usuarios.actualizar" not in principal.permisos:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Solo puedes cambiar tu propia contraseña",
        )
    try:
        service.change_password(user_id, payload.current_password, payload.new_password)
    except FileNotFoundError as e:
        raise not_found(e)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except ValueError as e:
        raise bad_request(e)

    audit.record_request(
        AuditModule.USUARIOS,
        f"Contraseña cambiada para usuario ID: {user_id}",
        new_data=payload.model_dump(),
    )
    return {"message": "Contraseña actualizada correctamente"}


@router.delete("/delete/{user_id}", response_model=MessageResponse)
def api_delete_user(
    user_id: int,
    service: UserService = Depends(get_user_service),
    principal: Principal = Depends(PermissionChecker(["usuarios.eliminar"])),
    audit: AuditTrail = Depends(get_audit_trail),
):
    if user_id == principal.id:
        raise HTTPException(status_code=403, detail="No puedes eliminar tu propia cuenta.")
    try:
        previous = _user_snapshot(service, service.get_user(user_id))
        service.delete_user(user_id)
    except FileNotFoundError as e:
        raise not_found(e)

    audit.record_request(
        AuditModule.USUARIOS,
        f"Usuario eliminado ID: {user_id} ({previous['username']})",
        previous_data=previous,
    )
    return {"message": "Usuario eliminado correctamente"}
