# vozip/core/users.py
"""
Dependencias de autenticación y autorización para los routers.

Usage:
    @router.get("/all")
    def listar(principal: Principal = Depends(PermissionChecker(["clientes.leer"]))):
        ...
"""
import logging
from typing import Iterable, Union

from fastapi import Depends, HTTPException, Request, status

from .config import Settings, get_settings
from .security import (
    PERMISSION_MODE_ANY,
    MissingPrincipalError,
    PermissionDeniedError,
    Principal,
    TokenError,
    check_permissions,
    decode_access_token,
    extract_bearer_token,
)

logger = logging.getLogger(__name__)


def get_current_principal(
    request: Request, settings: Settings = Depends(get_settings)
) -> Principal:
    """Valida el header Authorization y devuelve la identidad del token."""
    try:
        token = extract_bearer_token(request.headers.get("authorization"))
        principal = decode_access_token(token, settings)
    except TokenError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    request.state.principal = principal
    return principal


class PermissionChecker:
    """
    Dependency class que exige permisos del token (sin consultar la base).

    mode="any": al menos uno de `required`.
    mode="all": todos los de `required`.
    """

    def __init__(self, required: Union[str, Iterable[str]], mode: str = PERMISSION_MODE_ANY):
        self.required = [required] if isinstance(required, str) else list(required)
        self.mode = mode

    def __call__(self, principal: Principal = Depends(get_current_principal)) -> Principal:
        try:
            return check_permissions(principal, self.required, self.mode)
        except PermissionDeniedError as e:
            logger.info(
                f"Acceso denegado a usuario {principal.id}: requiere {self.required} ({self.mode})"
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.to_dict())
        except MissingPrincipalError:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error al verificar permisos",
            )


class RoleChecker:
    """Exige una función administrativa (Administrador, Gerente o Admin)."""

    def __call__(self, principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.is_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Esta acción requiere permisos de administrador",
            )
        return principal


require_admin = RoleChecker()
