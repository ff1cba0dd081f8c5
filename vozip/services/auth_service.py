# vozip/services/auth_service.py
"""
Inicio de sesión.

    RECIBIDO -> usuario_no_encontrado (404)
             -> usuario_inactivo      (403)
             -> password_incorrecta   (401)
             -> ok                    (200, token)

Cada estado terminal produce exactamente un registro de bitácora; la
escritura la hace el router con los datos de `LoginResult`.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Optional

from sqlmodel import Session

from ..core.config import Settings, get_settings
from ..core.constants import ACTIVE_STATUS_NAME, AuditAction
from ..core.security import Principal, create_access_token, verify_and_update
from ..models.status import Status
from ..models.user import User
from .permission_service import UserPermissionService
from .user_service import UserService

logger = logging.getLogger(__name__)


@unique
class LoginStatus(str, Enum):
    MISSING_CREDENTIALS = "credenciales_incompletas"
    USER_NOT_FOUND = "usuario_no_encontrado"
    USER_INACTIVE = "usuario_inactivo"
    WRONG_PASSWORD = "password_incorrecta"
    OK = "ok"


# estado -> (HTTP status, mensaje, acción de bitácora)
LOGIN_OUTCOMES = {
    LoginStatus.MISSING_CREDENTIALS: (400, "Usuario y contraseña son requeridos", None),
    LoginStatus.USER_NOT_FOUND: (404, "Usuario no encontrado", AuditAction.LOGIN_FALLIDO),
    LoginStatus.USER_INACTIVE: (
        403,
        "Usuario inactivo. Contacte al administrador",
        AuditAction.LOGIN_BLOQUEADO,
    ),
    LoginStatus.WRONG_PASSWORD: (401, "Contraseña incorrecta", AuditAction.LOGIN_FALLIDO),
    LoginStatus.OK: (200, "Inicio de sesión exitoso", AuditAction.LOGIN),
}


@dataclass
class LoginResult:
    status: LoginStatus
    username: Optional[str] = None
    user: Optional[User] = None
    token: Optional[str] = None
    permissions: list[str] = field(default_factory=list)

    @property
    def http_status(self) -> int:
        return LOGIN_OUTCOMES[self.status][0]

    @property
    def message(self) -> str:
        return LOGIN_OUTCOMES[self.status][1]

    @property
    def audit_action(self) -> Optional[AuditAction]:
        return LOGIN_OUTCOMES[self.status][2]

    @property
    def audit_user_id(self) -> Optional[int]:
        return self.user.id if self.user else None

    @property
    def audit_description(self) -> str:
        if self.status == LoginStatus.OK:
            return f"Inicio de sesión exitoso - Usuario: {self.username}"
        if self.status == LoginStatus.USER_NOT_FOUND:
            return f"Intento de inicio de sesión fallido - Usuario no encontrado: {self.username}"
        if self.status == LoginStatus.USER_INACTIVE:
            return f"Intento de inicio de sesión bloqueado - Usuario inactivo: {self.username}"
        return f"Intento de inicio de sesión fallido - contraseña incorrecta: {self.username}"

    def user_payload(self) -> dict:
        return {
            "id": self.user.id,
            "nombre": self.user.first_name,
            "apellidos": self.user.last_name,
            "funcion": self.user.role,
            "permisos": self.permissions,
        }


class AuthService:
    def __init__(self, session: Session, settings: Optional[Settings] = None):
        self.session = session
        self.settings = settings or get_settings()

    def _is_active(self, user: User) -> bool:
        status = self.session.get(Status, user.status_id)
        return bool(status and status.name.strip().lower() == ACTIVE_STATUS_NAME)

    def login(self, username: Optional[str], password: Optional[str]) -> LoginResult:
        if not username or not password:
            return LoginResult(LoginStatus.MISSING_CREDENTIALS, username=username)

        user = UserService(self.session).get_user_by_username(username)
        if not user:
            logger.info(f"Login fallido, usuario inexistente: {username}")
            return LoginResult(LoginStatus.USER_NOT_FOUND, username=username)

        if not self._is_active(user):
            logger.info(f"Login bloqueado, usuario inactivo: {username}")
            return LoginResult(LoginStatus.USER_INACTIVE, username=username, user=user)

        valid, new_hash = verify_and_update(password, user.hashed_password)
        if not valid:
            logger.info(f"Login fallido, contraseña incorrecta: {username}")
            return LoginResult(LoginStatus.WRONG_PASSWORD, username=username, user=user)

        if new_hash:
            # hash heredado (sha256 sin sal) -> argon2
            user.hashed_password = new_hash
            self.session.add(user)
            self.session.commit()
            self.session.refresh(user)
            logger.info(f"Hash de contraseña migrado a argon2 para {username}")

        permissions = UserPermissionService(self.session).permission_names_for_user(user.id)
        principal = Principal(
            id=user.id,
            nombre=user.first_name,
            apellidos=user.last_name,
            funcion=user.role,
            permisos=permissions,
        )
        token = create_access_token(principal, self.settings)
        return LoginResult(
            LoginStatus.OK, username=username, user=user, token=token, permissions=permissions
        )
