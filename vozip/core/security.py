# vozip/core/security.py
"""
Hashing de contraseñas, emisión/verificación de tokens JWT y chequeo de permisos.

Las funciones de este módulo no dependen de FastAPI; las dependencias
(`get_current_principal`, `PermissionChecker`, `RoleChecker`) viven en
`vozip.core.users` y traducen estos errores a respuestas HTTP.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Sequence

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError

from .config import Settings, get_settings
from .constants import AdminRole

logger = logging.getLogger(__name__)

# argon2 para hashes nuevos; hex_sha256 solo para verificar cuentas heredadas
# (sha256 sin sal) y migrarlas en el siguiente login.
pwd_context = CryptContext(schemes=["argon2", "hex_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    valid, _ = verify_and_update(plain, hashed)
    return valid


def verify_and_update(plain: str, hashed: str) -> tuple[bool, Optional[str]]:
    """
    Verifica la contraseña. Si el hash es de un esquema obsoleto devuelve
    además el nuevo hash argon2 que debe persistirse.
    """
    if not hashed:
        return False, None
    try:
        return pwd_context.verify_and_update(plain, hashed)
    except ValueError:
        # hash con formato desconocido
        logger.warning("Hash de contraseña con formato no reconocido")
        return False, None


# --- Tokens ---


class Principal(BaseModel):
    """Identidad autenticada tal como viaja dentro del token."""

    id: int
    nombre: Optional[str] = None
    apellidos: Optional[str] = None
    funcion: Optional[str] = None
    permisos: list[str] = []

    @property
    def is_admin(self) -> bool:
        return self.funcion in {r.value for r in AdminRole}


class TokenError(Exception):
    status_code = 401
    message = "Token no válido"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class MissingTokenError(TokenError):
    message = "Token no proporcionado"


class MalformedTokenError(TokenError):
    message = "Token no válido"


class ExpiredTokenError(TokenError):
    message = "Token expirado"


class InvalidTokenError(TokenError):
    status_code = 403
    message = "Token inválido o expirado"


def extract_bearer_token(header: Optional[str]) -> str:
    """
    Extrae el token de un header `Authorization: Bearer <token>`.

    Solo se acepta exactamente un espacio entre el esquema y el token.
    """
    if not header or not header.strip():
        raise MissingTokenError()
    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise MalformedTokenError()
    return parts[1]


def create_access_token(
    principal: Principal,
    settings: Optional[Settings] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    settings = settings or get_settings()
    if expires_delta is None:
        expires_delta = timedelta(seconds=settings.access_token_lifetime_seconds)
    to_encode = principal.model_dump()
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Optional[Settings] = None) -> Principal:
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise ExpiredTokenError()
    except JWTError as e:
        logger.debug(f"JWT rechazado: {e}")
        raise InvalidTokenError()
    try:
        return Principal.model_validate(payload)
    except ValidationError:
        raise InvalidTokenError()


# --- Permisos ---

PERMISSION_MODE_ANY = "any"
PERMISSION_MODE_ALL = "all"


class MissingPrincipalError(Exception):
    """El chequeo de permisos se ejecutó sin identidad autenticada."""


class PermissionDeniedError(Exception):
    def __init__(self, message: str, required: Sequence[str], granted: Sequence[str]):
        super().__init__(message)
        self.message = message
        self.required = list(required)
        self.granted = list(granted)

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "permisosRequeridos": self.required,
            "permisosUsuario": self.granted,
        }


def check_permissions(
    principal: Optional[Principal],
    required: Iterable[str],
    mode: str = PERMISSION_MODE_ANY,
) -> Principal:
    """
    any: basta con uno de los permisos requeridos.
    all: se necesitan todos.
    """
    if principal is None:
        raise MissingPrincipalError()

    required = [required] if isinstance(required, str) else list(required)
    granted = list(principal.permisos or [])
    granted_set = set(granted)

    if mode == PERMISSION_MODE_ALL:
        if not set(required).issubset(granted_set):
            raise PermissionDeniedError(
                "No tienes todos los permisos necesarios para realizar esta acción",
                required,
                granted,
            )
        return principal

    if mode != PERMISSION_MODE_ANY:
        raise ValueError(f"Modo de permisos desconocido: {mode}")

    if not granted_set.intersection(required):
        raise PermissionDeniedError(
            "No tienes permisos suficientes para realizar esta acción",
            required,
            granted,
        )
    return principal
