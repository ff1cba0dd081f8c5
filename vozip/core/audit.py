# vozip/core/audit.py
"""
Bitácora de auditoría.

Los handlers construyen un `AuditIntent` con `AuditTrail.record(...)` y la
escritura se ejecuta con BackgroundTasks cuando la respuesta ya se envió.
`persist_audit` abre su propia sesión y nunca lanza: un fallo de la bitácora
no altera la respuesta de la operación principal.
"""
import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Optional, Union

from fastapi import BackgroundTasks, Depends, Request
from fastapi.encoders import jsonable_encoder

from ..db.engine import Database, get_database
from ..models.audit_log import AuditLog
from .constants import (
    REDACTED_MARKER,
    UNKNOWN_IP,
    UNKNOWN_USER_AGENT,
    AuditAction,
    AuditModule,
)

SYSTEM_ORIGIN = "Sistema"
SENSITIVE_KEYS = ("password", "token", "secret")
EXPORT_PATH_MARKERS = ("export", "exportar", "report", "reporte", "morosos")

# Logger dedicado, sin propagar al root
audit_logger = logging.getLogger("audit")
audit_logger.propagate = False
if not audit_logger.handlers:
    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter("[AUDIT] %(levelname)s %(message)s"))
    audit_logger.addHandler(_handler)
    audit_logger.setLevel(logging.INFO)


def resolve_client_ip(request: Optional[Request]) -> str:
    """X-Forwarded-For (primera entrada) -> host del cliente -> scope ASGI -> 'Desconocida'."""
    if request is None:
        return SYSTEM_ORIGIN

    client_ip = None
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        client_ip = forwarded_for.split(",")[0].strip()
    if not client_ip and request.client:
        client_ip = request.client.host
    if not client_ip:
        scope_client = request.scope.get("client")
        if scope_client:
            client_ip = scope_client[0]
    if not client_ip:
        return UNKNOWN_IP
    return client_ip.replace("::ffff:", "")


def resolve_user_agent(request: Optional[Request]) -> str:
    if request is None:
        return SYSTEM_ORIGIN
    return request.headers.get("user-agent") or UNKNOWN_USER_AGENT


def redact(data: Any) -> Any:
    """Copia `data` ocultando cualquier clave que contenga password/token/secret."""
    if isinstance(data, dict):
        cleaned = {}
        for key, value in data.items():
            if any(marker in str(key).lower() for marker in SENSITIVE_KEYS):
                cleaned[key] = REDACTED_MARKER
            else:
                cleaned[key] = redact(value)
        return cleaned
    if isinstance(data, (list, tuple)):
        return [redact(item) for item in data]
    return data


def action_for_request(method: str, path: str) -> Optional[AuditAction]:
    """Acción de bitácora inferida del método HTTP; None si el GET no se audita."""
    method = method.upper()
    if method == "POST":
        return AuditAction.CREAR
    if method in ("PUT", "PATCH"):
        return AuditAction.ACTUALIZAR
    if method == "DELETE":
        return AuditAction.ELIMINAR
    if method == "GET":
        lowered = path.lower()
        if any(marker in lowered for marker in EXPORT_PATH_MARKERS):
            return AuditAction.EXPORTAR
    return None


@dataclass
class AuditIntent:
    action: str
    module: str
    description: str
    user_id: Optional[int] = None
    previous_data: Any = None
    new_data: Any = None
    ip_address: str = SYSTEM_ORIGIN
    user_agent: str = SYSTEM_ORIGIN

    @classmethod
    def build(
        cls,
        action: Union[AuditAction, str],
        module: Union[AuditModule, str],
        description: str,
        request: Optional[Request] = None,
        user_id: Optional[int] = None,
        previous_data: Any = None,
        new_data: Any = None,
    ) -> "AuditIntent":
        return cls(
            action=AuditAction(action).value,
            module=AuditModule(module).value,
            description=description,
            user_id=user_id,
            previous_data=jsonable_encoder(previous_data),
            new_data=redact(jsonable_encoder(new_data)),
            ip_address=resolve_client_ip(request),
            user_agent=resolve_user_agent(request),
        )


def persist_audit(db: Database, intent: AuditIntent, allow_anonymous: bool = False) -> bool:
    """Escribe el registro. Devuelve False (sin lanzar) si no se pudo escribir."""
    if intent.user_id is None and not allow_anonymous:
        audit_logger.warning(
            f"Registro omitido, usuario no autenticado: {intent.module} {intent.action}"
        )
        return False

    try:
        with db.session() as session:
            session.add(AuditLog(**asdict(intent)))
            session.commit()
    except Exception as e:
        audit_logger.error(f"Error al registrar en bitácora: {e}")
        return False

    audit_logger.info(
        json.dumps(
            {
                "action": intent.action,
                "module": intent.module,
                "user_id": intent.user_id,
                "ip_address": intent.ip_address,
                "description": intent.description,
            },
            ensure_ascii=False,
        )
    )
    return True


class AuditTrail:
    """
    Recolector por request. Toma el usuario del token ya validado
    (`request.state.principal`) salvo que se indique otro explícitamente.
    """

    def __init__(self, request: Request, background_tasks: BackgroundTasks, db: Database):
        self.request = request
        self.background_tasks = background_tasks
        self.db = db

    @property
    def actor_id(self) -> Optional[int]:
        principal = getattr(self.request.state, "principal", None)
        return principal.id if principal else None

    def record(
        self,
        action: Union[AuditAction, str],
        module: Union[AuditModule, str],
        description: str,
        previous_data: Any = None,
        new_data: Any = None,
        user_id: Optional[int] = None,
        allow_anonymous: bool = False,
    ) -> Optional[AuditIntent]:
        try:
            intent = AuditIntent.build(
                action,
                module,
                description,
                request=self.request,
                user_id=user_id if user_id is not None else self.actor_id,
                previous_data=previous_data,
                new_data=new_data,
            )
        except Exception as e:
            audit_logger.error(f"No se pudo preparar el registro de bitácora: {module} {action}: {e}")
            return None
        self.background_tasks.add_task(persist_audit, self.db, intent, allow_anonymous)
        return intent

    def record_request(
        self,
        module: Union[AuditModule, str],
        description: str,
        previous_data: Any = None,
        new_data: Any = None,
    ) -> Optional[AuditIntent]:
        """Registra con la acción inferida del método/ruta; no hace nada en GET normales."""
        action = action_for_request(self.request.method, self.request.url.path)
        if action is None:
            return None
        return self.record(action, module, description, previous_data, new_data)


def get_audit_trail(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Database = Depends(get_database),
) -> AuditTrail:
    return AuditTrail(request, background_tasks, db)
