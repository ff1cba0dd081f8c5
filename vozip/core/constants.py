"""
Constantes centralizadas para el sistema.
Elimina "magic strings" y provee tipado fuerte para valores comunes.
"""

from enum import Enum, unique
from typing import Optional


@unique
class AuditAction(str, Enum):
    """Acciones registradas en la bitácora."""

    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    LOGIN_FALLIDO = "LOGIN_FALLIDO"
    LOGIN_BLOQUEADO = "LOGIN_BLOQUEADO"
    CREAR = "CREAR"
    ACTUALIZAR = "ACTUALIZAR"
    ELIMINAR = "ELIMINAR"
    EXPORTAR = "EXPORTAR"
    ASIGNAR_PERMISO = "ASIGNAR_PERMISO"
    REVOCAR_PERMISO = "REVOCAR_PERMISO"
    CAMBIAR_ESTADO = "CAMBIAR_ESTADO"
    LIMPIAR = "LIMPIAR"


@unique
class AuditModule(str, Enum):
    """Módulos del sistema que aparecen en la bitácora."""

    AUTENTICACION = "AUTENTICACION"
    SISTEMA = "SISTEMA"
    USUARIOS = "USUARIOS"
    CLIENTES = "CLIENTES"
    PAGOS = "PAGOS"
    PERMISOS = "PERMISOS"
    PLANES = "PLANES"
    SECTORES = "SECTORES"
    TARIFAS = "TARIFAS"
    ESTADOS = "ESTADOS"
    TIPOS_SERVICIO = "TIPOS_SERVICIO"
    METODOS_PAGO = "METODOS_PAGO"
    MOROSOS = "MOROSOS"
    BITACORA = "BITACORA"


@unique
class Month(str, Enum):
    """Meses tal como se registran en los pagos."""

    ENERO = "ENERO"
    FEBRERO = "FEBRERO"
    MARZO = "MARZO"
    ABRIL = "ABRIL"
    MAYO = "MAYO"
    JUNIO = "JUNIO"
    JULIO = "JULIO"
    AGOSTO = "AGOSTO"
    SEPTIEMBRE = "SEPTIEMBRE"
    OCTUBRE = "OCTUBRE"
    NOVIEMBRE = "NOVIEMBRE"
    DICIEMBRE = "DICIEMBRE"

    @property
    def number(self) -> int:
        return list(Month).index(self) + 1

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Month"]:
        """Normaliza el nombre (mayúsculas, sin espacios) y lo mapea; None si no existe."""
        if not value:
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None

    @classmethod
    def from_number(cls, number: int) -> "Month":
        return list(cls)[number - 1]


@unique
class AdminRole(str, Enum):
    """Funciones con acceso administrativo (comparación exacta)."""

    ADMINISTRADOR = "Administrador"
    GERENTE = "Gerente"
    ADMIN = "Admin"


@unique
class StatusId(int, Enum):
    """Estados sembrados por defecto (tabla estados)."""

    ACTIVO = 1
    SUSPENDIDO = 2
    RETIRADO = 3
    CONVENIO = 4


ACTIVE_STATUS_NAME = "activo"
REDACTED_MARKER = "***OCULTO***"
UNKNOWN_IP = "Desconocida"
UNKNOWN_USER_AGENT = "Desconocido"


# --- Catálogo de permisos ("modulo.accion") ---
CRUD_ACTIONS = ("leer", "crear", "actualizar", "eliminar")
CRUD_PERMISSION_MODULES = (
    "usuarios",
    "clientes",
    "pagos",
    "permisos",
    "tarifas",
    "planes",
    "sectores",
    "estados",
    "tipos_servicio",
    "metodos_pago",
)
EXTRA_PERMISSIONS = {
    "clientes.exportar": "Exportar clientes a Excel",
    "morosos.leer": "Consultar clientes morosos",
    "morosos.exportar": "Exportar clientes morosos a Excel",
    "permisos.asignar": "Asignar y revocar permisos de usuarios",
    "bitacora.leer": "Consultar la bitácora",
    "bitacora.estadisticas": "Ver estadísticas de la bitácora",
    "bitacora.exportar": "Exportar la bitácora a Excel",
    "bitacora.limpiar": "Eliminar registros antiguos de la bitácora",
}


def default_permissions() -> dict[str, str]:
    """Nombre -> descripción de todos los permisos que siembra el bootstrap."""
    permissions = {
        f"{module}.{action}": f"{action.capitalize()} {module.replace('_', ' ')}"
        for module in CRUD_PERMISSION_MODULES
        for action in CRUD_ACTIONS
    }
    permissions.update(EXTRA_PERMISSIONS)
    return permissions


DEFAULT_STATUSES = {
    StatusId.ACTIVO: "activo",
    StatusId.SUSPENDIDO: "suspendido",
    StatusId.RETIRADO: "retirado",
    StatusId.CONVENIO: "convenio",
}
