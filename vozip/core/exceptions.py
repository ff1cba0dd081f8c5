# vozip/core/exceptions.py
"""
Domain exceptions shared by services and routers.

Services keep the same convention used across the codebase:
- ValueError          -> 400 (datos inválidos)
- FileNotFoundError   -> 404 (registro no encontrado)
- ConflictError       -> 409 (unicidad / registro en uso)
- AuthenticationError -> 401 (credenciales incorrectas)
"""
from typing import Any, Optional


class ConflictError(ValueError):
    """Violación de unicidad o registro referenciado por otros."""

    def __init__(self, message: str, extra: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.extra = extra or {}


class AuthenticationError(Exception):
    """Credenciales incorrectas (401)."""
