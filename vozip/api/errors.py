# vozip/api/errors.py
"""Traducción de excepciones de servicio a HTTPException."""
from fastapi import HTTPException, status

from ..core.exceptions import ConflictError


def bad_request(e: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def not_found(e: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def conflict(e: ConflictError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT, detail={"message": str(e), **e.extra}
    )
