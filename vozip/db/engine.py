# vozip/db/engine.py
"""
Motor de base de datos y gestión de sesiones (SQLModel, síncrono).

La conexión no es un global del módulo: `Database` se construye al arrancar
el proceso (lifespan de FastAPI), se guarda en `app.state.db` y se libera
al apagar. Soporta SQLite (por defecto) y MySQL/PostgreSQL vía DATABASE_URL.
"""
import logging
import os
from collections.abc import Generator
from typing import Any

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

logger = logging.getLogger(__name__)


class Database:
    """Engine + fábrica de sesiones con ciclo de vida explícito."""

    def __init__(self, url: str, **engine_kwargs: Any):
        self.url = url
        self.is_sqlite = url.startswith("sqlite")

        if self.is_sqlite:
            engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
            if self._is_memory:
                # Una sola conexión compartida, si no cada sesión ve una BD vacía
                engine_kwargs.setdefault("poolclass", StaticPool)
            else:
                self._ensure_sqlite_dir()
        else:
            engine_kwargs.setdefault("pool_size", 5)
            engine_kwargs.setdefault("pool_timeout", 30)
            engine_kwargs.setdefault("pool_recycle", 1800)
            engine_kwargs.setdefault("pool_pre_ping", True)

        self.engine = create_engine(url, echo=False, **engine_kwargs)

        if self.is_sqlite:
            event.listen(self.engine, "connect", _set_sqlite_pragma)

    @property
    def _is_memory(self) -> bool:
        return self.url in ("sqlite://", "sqlite:///:memory:")

    def _ensure_sqlite_dir(self) -> None:
        path = self.url.split("sqlite:///", 1)[-1]
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

    def create_all(self) -> None:
        """Crea todas las tablas registradas en SQLModel.metadata."""
        # Importar los modelos registra las tablas en el metadata
        from .. import models  # noqa: F401

        SQLModel.metadata.create_all(self.engine)

    def session(self) -> Session:
        return Session(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Conexiones de base de datos liberadas")


def _set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL;")
    cursor.close()


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_session(request: Request) -> Generator[Session, None, None]:
    """
    Dependency for SQLModel session injection.
    Usage: session: Session = Depends(get_session)
    """
    with get_database(request).session() as session:
        yield session
