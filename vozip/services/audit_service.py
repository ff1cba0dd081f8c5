import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import delete
from sqlmodel import Session, func, select

from ..core.constants import AuditAction, AuditModule
from ..core.timeutils import end_of_day, start_of_day, utc_now
from ..models.audit_log import AuditLog
from ..models.user import User

logger = logging.getLogger(__name__)

EXPORT_LIMIT = 10000
MAX_PAGE_SIZE = 1000


@dataclass
class AuditFilters:
    user_id: Optional[int] = None
    module: Optional[str] = None
    action: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search: Optional[str] = None

    def __post_init__(self):
        # Solo se aceptan valores del vocabulario de la bitácora
        if self.module:
            try:
                self.module = AuditModule(self.module.strip().upper()).value
            except ValueError:
                raise ValueError(f"Módulo de bitácora desconocido: {self.module}")
        if self.action:
            try:
                self.action = AuditAction(self.action.strip().upper()).value
            except ValueError:
                raise ValueError(f"Acción de bitácora desconocida: {self.action}")
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("fecha_inicio no puede ser posterior a fecha_fin")

    def apply(self, statement):
        if self.user_id is not None:
            statement = statement.where(AuditLog.user_id == self.user_id)
        if self.module:
            statement = statement.where(AuditLog.module == self.module)
        if self.action:
            statement = statement.where(AuditLog.action == self.action)
        if self.start_date:
            statement = statement.where(
                AuditLog.created_at >= start_of_day(self.start_date)
            )
        if self.end_date:
            statement = statement.where(
                AuditLog.created_at <= end_of_day(self.end_date)
            )
        if self.search:
            statement = statement.where(AuditLog.description.like(f"%{self.search}%"))
        return statement


class AuditService:
    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def _to_record(log: AuditLog, user: Optional[User]) -> Dict[str, Any]:
        data = log.model_dump()
        data["username"] = user.username if user else None
        data["user_full_name"] = user.full_name if user else None
        return data

    def _records(self, statement) -> List[Dict[str, Any]]:
        return [self._to_record(log, user) for log, user in self.session.exec(statement)]

    def _base_statement(self):
        return select(AuditLog, User).join(User, User.id == AuditLog.user_id, isouter=True)

    def get_audit_logs_paginated(
        self, filters: AuditFilters, limit: int = 100, offset: int = 0
    ) -> Dict[str, Any]:
        """
        Registros más recientes primero, con el total que cumple los filtros.
        """
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValueError(f"limit debe estar entre 1 y {MAX_PAGE_SIZE}")
        if offset < 0:
            raise ValueError("offset no puede ser negativo")

        statement = (
            filters.apply(self._base_statement())
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset(offset)
            .limit(limit)
        )
        total = self.count_audit_logs(filters)
        return {
            "registros": self._records(statement),
            "total": total,
            "limit": limit,
            "offset": offset,
            "has_more": offset + limit < total,
        }

    def count_audit_logs(self, filters: AuditFilters) -> int:
        statement = filters.apply(select(func.count()).select_from(AuditLog))
        return self.session.exec(statement).one() or 0

    def get_distinct_modules(self) -> List[str]:
        statement = select(AuditLog.module).distinct().order_by(AuditLog.module)
        return list(self.session.exec(statement).all())

    def get_distinct_actions(self) -> List[str]:
        statement = select(AuditLog.action).distinct().order_by(AuditLog.action)
        return list(self.session.exec(statement).all())

    def get_statistics(self, filters: AuditFilters, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Totales por módulo, por acción, los 10 usuarios más activos y actividad de 7 días."""
        now = now or utc_now()
        count = func.count(AuditLog.id)

        by_module = self.session.exec(
            filters.apply(select(AuditLog.module, count))
            .group_by(AuditLog.module)
            .order_by(count.desc())
        ).all()
        by_action = self.session.exec(
            filters.apply(select(AuditLog.action, count))
            .group_by(AuditLog.action)
            .order_by(count.desc())
        ).all()
        top_users = self.session.exec(
            filters.apply(
                select(AuditLog.user_id, User.username, User.first_name, User.last_name, count)
                .join(User, User.id == AuditLog.user_id)
            )
            .group_by(AuditLog.user_id, User.username, User.first_name, User.last_name)
            .order_by(count.desc())
            .limit(10)
        ).all()

        first_day = now.date() - timedelta(days=6)
        recent = self.session.exec(
            filters.apply(select(AuditLog.created_at)).where(
                AuditLog.created_at >= start_of_day(first_day)
            )
        ).all()
        per_day = Counter(created.date() for created in recent)

        return {
            "totalAcciones": self.count_audit_logs(filters),
            "accionesPorModulo": [{"modulo": m, "total": t} for m, t in by_module],
            "accionesPorTipo": [{"accion": a, "total": t} for a, t in by_action],
            "usuariosMasActivos": [
                {
                    "usuario_id": uid,
                    "username": username,
                    "nombre": " ".join(p for p in (first, last) if p) or username,
                    "total": t,
                }
                for uid, username, first, last, t in top_users
            ],
            "actividadPorDia": [
                {"fecha": day.isoformat(), "total": per_day.get(day, 0)}
                for day in (first_day + timedelta(days=i) for i in range(7))
            ],
        }

    def get_export_rows(self, filters: AuditFilters, limit: int = EXPORT_LIMIT) -> List[Dict[str, Any]]:
        statement = (
            filters.apply(self._base_statement())
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .limit(min(limit, EXPORT_LIMIT))
        )
        return self._records(statement)

    def purge_older_than(self, days: int, now: Optional[datetime] = None) -> tuple[int, datetime]:
        """Elimina los registros anteriores a `days` días. Devuelve (eliminados, fecha límite)."""
        if days < 1:
            raise ValueError("dias debe ser mayor o igual a 1")
        cutoff = (now or utc_now()) - timedelta(days=days)
        result = self.session.execute(delete(AuditLog).where(AuditLog.created_at < cutoff))
        self.session.commit()
        deleted = result.rowcount or 0
        logger.info(f"Bitácora: {deleted} registros anteriores a {cutoff.isoformat()} eliminados")
        return deleted, cutoff
