# vozip/services/permission_service.py
import logging
from typing import List, Optional, Tuple

from sqlmodel import Session, select

from ..core.exceptions import ConflictError
from ..models.permission import Permission, UserPermission
from ..models.user import User
from .catalog_service import CatalogService

logger = logging.getLogger(__name__)


class PermissionService(CatalogService[Permission]):
    """Catálogo de permisos ("modulo.accion"). El nombre es único sin distinguir mayúsculas."""

    model_class = Permission
    label = "Permiso"
    noun = "permiso"
    case_insensitive = True
    referenced_by = ((UserPermission, "permission_id", "usuarios"),)

    def _in_use_message(self, count: int, referrer: str) -> str:
        return f"No se puede eliminar el permiso porque está asignado a {count} {referrer}"

    def get_by_name(self, name: str) -> Optional[Permission]:
        return self.find_duplicate(name)


class UserPermissionService:
    """Asignación y revocación de permisos a usuarios."""

    def __init__(self, session: Session):
        self.session = session

    def _rows(self, statement) -> List[Tuple[UserPermission, User, Permission]]:
        statement = (
            statement.join(User, User.id == UserPermission.user_id)
            .join(Permission, Permission.id == UserPermission.permission_id)
            .order_by(UserPermission.id)
        )
        return list(self.session.exec(statement).all())

    def get_all(self) -> List[Tuple[UserPermission, User, Permission]]:
        return self._rows(select(UserPermission, User, Permission))

    def get_by_user(self, user_id: int) -> List[Tuple[UserPermission, User, Permission]]:
        if not self.session.get(User, user_id):
            raise FileNotFoundError("Usuario no encontrado")
        return self._rows(
            select(UserPermission, User, Permission).where(UserPermission.user_id == user_id)
        )

    def get_by_permission(self, permission_id: int) -> List[Tuple[UserPermission, User, Permission]]:
        if not self.session.get(Permission, permission_id):
            raise FileNotFoundError("Permiso no encontrado")
        return self._rows(
            select(UserPermission, User, Permission).where(
                UserPermission.permission_id == permission_id
            )
        )

    def permission_names_for_user(self, user_id: int) -> List[str]:
        """Conjunto efectivo de permisos del usuario (se embebe en el token)."""
        statement = (
            select(Permission.name)
            .join(UserPermission, UserPermission.permission_id == Permission.id)
            .where(UserPermission.user_id == user_id)
            .distinct()
            .order_by(Permission.name)
        )
        return list(self.session.exec(statement).all())

    def find_assignment(self, user_id: int, permission_id: int) -> Optional[UserPermission]:
        statement = select(UserPermission).where(
            UserPermission.user_id == user_id,
            UserPermission.permission_id == permission_id,
        )
        return self.session.exec(statement).first()

    def assign(self, user_id: Optional[int], permission_id: Optional[int]) -> UserPermission:
        if not user_id or not permission_id:
            raise ValueError("usuario_id y permiso_id son obligatorios")
        if not self.session.get(User, user_id):
            raise FileNotFoundError("Usuario no encontrado")
        if not self.session.get(Permission, permission_id):
            raise FileNotFoundError("Permiso no encontrado")
        if self.find_assignment(user_id, permission_id):
            raise ConflictError("El permiso ya está asignado a este usuario")

        assignment = UserPermission(user_id=user_id, permission_id=permission_id)
        self.session.add(assignment)
        self.session.commit()
        self.session.refresh(assignment)
        logger.info(f"Permiso {permission_id} asignado al usuario {user_id}")
        return assignment

    def revoke(self, assignment_id: int) -> UserPermission:
        assignment = self.session.get(UserPermission, assignment_id)
        if not assignment:
            raise FileNotFoundError("Asignación de permiso no encontrada")
        self.session.delete(assignment)
        self.session.commit()
        return assignment

    def revoke_for_user(self, user_id: int, permission_id: int) -> UserPermission:
        assignment = self.find_assignment(user_id, permission_id)
        if not assignment:
            raise FileNotFoundError("Asignación de permiso no encontrada")
        self.session.delete(assignment)
        self.session.commit()
        return assignment

    def revoke_all_for_user(self, user_id: int) -> int:
        assignments = self.session.exec(
            select(UserPermission).where(UserPermission.user_id == user_id)
        ).all()
        for assignment in assignments:
            self.session.delete(assignment)
        self.session.commit()
        return len(assignments)
