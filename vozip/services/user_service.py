# vozip/services/user_service.py
import logging
from typing import List, Optional

from sqlmodel import Session, select

from ..core.exceptions import AuthenticationError, ConflictError
from ..core.security import hash_password, verify_password
from ..models.status import Status
from ..models.user import User
from ..schemas.user import UserCreate, UserUpdate
from .permission_service import UserPermissionService

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, session: Session):
        self.session = session

    def get_all_users(self) -> List[User]:
        statement = select(User).order_by(User.id)
        return list(self.session.exec(statement).all())

    def get_user(self, user_id: int) -> User:
        db_user = self.session.get(User, user_id)
        if not db_user:
            raise FileNotFoundError("Usuario no encontrado")
        return db_user

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.username == username)).first()

    def get_user_by_national_id(self, national_id: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.national_id == national_id)).first()

    def get_permissions(self, user_id: int) -> List[str]:
        return UserPermissionService(self.session).permission_names_for_user(user_id)

    def _check_unique(self, username: Optional[str], national_id: Optional[str], exclude_id: Optional[int] = None):
        if username:
            existing = self.get_user_by_username(username)
            if existing and existing.id != exclude_id:
                raise ConflictError("Ya existe un usuario con ese nombre de usuario")
        if national_id:
            existing = self.get_user_by_national_id(national_id)
            if existing and existing.id != exclude_id:
                raise ConflictError("Ya existe un usuario con esa cédula")

    def _check_status(self, status_id: Optional[int]):
        if status_id is not None and not self.session.get(Status, status_id):
            raise ValueError("El estado indicado no existe")

    def create_user(self, user_create: UserCreate) -> User:
        if not user_create.national_id or not user_create.username or not user_create.password:
            raise ValueError("Cédula, usuario y contraseña son requeridos")

        self._check_unique(user_create.username, user_create.national_id)
        self._check_status(user_create.status_id)

        db_user = User(
            national_id=user_create.national_id,
            username=user_create.username,
            hashed_password=hash_password(user_create.password),
            first_name=user_create.first_name,
            last_name=user_create.last_name,
            phone=user_create.phone,
            role=user_create.role,
            status_id=user_create.status_id,
        )
        self.session.add(db_user)
        self.session.commit()
        self.session.refresh(db_user)
        logger.info(f"Usuario creado: {db_user.username} (id={db_user.id})")
        return db_user

    def update_user(self, user_id: int, user_update: UserUpdate) -> User:
        db_user = self.get_user(user_id)

        # Aplicar cambios solo si se enviaron
        update_data = user_update.model_dump(exclude_unset=True)
        for required in ("national_id", "username"):
            if required in update_data and not update_data[required]:
                raise ValueError("Cédula y usuario no pueden quedar vacíos")

        self._check_unique(
            update_data.get("username"), update_data.get("national_id"), exclude_id=user_id
        )
        if "status_id" in update_data:
            if update_data["status_id"] is None:
                raise ValueError("El estado es obligatorio")
            self._check_status(update_data["status_id"])

        for key, value in update_data.items():
            setattr(db_user, key, value)

        self.session.add(db_user)
        self.session.commit()
        self.session.refresh(db_user)
        return db_user

    def change_password(self, user_id: int, current_password: str, new_password: str) -> User:
        db_user = self.get_user(user_id)
        if not new_password:
            raise ValueError("La nueva contraseña es requerida")
        if not verify_password(current_password, db_user.hashed_password):
            raise AuthenticationError("Contraseña actual incorrecta")

        db_user.hashed_password = hash_password(new_password)
        self.session.add(db_user)
        self.session.commit()
        self.session.refresh(db_user)
        return db_user

    def delete_user(self, user_id: int) -> User:
        db_user = self.get_user(user_id)
        username = db_user.username
        UserPermissionService(self.session).revoke_all_for_user(user_id)
        self.session.delete(db_user)
        self.session.commit()
        logger.info(f"Usuario eliminado: {username} (id={user_id})")
        return db_user
