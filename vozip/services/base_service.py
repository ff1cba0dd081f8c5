# vozip/services/base_service.py
"""
BaseCRUDService: Generic service class for standard CRUD operations.
Reduces code duplication across domain-specific services.
"""
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

# Generic type for SQLModel models
ModelType = TypeVar("ModelType")


class BaseCRUDService(Generic[ModelType]):
    """
    Base class providing generic CRUD (Create, Read, Update, Delete) operations.

    Usage:
        class MyService(BaseCRUDService[MyModel]):
            label = "Registro"

            def __init__(self, session: Session):
                super().__init__(session, MyModel)
    """

    # Nombre legible usado en los mensajes de error ("Plan no encontrado")
    label: str = "Registro"

    def __init__(self, session: Session, model: Type[ModelType]):
        """
        Initialize the service with a database session and model class.

        Args:
            session: SQLModel database session.
            model: The SQLModel class this service manages.
        """
        self.session = session
        self.model = model

    def get_all(self) -> List[ModelType]:
        """Retrieve all records of the model, ordered by id."""
        statement = select(self.model).order_by(self.model.id)
        return list(self.session.exec(statement).all())

    def find(self, id: int) -> Optional[ModelType]:
        return self.session.get(self.model, id)

    def get_by_id(self, id: int) -> ModelType:
        """
        Retrieve a single record by its primary key.

        Raises:
            FileNotFoundError: if the record does not exist.
        """
        record = self.session.get(self.model, id)
        if not record:
            raise FileNotFoundError(f"{self.label} no encontrado")
        return record

    def create(self, data: Dict[str, Any]) -> ModelType:
        """
        Create a new record.

        Args:
            data: Dictionary of field values.

        Returns:
            The created model instance.
        """
        new_record = self.model(**data)
        return self._save(new_record)

    def update(self, id: int, data: Dict[str, Any]) -> ModelType:
        """
        Update an existing record. Only the keys present in `data` change.

        Raises:
            FileNotFoundError: if the record does not exist.
        """
        record = self.get_by_id(id)
        for key, value in data.items():
            setattr(record, key, value)
        return self._save(record)

    def delete(self, id: int) -> ModelType:
        """
        Delete a record by its primary key and return the deleted instance.

        Raises:
            FileNotFoundError: if the record does not exist.
        """
        record = self.get_by_id(id)
        self.session.delete(record)
        self.session.commit()
        return record

    def _save(self, record: ModelType) -> ModelType:
        try:
            self.session.add(record)
            self.session.commit()
            self.session.refresh(record)
            return record
        except SQLAlchemyError:
            self.session.rollback()
            raise
