"""
filefield Database Base — SQLAlchemy declarative base and record persistence.

Provides:
- Base: SQLAlchemy declarative base for mapped tables
- file_column(): String column definition for a FileField
- RecordStore: Writes saved Model values to a mapped table and loads them back
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Type

from sqlalchemy import Column, String
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session

from filefield.fields.file import FileField
from filefield.model import Model
from filefield.validation import Validation

logger = logging.getLogger("filefield.db.base")


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for filefield tables."""
    pass


def file_column(field: FileField, length: int = 255, **kwargs: Any) -> Column:
    """
    Column for a FileField: a nullable VARCHAR holding the filename
    relative to the field's path.
    """
    kwargs.setdefault("nullable", True)
    return Column(String(length), default=field.default, **kwargs)


class RecordStore:
    """
    Persists Model instances into a mapped table.

    The mapped class must have a column for every declared field, and the
    primary key must be one of them.

    Usage:
        class Profile(Model):
            id = Field()
            photo = FileField(path="/srv/media")

        store = RecordStore(sessionmaker(bind=engine), ProfileRow, Profile)
        validation = profile.validate({"photo": payload})
        store.persist(profile, validation)
        again = store.load(profile.id)
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        mapped_class: Type[Any],
        model_class: Type[Model],
    ):
        self._session_factory = session_factory
        self._mapped = mapped_class
        self._model = model_class

    def _row_values(self, values: Dict[str, Any]) -> Dict[str, Any]:
        return {
            field.column: values[name]
            for name, field in self._model.__fields__.items()
        }

    def persist(self, model: Model, validation: Optional[Validation] = None) -> Dict[str, Any]:
        """
        Merge the model's save values into the table.

        The model is only marked saved once the commit succeeds; on a
        database error it keeps its previous original values.

        Returns the saved column values.
        """
        values = model.save_values(validation)
        row_values = self._row_values(values)

        with self._session_factory() as session:
            try:
                session.merge(self._mapped(**row_values))
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Failed to persist {self._model.__name__}: {e}")
                raise

        model.mark_saved(values)
        logger.debug(f"Persisted {self._model.__name__} into {self._mapped.__tablename__}")
        return row_values

    def load(self, pk: Any) -> Optional[Model]:
        """Load a row by primary key into a loaded Model instance."""
        with self._session_factory() as session:
            row = session.get(self._mapped, pk)
            if row is None:
                return None
            values = {
                name: getattr(row, field.column)
                for name, field in self._model.__fields__.items()
            }
        return self._model(values, loaded=True)
