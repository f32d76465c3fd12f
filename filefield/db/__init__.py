"""filefield Database — SQLAlchemy glue for file columns."""

from filefield.db.base import Base, RecordStore, file_column  # noqa: F401

__all__ = ["Base", "RecordStore", "file_column"]
