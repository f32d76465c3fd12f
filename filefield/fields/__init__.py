"""filefield Fields — column descriptors for Model."""

from filefield.fields.base import Field, Validatable  # noqa: F401
from filefield.fields.file import FileField, sanitize_filename  # noqa: F401

__all__ = [
    "Field",
    "Validatable",
    "FileField",
    "sanitize_filename",
]
