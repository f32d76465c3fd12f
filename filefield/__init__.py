"""
filefield — File upload columns for record models.

    from filefield import Model, Field, FileField

    class Profile(Model):
        name = Field()
        photo = FileField(path="media/photos", types={"image/*"}, default="blank.png")
"""

__version__ = "1.0.0"

from filefield.engine.errors import (  # noqa: F401
    FileFieldConfigError,
    FileFieldError,
    FileFieldStorageError,
    FileFieldValidationError,
)
from filefield.fields import Field, FileField, Validatable, sanitize_filename  # noqa: F401
from filefield.model import Model  # noqa: F401
from filefield.upload import Upload, UploadedFile, UploadResult, UploadStatus  # noqa: F401
from filefield.validation import Validation  # noqa: F401

__all__ = [
    "FileFieldError",
    "FileFieldConfigError",
    "FileFieldValidationError",
    "FileFieldStorageError",
    "Field",
    "FileField",
    "Validatable",
    "sanitize_filename",
    "Model",
    "Upload",
    "UploadedFile",
    "UploadResult",
    "UploadStatus",
    "Validation",
]
