"""
filefield Upload — submitted-file payload and the upload helper primitives.

UploadedFile: Read-only descriptor of a staged upload (name, type, size,
    tmp_name, error) as produced by the multipart layer.
Upload: Stateless helpers — valid / not_empty / type / size checks and
    save(), which moves the staged file into a directory.
UploadStatus / UploadResult: Outcome of one FileField validation pass,
    stored on the Validation object for the save step.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from filefield.engine.errors import FileFieldStorageError

logger = logging.getLogger("filefield.upload")

# Standard multipart upload error codes
UPLOAD_ERR_OK = 0
UPLOAD_ERR_INI_SIZE = 1
UPLOAD_ERR_FORM_SIZE = 2
UPLOAD_ERR_PARTIAL = 3
UPLOAD_ERR_NO_FILE = 4
UPLOAD_ERR_NO_TMP_DIR = 6
UPLOAD_ERR_CANT_WRITE = 7
UPLOAD_ERR_EXTENSION = 8

UPLOAD_ERRORS = {
    UPLOAD_ERR_OK: "ok",
    UPLOAD_ERR_INI_SIZE: "exceeds server size limit",
    UPLOAD_ERR_FORM_SIZE: "exceeds form size limit",
    UPLOAD_ERR_PARTIAL: "partially uploaded",
    UPLOAD_ERR_NO_FILE: "no file uploaded",
    UPLOAD_ERR_NO_TMP_DIR: "missing temporary directory",
    UPLOAD_ERR_CANT_WRITE: "failed to write to disk",
    UPLOAD_ERR_EXTENSION: "stopped by extension",
}

PAYLOAD_KEYS = frozenset({"name", "type", "size", "tmp_name", "error"})


class UploadedFile(BaseModel):
    """A staged upload. Never mutated; the sanitized name lives elsewhere."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Original client-side filename")
    type: str = Field(default="", description="Declared MIME type")
    size: int = Field(ge=0, description="Size in bytes")
    tmp_name: str = Field(description="Path of the staged temporary file")
    error: int = Field(default=UPLOAD_ERR_OK, description="Upload error code")

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["UploadedFile"]:
        """
        Build an UploadedFile from a submitted value.

        Returns None when the value is not an upload structure: not a
        mapping, missing one of the payload keys, or carrying bad values.
        """
        if isinstance(payload, cls):
            return payload
        if not isinstance(payload, Mapping):
            return None
        if not PAYLOAD_KEYS.issubset(payload.keys()):
            return None
        try:
            return cls(**{k: payload[k] for k in PAYLOAD_KEYS})
        except (ValidationError, TypeError):
            return None

    @property
    def mime_type(self) -> str:
        """Declared type, lowercased, without parameters (``; charset=...``)."""
        return self.type.split(";", 1)[0].strip().lower()


# ---------------------------------------------------------------------------
# Per-pass result
# ---------------------------------------------------------------------------

class UploadStatus(str, Enum):
    SKIPPED = "skipped"
    TYPE_REJECTED = "type_rejected"
    SIZE_REJECTED = "size_rejected"
    SAVE_FAILED = "save_failed"
    PERSISTED = "persisted"


@dataclass(frozen=True)
class UploadResult:
    """What one FileField did during a validation pass."""
    field: str
    status: UploadStatus
    filename: Optional[str] = None   # PersistedFilename, only when PERSISTED
    error: Optional[str] = None      # reason key recorded on the validation

    @property
    def persisted(self) -> bool:
        return self.status is UploadStatus.PERSISTED

    @property
    def failed(self) -> bool:
        return self.error is not None


# ---------------------------------------------------------------------------
# Upload helpers
# ---------------------------------------------------------------------------

UploadLike = Union[UploadedFile, Mapping[str, Any]]


class Upload:
    """
    Upload helper primitives. All methods are static; FileField takes the
    class (or any object with a compatible ``save``) as its storage.
    """

    remove_spaces = True

    @staticmethod
    def valid(file: Optional[UploadLike]) -> bool:
        """True when the payload is a complete upload structure with a known error code."""
        upload = UploadedFile.from_payload(file)
        return upload is not None and upload.error in UPLOAD_ERRORS

    @staticmethod
    def not_empty(file: Optional[UploadLike]) -> bool:
        """True when a file was actually submitted and its staged copy exists."""
        upload = UploadedFile.from_payload(file)
        if upload is None or upload.error != UPLOAD_ERR_OK or not upload.tmp_name:
            return False
        return os.path.isfile(upload.tmp_name)

    @staticmethod
    def type(file: UploadLike, allowed: Iterable[str]) -> bool:
        """
        Check the declared MIME type against the allowed types.

        Supports:
        - Exact match: "image/png"
        - Wildcard category: "image/*"
        - Universal: "*/*"
        """
        upload = UploadedFile.from_payload(file)
        if upload is None or upload.error != UPLOAD_ERR_OK:
            return False

        mime_type = upload.mime_type
        for entry in allowed:
            entry = entry.lower()
            if entry == "*/*" or entry == mime_type:
                return True
            if entry.endswith("/*") and mime_type.startswith(entry[:-1]):
                return True
        return False

    @staticmethod
    def size(file: UploadLike, max_bytes: int) -> bool:
        """True when the upload succeeded and is no larger than ``max_bytes``."""
        upload = UploadedFile.from_payload(file)
        if upload is None or upload.error != UPLOAD_ERR_OK:
            return False
        return upload.size <= max_bytes

    @classmethod
    def save(
        cls,
        file: UploadLike,
        filename: Optional[str] = None,
        directory: Optional[str] = None,
        chmod: Optional[int] = 0o644,
    ) -> Optional[str]:
        """
        Move a staged upload into ``directory``.

        A name already taken in the directory gets ``-1``, ``-2``, ... inserted
        before its extension.

        Returns:
            The absolute saved path with forward slashes, or None on failure.
        """
        try:
            return cls._save(file, filename, directory, chmod)
        except FileFieldStorageError as e:
            logger.warning(f"Upload not saved: {e.message}")
            return None

    @classmethod
    def _save(
        cls,
        file: UploadLike,
        filename: Optional[str],
        directory: Optional[str],
        chmod: Optional[int],
    ) -> str:
        upload = UploadedFile.from_payload(file)
        if upload is None or upload.error != UPLOAD_ERR_OK:
            raise FileFieldStorageError("Payload is not a successful upload")

        if filename is None:
            filename = os.path.basename(upload.name)
        if cls.remove_spaces:
            filename = "_".join(filename.split())
        if not filename:
            raise FileFieldStorageError("Empty destination filename")

        if directory is None or not os.path.isdir(directory) or not os.access(directory, os.W_OK):
            raise FileFieldStorageError(
                "Directory is missing or not writable",
                path=directory,
            )

        root = Path(directory).resolve()
        destination = cls._unique_destination(root / filename)
        if root not in destination.parents:
            raise FileFieldStorageError(
                f"Filename '{filename}' escapes the upload directory",
                path=str(root),
            )

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(upload.tmp_name, str(destination))
            if chmod is not None:
                os.chmod(destination, chmod)
        except OSError as e:
            raise FileFieldStorageError(
                f"Could not move {upload.tmp_name}: {e}",
                path=str(root),
                destination=str(destination),
            ) from e

        logger.debug(f"Saved upload {upload.name!r} to {destination}")
        return str(destination.resolve()).replace("\\", "/")

    @staticmethod
    def _unique_destination(destination: Path) -> Path:
        """Return ``destination`` or the first free ``stem-N.ext`` beside it."""
        destination = destination.resolve()
        if not destination.exists():
            return destination

        stem, ext = os.path.splitext(destination.name)
        counter = 1
        while True:
            candidate = destination.with_name(f"{stem}-{counter}{ext}")
            if not candidate.exists():
                return candidate
            counter += 1
