"""
filefield FileField — a string column backed by an uploaded file.

During validation the field takes the upload payload submitted for its
name, checks it, saves it under ``path`` with a sanitized name and deletes
the record's previous file. The save step then stores the filename
relative to ``path`` in the column.

The column is a plain string in the database, so upload checks are not
added as ordinary rules: a record with no new upload (or a cleared
value) must still validate.

Usage:
    class Profile(Model):
        photo = FileField(path="/srv/media/photos", types={"image/png", "image/jpeg"})

    validation = profile.validate({"photo": request_files["photo"]})
    profile.save(validation)
"""

from __future__ import annotations

import logging
import os
import re
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from filefield.engine import logging as event_log
from filefield.engine.config import FileFieldOptions, get_settings
from filefield.engine.errors import FileFieldConfigError
from filefield.fields.base import Field
from filefield.upload import Upload, UploadedFile, UploadResult, UploadStatus
from filefield.validation import Validation

logger = logging.getLogger("filefield.fields.file")

_INVALID_CHARS = re.compile(r"[^a-z0-9\-.]")
_DASH_RUNS = re.compile(r"-{2,}")


def sanitize_filename(name: str) -> str:
    """
    Lowercase, replace anything outside ``[a-z0-9-.]`` with ``-`` and
    collapse runs of dashes.

        >>> sanitize_filename("My Photo!!.JPG")
        'my-photo-.jpg'
    """
    name = _INVALID_CHARS.sub("-", name.lower())
    return _DASH_RUNS.sub("-", name)


class FileField(Field):
    """Handles file uploads for a string column."""

    def __init__(
        self,
        path: Optional[str] = None,
        delete_old_file: bool = True,
        types: Optional[Iterable[str]] = None,
        default: Optional[str] = None,
        max_size: Optional[int] = None,
        chmod: Optional[int] = None,
        storage: Any = None,
        **kwargs: Any,
    ):
        try:
            options = FileFieldOptions(
                path=path,
                delete_old_file=delete_old_file,
                types=types,
                default=default,
                max_size=max_size,
                chmod=chmod,
            )
        except ValidationError as e:
            raise FileFieldConfigError(
                f"Invalid {self.__class__.__name__} options: {e}",
                path=path,
            ) from e

        super().__init__(default=options.default, **kwargs)
        self.delete_old_file = options.delete_old_file
        self.types = options.types
        self._max_size = options.max_size
        self._chmod = options.chmod
        self.storage = storage if storage is not None else Upload
        self.path = self.check_path(options.path)

    # -------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------

    def check_path(self, path: Optional[str]) -> str:
        """
        Check that ``path`` is an existing, writable directory.

        Returns:
            The absolute path with forward slashes and one trailing slash.
        """
        message = (
            f"{self.__class__.__name__} must have a `path` property set "
            f"that points to a writable directory"
        )
        if not path:
            raise FileFieldConfigError(message, path=path)

        resolved = os.path.realpath(path)
        if not os.path.isdir(resolved) or not os.access(resolved, os.W_OK):
            raise FileFieldConfigError(message, path=path)

        return resolved.replace("\\", "/").rstrip("/") + "/"

    @property
    def max_size(self) -> Optional[int]:
        """Size limit in bytes: the field option, else the global setting."""
        if self._max_size is not None:
            return self._max_size
        return get_settings().max_upload_bytes

    @property
    def chmod(self) -> int:
        if self._chmod is not None:
            return self._chmod
        return get_settings().storage.chmod

    # -------------------------------------------------------------------
    # Validation hook
    # -------------------------------------------------------------------

    def is_payload(self, value: Any) -> bool:
        # None or a string is a column value (e.g. "" clears the file)
        return not (value is None or isinstance(value, str))

    def validate(self, validation: Validation, model: Any) -> UploadResult:
        """
        Upload the submitted file, if any.

        Skips silently when the submission already has errors or no file
        was chosen. Rejections record ``upload.type`` / ``upload.size`` /
        ``upload.save`` on the validation.
        """
        result = self._upload(validation, model)
        validation.results[self.name] = result
        return result

    def _upload(self, validation: Validation, model: Any) -> UploadResult:
        if validation.errors():
            # Don't bother uploading
            return UploadResult(self.name, UploadStatus.SKIPPED)

        payload = validation.get(self.name)
        file = UploadedFile.from_payload(payload)
        if file is None or not Upload.valid(file) or not Upload.not_empty(file):
            return UploadResult(self.name, UploadStatus.SKIPPED)

        if self.types and not Upload.type(file, self.types):
            return self._reject(validation, file, UploadStatus.TYPE_REJECTED, "upload.type")

        max_size = self.max_size
        if max_size is not None and not Upload.size(file, max_size):
            return self._reject(validation, file, UploadStatus.SIZE_REJECTED, "upload.size")

        name = sanitize_filename(file.name)
        saved = self.storage.save(file, name, self.path, self.chmod)
        if not saved:
            return self._reject(validation, file, UploadStatus.SAVE_FAILED, "upload.save")

        filename = self.relative_filename(saved)

        # Garbage collect
        previous = model.original(self.name) if model is not None else None
        self.delete_previous_file(previous, self.path)

        logger.info(f"{self.ref}: saved {file.name!r} as {filename!r}")
        event_log.record(event_log.log_upload_event(
            self.ref,
            UploadStatus.PERSISTED.value,
            original_name=file.name,
            filename=filename,
            mime_type=file.mime_type,
            size=file.size,
        ))
        return UploadResult(self.name, UploadStatus.PERSISTED, filename=filename)

    def _reject(
        self,
        validation: Validation,
        file: UploadedFile,
        status: UploadStatus,
        reason: str,
    ) -> UploadResult:
        validation.error(self.name, reason)
        logger.warning(f"{self.ref}: upload {file.name!r} rejected ({reason})")
        event_log.record(event_log.log_upload_event(
            self.ref,
            status.value,
            original_name=file.name,
            mime_type=file.mime_type,
            size=file.size,
            error=reason,
        ))
        return UploadResult(self.name, status, error=reason)

    def relative_filename(self, saved_path: str) -> str:
        """Remove every occurrence of the configured directory from a saved path."""
        value = saved_path.replace("\\", "/").replace(self.path, "")
        return value.strip("/")

    # -------------------------------------------------------------------
    # Save hook
    # -------------------------------------------------------------------

    def save(self, model: Any, value: Any, loaded: bool, validation: Optional[Validation] = None) -> Any:
        """Return the new filename when this pass persisted one, else ``value``."""
        if validation is not None:
            result = validation.results.get(self.name)
            if result is not None and result.persisted:
                return result.filename
        return value

    # -------------------------------------------------------------------
    # Cleanup
    # -------------------------------------------------------------------

    def delete_previous_file(self, filename: Optional[str], path: str) -> bool:
        """
        Delete the file previously stored in the column.

        Never deletes the default file. Failures are logged, not raised.

        Returns:
            True if a file was removed.
        """
        if not self.delete_old_file or not filename or filename == self.default:
            return False

        target = path + filename
        if not os.path.exists(target):
            return False

        try:
            os.remove(target)
        except OSError as e:
            logger.warning(f"{self.ref}: could not delete old file {target}: {e}")
            event_log.record(event_log.log_cleanup_event(self.ref, target, False, error=str(e)))
            return False

        logger.info(f"{self.ref}: deleted old file {target}")
        event_log.record(event_log.log_cleanup_event(self.ref, target, True))
        return True
