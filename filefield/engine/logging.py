"""
filefield Logging — stdlib loggers plus an optional structured JSONL event log.

Implements:
- LogEntry / FileLogger: per-category JSONL files with daily rotation
  {log_dir}/{category}/{YYYY-MM-DD}.jsonl
- Entry builders for upload and cleanup events
- Global event log singleton (init_event_log / record / shutdown_event_log)

Regular diagnostic messages go through ``logging.getLogger("filefield.*")``.
The event log is only written when it has been initialised.
"""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger("filefield.engine.logging")

CATEGORIES = ("uploads", "cleanup")


class LogEntry:
    """A structured log entry destined for a category file."""

    __slots__ = ("category", "data")

    def __init__(self, category: str, data: Dict[str, Any]):
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Writes structured JSON log entries to per-category files.

    Thread-safe — uses a lock per file path.
    """

    def __init__(self, log_dir: str = "logs"):
        self._log_dir = Path(log_dir)
        self._file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        for cat in CATEGORIES:
            (self._log_dir / cat).mkdir(parents=True, exist_ok=True)

    def write(self, entry: LogEntry) -> None:
        """Append a single log entry to today's file for its category."""
        if entry.category not in CATEGORIES:
            raise ValueError(f"Unknown log category '{entry.category}'")
        file_path = self._resolve_path(entry.category)
        key = str(file_path)

        with self._file_locks[key]:
            with open(file_path, "a", encoding="utf-8") as f:
                f.write(entry.to_json())
                f.write("\n")

    def _resolve_path(self, category: str, day: Optional[date] = None) -> Path:
        day = day or date.today()
        return self._log_dir / category / f"{day.isoformat()}.jsonl"

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def query(
        self,
        category: str,
        *,
        days: int = 7,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 500,
    ) -> List[Dict[str, Any]]:
        """
        Read entries of a category from the last ``days`` days, oldest first.

        ``filters`` keeps only entries whose top-level keys equal all given values.
        """
        results: List[Dict[str, Any]] = []
        start = date.today() - timedelta(days=days)
        current = start
        while current <= date.today() and len(results) < limit:
            path = self._resolve_path(category, current)
            if path.exists():
                results.extend(self._read_jsonl(path, filters, limit - len(results)))
            current += timedelta(days=1)
        return results

    @staticmethod
    def _read_jsonl(
        path: Path,
        filters: Optional[Dict[str, Any]],
        remaining: int,
    ) -> List[Dict[str, Any]]:
        entries: List[Dict[str, Any]] = []
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        data = json.loads(line)
                    except json.JSONDecodeError:
                        continue
                    if filters and not all(data.get(k) == v for k, v in filters.items()):
                        continue
                    entries.append(data)
                    if len(entries) >= remaining:
                        break
        except OSError as exc:
            logger.warning("Could not read log file %s: %s", path, exc)
        return entries


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(event: str, level: str, field_ref: str, **extra: Any) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
        "field": field_ref,
    }
    entry.update({k: v for k, v in extra.items() if v is not None})
    return entry


def log_upload_event(
    field_ref: str,
    status: str,
    original_name: Optional[str] = None,
    filename: Optional[str] = None,
    mime_type: Optional[str] = None,
    size: Optional[int] = None,
    error: Optional[str] = None,
) -> LogEntry:
    """Build an upload outcome entry (persisted or rejected)."""
    data = _base_entry(
        event="upload_" + status,
        level="INFO" if error is None else "WARNING",
        field_ref=field_ref,
        status=status,
        original_name=original_name,
        filename=filename,
        mime_type=mime_type,
        size=size,
        error=error,
    )
    return LogEntry("uploads", data)


def log_cleanup_event(
    field_ref: str,
    path: str,
    deleted: bool,
    error: Optional[str] = None,
) -> LogEntry:
    """Build an old-file cleanup entry."""
    data = _base_entry(
        event="old_file_deleted" if deleted else "old_file_delete_failed",
        level="INFO" if deleted else "WARNING",
        field_ref=field_ref,
        path=path,
        deleted=deleted,
        error=error,
    )
    return LogEntry("cleanup", data)


# ---------------------------------------------------------------------------
# Global event log
# ---------------------------------------------------------------------------

_event_log: Optional[FileLogger] = None


def init_event_log(log_dir: str) -> FileLogger:
    """Initialize the global event log under ``log_dir``."""
    global _event_log
    _event_log = FileLogger(log_dir=log_dir)
    logger.info("Upload event log initialised at %s", log_dir)
    return _event_log


def get_event_log() -> Optional[FileLogger]:
    return _event_log


def record(entry: LogEntry) -> bool:
    """Write an entry to the global event log. Returns False when none is configured."""
    if _event_log is None:
        return False
    try:
        _event_log.write(entry)
    except OSError as e:
        logger.error(f"Event log write failed: {e}")
        return False
    return True


def shutdown_event_log() -> None:
    global _event_log
    _event_log = None


def configure_logging(settings=None) -> Optional[FileLogger]:
    """
    Apply logging settings: set the ``filefield`` logger level and, when
    ``logging.directory`` is configured, initialise the event log.
    """
    if settings is None:
        from filefield.engine.config import get_settings
        settings = get_settings()

    logging.getLogger("filefield").setLevel(settings.logging.level)
    if settings.logging.directory:
        return init_event_log(settings.logging.directory)
    return None
