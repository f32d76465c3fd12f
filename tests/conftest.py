"""
filefield Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import pytest


@pytest.fixture(autouse=True)
def _isolate_globals(monkeypatch, tmp_path):
    """Reset settings and event log singletons, and keep settings discovery inside tmp_path."""
    import filefield.engine.config as cfg_mod
    import filefield.engine.logging as log_mod

    monkeypatch.chdir(tmp_path)
    cfg_mod._settings = None
    log_mod._event_log = None
    yield
    cfg_mod._settings = None
    log_mod._event_log = None


@pytest.fixture
def upload_dir(tmp_path) -> Path:
    """Writable directory files are saved into."""
    d = tmp_path / "media"
    d.mkdir()
    return d


@pytest.fixture
def staging_dir(tmp_path) -> Path:
    """Where the multipart layer would stage temporary files."""
    d = tmp_path / "staging"
    d.mkdir()
    return d


@pytest.fixture
def make_upload(staging_dir):
    """
    Factory for upload payloads backed by a real staged temp file.

        payload = make_upload("My Photo!!.JPG", "image/jpeg", b"...")
    """
    counter = {"n": 0}

    def _make(
        name: str = "photo.png",
        type: str = "image/png",
        content: bytes = b"\x89PNG fake image data",
        error: int = 0,
        size: int | None = None,
    ) -> Dict[str, Any]:
        counter["n"] += 1
        tmp = staging_dir / f"upload_{counter['n']}.tmp"
        tmp.write_bytes(content)
        return {
            "name": name,
            "type": type,
            "size": len(content) if size is None else size,
            "tmp_name": str(tmp),
            "error": error,
        }

    return _make
