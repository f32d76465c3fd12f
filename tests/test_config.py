"""Unit tests for filefield.engine.config — Settings, FileFieldOptions, loading."""

import pytest

from filefield.engine.config import (
    FileFieldOptions,
    LoggingConfig,
    Settings,
    get_settings,
    load_settings,
)


class TestSettings:
    def test_defaults(self):
        cfg = Settings()
        assert cfg.environment == "dev"
        assert cfg.uploads.max_upload_size_mb is None
        assert cfg.max_upload_bytes is None
        assert cfg.storage.chmod == 0o644
        assert cfg.logging.level == "INFO"
        assert cfg.logging.directory is None

    def test_invalid_environment(self):
        with pytest.raises(ValueError, match="dev/staging/prod"):
            Settings(environment="local")

    def test_max_upload_bytes(self):
        cfg = Settings(uploads={"max_upload_size_mb": 2})
        assert cfg.max_upload_bytes == 2 * 1024 * 1024

    def test_chmod_octal_string(self):
        assert Settings(storage={"chmod": "0600"}).storage.chmod == 0o600
        assert Settings(storage={"chmod": "0o640"}).storage.chmod == 0o640

    def test_logging_level_normalized(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_logging_level_invalid(self):
        with pytest.raises(ValueError):
            LoggingConfig(level="LOUD")


class TestLoadSettings:
    def test_missing_file_gives_defaults(self, tmp_path):
        cfg = load_settings(str(tmp_path / "nope.yaml"))
        assert cfg == Settings()

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "filefield.yaml"
        path.write_text(
            "environment: prod\n"
            "uploads:\n"
            "  max_upload_size_mb: 5\n"
            "storage:\n"
            "  chmod: '0640'\n"
            "logging:\n"
            "  level: warning\n"
            "  directory: logs\n",
            encoding="utf-8",
        )
        cfg = load_settings(str(path))
        assert cfg.environment == "prod"
        assert cfg.uploads.max_upload_size_mb == 5
        assert cfg.storage.chmod == 0o640
        assert cfg.logging.level == "WARNING"
        assert cfg.logging.directory == "logs"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "filefield.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(str(path)) == Settings()

    def test_get_settings_discovers_from_cwd(self, tmp_path):
        # conftest chdirs into tmp_path
        (tmp_path / "filefield.yaml").write_text("environment: staging\n", encoding="utf-8")
        assert get_settings().environment == "staging"

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()


class TestFileFieldOptions:
    def test_defaults(self):
        opts = FileFieldOptions(path="/tmp")
        assert opts.delete_old_file is True
        assert opts.types == set()
        assert opts.default is None
        assert opts.max_size is None

    def test_types_normalized(self):
        opts = FileFieldOptions(types=["Image/PNG ", "image/jpeg", ""])
        assert opts.types == {"image/png", "image/jpeg"}

    def test_single_type_string(self):
        assert FileFieldOptions(types="image/gif").types == {"image/gif"}

    def test_negative_max_size_rejected(self):
        with pytest.raises(ValueError):
            FileFieldOptions(max_size=-1)
