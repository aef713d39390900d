"""Unit tests for configuration defaults and overrides."""

from __future__ import annotations

from pathlib import Path

import platformdirs
import pytest
from pydantic import ValidationError

from appledocs.config import _DEFAULT_CONFIG_DIR, CacheSettings, SampleSettings, Settings


class TestDefaults:
    def test_default_config_dir_matches_platformdirs(self) -> None:
        assert platformdirs.user_config_dir("appledocs") == _DEFAULT_CONFIG_DIR

    def test_cache_defaults(self) -> None:
        settings = CacheSettings()
        assert settings.enabled is True
        assert settings.register_resources is True
        assert settings.max_cache_size == 1000
        assert settings.auto_evict is True

    def test_negative_cache_size_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CacheSettings(max_cache_size=-1)

    def test_sample_defaults(self) -> None:
        settings = SampleSettings()
        assert settings.directory == Path(platformdirs.user_documents_dir()) / "AppleSampleCode"
        assert settings.max_download_bytes == 200 * 1024 * 1024
        assert settings.max_extracted_bytes == 1024 * 1024 * 1024


class TestEnvironmentOverrides:
    def test_nested_env_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APPLEDOCS__CACHE__MAX_CACHE_SIZE", "5")
        monkeypatch.setenv("APPLEDOCS__CACHE__AUTO_EVICT", "false")
        monkeypatch.setenv("APPLEDOCS__SERVER__TRANSPORT", "http")
        settings = Settings()
        assert settings.cache.max_cache_size == 5
        assert settings.cache.auto_evict is False
        assert settings.server.transport == "http"

    def test_sample_env_vars(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("APPLEDOCS__SAMPLES__DIRECTORY", str(tmp_path))
        monkeypatch.setenv("APPLEDOCS__SAMPLES__MAX_DOWNLOAD_BYTES", "1024")
        settings = Settings()
        assert settings.samples.directory == tmp_path
        assert settings.samples.max_download_bytes == 1024

    def test_constructor_args_win(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APPLEDOCS__LOGGING__LEVEL", "ERROR")
        settings = Settings(logging={"level": "DEBUG"})
        assert settings.logging.level == "DEBUG"
