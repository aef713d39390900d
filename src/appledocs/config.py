"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (APPLEDOCS__CACHE__MAX_CACHE_SIZE=500)
  2. appledocs.yaml         (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional; every field has a default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_CONFIG_DIR = platformdirs.user_config_dir("appledocs")


def _find_config_file() -> str | None:
    """Return the path of the first appledocs.yaml found, or None."""
    candidates = [
        Path("appledocs.yaml"),
        Path(_DEFAULT_CONFIG_DIR) / "appledocs.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    transport: Literal["stdio", "http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 8080
    # Browser Origin hosts accepted by the HTTP transport
    allowed_origin_hosts: list[str] = ["localhost", "127.0.0.1"]


class CacheSettings(BaseModel):
    enabled: bool = True
    register_resources: bool = True
    max_cache_size: int = Field(default=1000, ge=0)  # 0 = unlimited
    auto_evict: bool = True


class FetcherSettings(BaseModel):
    timeout_seconds: float = 30.0
    max_reference_depth: int = Field(default=2, ge=0)
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    )


class SampleSettings(BaseModel):
    # Archives are unpacked into <directory>/<sample name>
    directory: Path = Path(platformdirs.user_documents_dir()) / "AppleSampleCode"
    max_download_bytes: int = Field(default=200 * 1024 * 1024, ge=1)
    max_extracted_bytes: int = Field(default=1024 * 1024 * 1024, ge=1)


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: APPLEDOCS__SERVER__PORT=9090
        env_prefix="APPLEDOCS__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    cache: CacheSettings = CacheSettings()
    fetcher: FetcherSettings = FetcherSettings()
    samples: SampleSettings = SampleSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
