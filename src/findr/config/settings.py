"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. YAML config file (if specified)
  2. Environment variables (FINDR_ prefix)
  3. Default values
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from findr.core.sorting import SortOrder

DEFAULT_CACHE_TTL_MS = 1000 * 60 * 60 * 24
CACHE_FILENAME = "search-cache.json"


class ServerSettings(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="127.0.0.1", description="Server bind address")
    port: int = Field(default=8080, description="Server port")
    workers: int = Field(default=1, description="Number of worker processes")
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")


class CacheSettings(BaseModel):
    """Result cache configuration.

    The cache file location is resolved as: ``file`` if set, else
    ``dir / filename`` if ``dir`` is set, else the platform cache directory.
    """

    enabled: bool = Field(default=True, description="Whether provider results are cached")
    file: Path | None = Field(default=None, description="Explicit cache file path")
    dir: Path | None = Field(default=None, description="Directory holding the cache file")
    filename: str = Field(default=CACHE_FILENAME, description="Cache file name inside the cache directory")
    ttl_ms: int = Field(
        default=DEFAULT_CACHE_TTL_MS,
        ge=0,
        description="Entry time-to-live in milliseconds (0 disables expiry)",
    )

    def resolve_path(self) -> Path:
        """Resolve the cache file path."""
        if self.file is not None:
            return self.file.expanduser()
        if self.dir is not None:
            return self.dir.expanduser() / self.filename
        return _platform_cache_dir() / self.filename


def _platform_cache_dir() -> Path:
    home = Path.home()
    if sys.platform == "darwin":
        return home / "Library" / "Caches" / "findr"
    if sys.platform == "win32":
        local_app_data = os.environ.get("LOCALAPPDATA")
        base = Path(local_app_data) if local_app_data else home / "AppData" / "Local"
        return base / "findr" / "Cache"
    return home / ".cache" / "findr"


_FLAT_CACHE_ENV = {
    "FINDR_CACHE_FILE": "file",
    "FINDR_CACHE_DIR": "dir",
    "FINDR_CACHE_TTL_MS": "ttl_ms",
}


class FlatCacheEnvSource(PydanticBaseSettingsSource):
    """Reads the single-underscore cache variables into the ``cache`` section.

    Ranked below the regular environment source, so ``FINDR_CACHE__FILE``
    and friends win when both forms are set.
    """

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        cache = {key: os.environ[name] for name, key in _FLAT_CACHE_ENV.items() if os.environ.get(name)}
        return {"cache": cache} if cache else {}


class ProviderConfig(BaseModel):
    """Configuration for a single search provider."""

    enabled: bool | None = Field(default=None, description="Override the provider's enabled-by-default flag")
    extra: dict[str, Any] = Field(default_factory=dict, description="Provider constructor keyword arguments")


class SearchSettings(BaseModel):
    """Search behavior configuration."""

    default_sort: SortOrder = Field(default=SortOrder.RELEVANCE, description="Sort order when a request gives none")
    default_limit: int | None = Field(default=None, ge=1, description="Result-count hint when a request gives none")
    providers: dict[str, ProviderConfig] = Field(
        default_factory=lambda: {"mock": ProviderConfig()},
        description="Providers to register at startup, keyed by provider id",
    )
    enabled_providers: list[str] | None = Field(
        default=None,
        description="If set, exactly these provider ids are enabled at startup",
    )

    @field_validator("enabled_providers", mode="before")
    @classmethod
    def _parse_enabled(cls, v: Any) -> Any:
        """Accept a comma-separated string (env var) as well as a list."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="console", description="Log format: json, console")


class Settings(BaseSettings):
    """Root application settings.

    Configuration is loaded from environment variables with the FINDR_ prefix.
    Nested settings use double underscores.

    Example:
        FINDR_CACHE__FILE=/tmp/findr/cache.json
        FINDR_CACHE__DIR=/var/cache/findr
        FINDR_CACHE__TTL_MS=0
        FINDR_SEARCH__ENABLED_PROVIDERS='["mock"]'

    The cache section also accepts ``FINDR_CACHE_FILE``, ``FINDR_CACHE_DIR``
    and ``FINDR_CACHE_TTL_MS``.
    """

    model_config = {
        "env_prefix": "FINDR_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    app_name: str = Field(default="findr", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    server: ServerSettings = Field(default_factory=ServerSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            FlatCacheEnvSource(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values from the YAML file are passed as init arguments, so they take
        precedence over environment variables.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)
