# src/config/settings.py - v2
"""Typed build configuration loaded from .env via pydantic-settings.

Replaces module-wide build constants with one explicit value passed to the
pipeline presets, the orchestrator and the servers. Relative paths are
resolved against project_root.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PRECACHE_PATTERNS = [
    "index.html",
    "./",
    "bower_components/webcomponentsjs/webcomponents-lite.min.js",
    "{elements,scripts,styles}/**/*.*",
]

DEFAULT_VENDOR_COMPONENTS = [
    "webcomponentsjs",
    "platinum-sw",
    "sw-toolbox",
    "promise-polyfill",
]


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Build settings loaded from .env file and environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Layout ===
    project_root: Path = Path(".")
    source_root: Path = Path("app")
    output_root: Path = Path("dist")
    tmp_root: Path = Path(".tmp")

    # === Execution ===
    concurrency_limit: int = 4
    stages: list[str] = []
    snapshot_path: Path | None = None

    # === Inputs ===
    required_files: list[str] = [".bowerrc"]
    vendor_components: list[str] = DEFAULT_VENDOR_COMPONENTS

    # === Cache manifest ===
    cache_config_enabled: bool = False
    cache_config_file: str = "cache-config.json"
    cache_id: str = ""
    cache_disabled: bool = False
    precache_patterns: list[str] = DEFAULT_PRECACHE_PATTERNS

    # === Servers ===
    dev_server_port: int = 5000
    dist_server_port: int = 5001

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("concurrency_limit")
    @classmethod
    def validate_concurrency_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError("concurrency_limit must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Cross-field rules: the three roots must be distinct."""
        errors: list[str] = []

        roots = {
            "SOURCE_ROOT": self.source_path,
            "OUTPUT_ROOT": self.output_path,
            "TMP_ROOT": self.tmp_path,
        }
        names = list(roots)
        for i, a in enumerate(names):
            for b in names[i + 1 :]:
                if roots[a] == roots[b]:
                    errors.append(f"{a} and {b} must differ ({roots[a]})")

        if self.output_path == self.project_path:
            errors.append("OUTPUT_ROOT must not be the project root")

        if self.dev_server_port == self.dist_server_port:
            errors.append("DEV_SERVER_PORT and DIST_SERVER_PORT must differ")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    def _resolve(self, path: Path) -> Path:
        path = Path(path).expanduser()
        if path.is_absolute():
            return path.resolve()
        return (Path(self.project_root).expanduser() / path).resolve()

    @property
    def project_path(self) -> Path:
        return Path(self.project_root).expanduser().resolve()

    @property
    def source_path(self) -> Path:
        return self._resolve(self.source_root)

    @property
    def output_path(self) -> Path:
        return self._resolve(self.output_root)

    @property
    def tmp_path(self) -> Path:
        return self._resolve(self.tmp_root)

    @property
    def snapshot_file(self) -> Path:
        """Snapshot store location; defaults to a file inside tmp_root."""
        if self.snapshot_path is not None:
            return self._resolve(self.snapshot_path)
        return self.tmp_path / ".assetforge-snapshots.json"


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
