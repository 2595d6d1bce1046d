# src/tasktracker/config.py

"""Settings loaded from an optional YAML file, environment variables and a local .env.

Design goals:
- One Settings object, built once at startup and passed explicitly to the store and the app.
- Env vars override the YAML file, which overrides built-in defaults.
- No secrets required at import time and no module-level settings instance.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import find_dotenv, load_dotenv

ENV_PREFIX = "TASKS"

BACKENDS = ("memory", "sqlite")


class ConfigError(ValueError):
    """Raised when settings cannot be loaded or contain invalid values."""


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str) -> str:
    v = os.getenv(name)
    return default if v is None or v.strip() == "" else v.strip()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text("utf-8"))
    except OSError as e:
        raise ConfigError(f"failed to read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse config file {path}: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"config file {path} must contain a mapping at top level")
    return raw


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    sec = data.get(name) or {}
    if not isinstance(sec, Mapping):
        raise ConfigError(f"config section {name!r} must be a mapping")
    return sec


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    log_dir: Path
    log_to_file: bool

    # ---- HTTP server ----
    listen_address: str
    port: int
    read_timeout_s: float
    write_timeout_s: float

    # ---- Storage ----
    backend: str
    sqlite_path: Path
    sqlite_timeout_s: float

    @staticmethod
    def defaults() -> "Settings":
        return Settings(
            app_name="tasktracker",
            log_level="INFO",
            log_dir=Path(".local/tasktracker"),
            log_to_file=True,
            listen_address="127.0.0.1",
            port=8080,
            read_timeout_s=5.0,
            write_timeout_s=10.0,
            backend="memory",
            sqlite_path=Path(".local/tasktracker/tasks.sqlite3"),
            sqlite_timeout_s=30.0,
        )

    @staticmethod
    def from_mapping(data: Mapping[str, Any], base: "Settings | None" = None) -> "Settings":
        """Overlay the YAML layout (app / http_server / storage sections) onto base."""
        b = base or Settings.defaults()
        app = _section(data, "app")
        http = _section(data, "http_server")
        storage = _section(data, "storage")
        try:
            return Settings(
                app_name=str(app.get("name", b.app_name)),
                log_level=str(app.get("log_level", b.log_level)),
                log_dir=Path(app.get("log_dir", b.log_dir)).expanduser(),
                log_to_file=bool(app.get("log_to_file", b.log_to_file)),
                listen_address=str(http.get("listen_address", b.listen_address)),
                port=int(http.get("port", b.port)),
                read_timeout_s=float(http.get("read_timeout_s", b.read_timeout_s)),
                write_timeout_s=float(http.get("write_timeout_s", b.write_timeout_s)),
                backend=str(storage.get("backend", b.backend)),
                sqlite_path=Path(storage.get("sqlite_path", b.sqlite_path)).expanduser(),
                sqlite_timeout_s=float(storage.get("sqlite_timeout_s", b.sqlite_timeout_s)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid config value: {e}") from e

    @staticmethod
    def from_env(base: "Settings | None" = None) -> "Settings":
        b = base or Settings.defaults()
        log_dir = _env_path(_k("LOG_DIR"), b.log_dir)
        return Settings(
            app_name=_env(_k("APP_NAME"), b.app_name),
            log_level=_env(_k("LOG_LEVEL"), b.log_level).upper(),
            log_dir=log_dir,
            log_to_file=_env_bool(_k("LOG_TO_FILE"), b.log_to_file),
            listen_address=_env(_k("LISTEN_ADDRESS"), b.listen_address),
            port=_env_int(_k("PORT"), b.port),
            read_timeout_s=_env_float(_k("READ_TIMEOUT_S"), b.read_timeout_s),
            write_timeout_s=_env_float(_k("WRITE_TIMEOUT_S"), b.write_timeout_s),
            backend=_env(_k("BACKEND"), b.backend).lower(),
            sqlite_path=_env_path(_k("SQLITE_PATH"), b.sqlite_path),
            sqlite_timeout_s=_env_float(_k("SQLITE_TIMEOUT_S"), b.sqlite_timeout_s),
        )

    def validate(self) -> "Settings":
        if self.backend not in BACKENDS:
            raise ConfigError(f"unknown storage backend {self.backend!r}; expected one of {BACKENDS}")
        if not 0 < self.port < 65536:
            raise ConfigError(f"port out of range: {self.port}")
        if self.read_timeout_s <= 0 or self.write_timeout_s <= 0:
            raise ConfigError("HTTP timeouts must be positive")
        if self.sqlite_timeout_s <= 0:
            raise ConfigError("sqlite_timeout_s must be positive")
        return self


def load_settings(config_path: str | Path | None = None, *, use_dotenv: bool = True) -> Settings:
    """
    Build Settings: defaults <- YAML file (if given) <- environment (TASKS_*).

    Call once at startup and pass the result around explicitly.
    """
    if use_dotenv:
        load_dotenv(find_dotenv(usecwd=True), override=False)

    settings = Settings.defaults()
    if config_path is not None:
        settings = Settings.from_mapping(_read_yaml(Path(config_path)), settings)
    return Settings.from_env(settings).validate()
