"""Configuration loader for database, encryption, and logging settings."""

from __future__ import annotations

import os
import secrets
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from agent_crm.core.crypto import CryptoService


@dataclass(frozen=True)
class DatabaseConfig:
    path: str
    key_env: str
    allow_sqlite_fallback: bool


@dataclass(frozen=True)
class EncryptionConfig:
    key_env: str


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    file: str | None = None
    retention_days: int = 1095


@dataclass(frozen=True)
class AppConfig:
    database: DatabaseConfig
    encryption: EncryptionConfig
    logging: LoggingConfig


DEFAULT_CONFIG_REL_PATH = Path("config/crm.yaml")
DEFAULT_DB_KEY_ENV = "AGENT_CRM_DB_KEY"
DEFAULT_ENCRYPTION_KEY_ENV = "AGENT_CRM_ENCRYPTION_KEY"
CONFIG_PATH_ENV = "AGENT_CRM_CONFIG_PATH"
RUNTIME_ENV_REL_PATH = Path("config/runtime.env")
DEFAULT_DB_FILENAME = "agent_crm.db"
_RUNTIME_ENV_LOADED = False


def _project_root() -> Path:
    """Return the executable dir when frozen, else the source checkout root."""
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[3]


def _unique_paths(paths: list[Path]) -> list[Path]:
    unique: list[Path] = []
    seen: set[Path] = set()
    for path in paths:
        resolved = path.resolve()
        if resolved not in seen:
            seen.add(resolved)
            unique.append(resolved)
    return unique


def _split_key_value(raw_line: str) -> tuple[str, str] | None:
    """Parse ``KEY=VALUE``, ``export KEY=VALUE`` or ``$env:KEY=VALUE`` lines."""
    line = raw_line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None

    for prefix in ("$env:", "export "):
        if line.startswith(prefix):
            line = line[len(prefix) :]
            break

    key, value = (part.strip() for part in line.split("=", 1))
    if not key:
        return None
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        value = value[1:-1]
    return key, value


def _iter_env_candidates() -> list[Path]:
    """Return files that may hold runtime keys, most specific first."""
    roots = [Path.cwd(), _project_root()]
    paths: list[Path] = []
    for root in roots:
        paths.extend([root / ".env.local", root / RUNTIME_ENV_REL_PATH])
    return _unique_paths(paths)


def _load_env_from_file(path: Path) -> None:
    """Copy KEY=VALUE lines into the process environment without overriding."""
    if not path.is_file():
        return
    with path.open("r", encoding="utf-8") as file:
        for line in file:
            parsed = _split_key_value(line)
            if parsed and parsed[0] not in os.environ:
                os.environ[parsed[0]] = parsed[1]


def _runtime_root() -> Path:
    return _project_root()


def _ensure_runtime_env_loaded() -> None:
    global _RUNTIME_ENV_LOADED
    if _RUNTIME_ENV_LOADED:
        return
    for path in _iter_env_candidates():
        _load_env_from_file(path)
    _RUNTIME_ENV_LOADED = True


def _existing_db_candidates(config_db_path: str | None) -> list[Path]:
    candidates = [_runtime_root() / DEFAULT_DB_FILENAME, Path.cwd() / DEFAULT_DB_FILENAME]
    if config_db_path:
        db_path = Path(config_db_path)
        candidates.append(db_path if db_path.is_absolute() else Path.cwd() / db_path)
    return _unique_paths(candidates)


def _bootstrap_default_keys_if_needed(config_db_path: str | None = None) -> None:
    """Generate and persist keys on first run; refuse when a DB exists without them."""
    db_key = os.getenv(DEFAULT_DB_KEY_ENV)
    encryption_key = os.getenv(DEFAULT_ENCRYPTION_KEY_ENV)
    if db_key and encryption_key:
        return

    runtime_env = _runtime_root() / RUNTIME_ENV_REL_PATH
    if any(path.exists() for path in _existing_db_candidates(config_db_path)) and not runtime_env.exists():
        raise RuntimeError(
            "Runtime key file is missing while database file exists. "
            f"Restore key file or set {DEFAULT_DB_KEY_ENV}/{DEFAULT_ENCRYPTION_KEY_ENV}."
        )

    db_key = db_key or secrets.token_urlsafe(48)
    encryption_key = encryption_key or CryptoService.generate_base64_key()
    os.environ[DEFAULT_DB_KEY_ENV] = db_key
    os.environ[DEFAULT_ENCRYPTION_KEY_ENV] = encryption_key

    runtime_env.parent.mkdir(parents=True, exist_ok=True)
    runtime_env.write_text(
        f"{DEFAULT_DB_KEY_ENV}='{db_key}'\n{DEFAULT_ENCRYPTION_KEY_ENV}='{encryption_key}'\n",
        encoding="utf-8",
    )


def ensure_runtime_keys(config_db_path: str | None = None) -> None:
    """Ensure runtime keys are loaded or bootstrapped for a configured DB path."""
    _ensure_runtime_env_loaded()
    _bootstrap_default_keys_if_needed(config_db_path)


def resolve_default_config_path() -> Path:
    """Resolve configuration path for source and packaged execution."""
    env_path = os.getenv(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path)

    candidates = [Path.cwd() / DEFAULT_CONFIG_REL_PATH, _project_root() / DEFAULT_CONFIG_REL_PATH]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return candidates[0]


def parse_config(raw: dict[str, Any]) -> AppConfig:
    """Build an AppConfig from the YAML mapping."""
    db = raw["db"]
    log = raw.get("logging") or {}
    return AppConfig(
        database=DatabaseConfig(
            path=str(db["path"]),
            key_env=str(db.get("key_env", DEFAULT_DB_KEY_ENV)),
            allow_sqlite_fallback=bool(db.get("allow_sqlite_fallback", False)),
        ),
        encryption=EncryptionConfig(
            key_env=str(raw["encryption"].get("key_env", DEFAULT_ENCRYPTION_KEY_ENV)),
        ),
        logging=LoggingConfig(
            level=str(log.get("level", "INFO")).upper(),
            file=log.get("file") or None,
            retention_days=int(log.get("retention_days", 1095)),
        ),
    )


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load the app configuration from YAML."""
    path = config_path or resolve_default_config_path()
    with path.open("r", encoding="utf-8") as file:
        raw = yaml.safe_load(file) or {}
    return parse_config(raw)


def get_required_env(name: str) -> str:
    """Return a required environment variable or raise a clear error."""
    _ensure_runtime_env_loaded()
    if name in {DEFAULT_DB_KEY_ENV, DEFAULT_ENCRYPTION_KEY_ENV}:
        _bootstrap_default_keys_if_needed()
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Required environment variable is missing: {name}")
    return value
