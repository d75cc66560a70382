"""Configuration loader for storage, encryption, view and logging settings."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from prakan_app.core.crypto import CryptoService


@dataclass(frozen=True)
class StorageConfig:
    path: str = "data/prakan.db"
    namespace: str = "insuranceData"


@dataclass(frozen=True)
class EncryptionConfig:
    enabled: bool = True
    key_env: str = "PRAKAN_ENCRYPTION_KEY"


@dataclass(frozen=True)
class ViewConfig:
    page_size: int = 10
    page_size_options: tuple[int, ...] = (10, 25, 50, 100)


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    directory: str = "logs"
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 5


@dataclass(frozen=True)
class AppConfig:
    storage: StorageConfig = field(default_factory=StorageConfig)
    encryption: EncryptionConfig = field(default_factory=EncryptionConfig)
    view: ViewConfig = field(default_factory=ViewConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


DEFAULT_CONFIG_REL_PATH = Path("config/settings.yaml")
DEFAULT_ENCRYPTION_KEY_ENV = "PRAKAN_ENCRYPTION_KEY"
RUNTIME_ENV_REL_PATH = Path("config/runtime.env")
_RUNTIME_ENV_LOADED = False


def _project_root() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[3]


def _split_key_value(raw_line: str) -> tuple[str, str] | None:
    """Parse a shell or PowerShell key assignment line."""
    line = raw_line.strip()
    if not line or line.startswith("#"):
        return None

    for prefix in ("$env:", "export "):
        if line.startswith(prefix):
            line = line[len(prefix) :]
            break

    if "=" not in line:
        return None

    key, value = (part.strip() for part in line.split("=", 1))
    if not key:
        return None
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        value = value[1:-1]
    return key, value


def _iter_env_candidates() -> list[Path]:
    """Return files that may hold runtime keys, most specific first."""
    seen: set[Path] = set()
    candidates: list[Path] = []
    for root in (Path.cwd(), _project_root()):
        for name in (Path(".env.local"), RUNTIME_ENV_REL_PATH):
            resolved = (root / name).resolve()
            if resolved not in seen:
                seen.add(resolved)
                candidates.append(resolved)
    return candidates


def _load_env_from_file(path: Path) -> None:
    """Copy KEY=VALUE lines into os.environ without overriding existing keys."""
    if not path.is_file():
        return
    with path.open("r", encoding="utf-8") as file:
        for line in file:
            parsed = _split_key_value(line)
            if parsed and parsed[0] not in os.environ:
                os.environ[parsed[0]] = parsed[1]


def _ensure_runtime_env_loaded() -> None:
    """Load local env files once per process."""
    global _RUNTIME_ENV_LOADED
    if _RUNTIME_ENV_LOADED:
        return
    for path in _iter_env_candidates():
        _load_env_from_file(path)
    _RUNTIME_ENV_LOADED = True


def _runtime_env_path() -> Path:
    return _project_root() / RUNTIME_ENV_REL_PATH


def _storage_exists(storage_path: str) -> bool:
    path = Path(storage_path)
    if not path.is_absolute():
        path = Path.cwd() / path
    return path.exists()


def ensure_encryption_key(config: AppConfig) -> str | None:
    """Return the blob encryption key, generating one on first run.

    A storage file without its key means the data can no longer be decrypted,
    so that case is an error instead of a fresh key.
    """
    if not config.encryption.enabled:
        return None

    _ensure_runtime_env_loaded()
    key_env = config.encryption.key_env
    existing = os.getenv(key_env)
    if existing:
        return existing

    runtime_env = _runtime_env_path()
    if _storage_exists(config.storage.path):
        raise RuntimeError(
            f"Storage file exists but no {key_env} was found. "
            f"Restore it in {RUNTIME_ENV_REL_PATH} or the environment."
        )

    generated = CryptoService.generate_base64_key()
    os.environ[key_env] = generated
    runtime_env.parent.mkdir(parents=True, exist_ok=True)
    with runtime_env.open("a", encoding="utf-8") as file:
        file.write(f"{key_env}='{generated}'\n")
    return generated


def resolve_default_config_path() -> Path:
    """Resolve the YAML path for source and packaged execution."""
    env_path = os.getenv("PRAKAN_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    candidates: list[Path] = []
    if getattr(sys, "frozen", False):
        candidates.append(Path(sys.executable).resolve().parent / DEFAULT_CONFIG_REL_PATH)
    candidates.append(Path.cwd() / DEFAULT_CONFIG_REL_PATH)
    candidates.append(Path(__file__).resolve().parents[3] / DEFAULT_CONFIG_REL_PATH)

    for candidate in candidates:
        if candidate.exists():
            return candidate
    return candidates[0]


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{name}' must be a mapping.")
    return value


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load the app configuration from YAML, falling back to defaults."""
    path = config_path or resolve_default_config_path()
    if not path.exists():
        return AppConfig()

    with path.open("r", encoding="utf-8") as file:
        raw = yaml.safe_load(file) or {}

    storage = _section(raw, "storage")
    encryption = _section(raw, "encryption")
    view = _section(raw, "view")
    logging_raw = _section(raw, "logging")

    defaults = AppConfig()
    page_size_options = tuple(
        int(size) for size in view.get("page_size_options", defaults.view.page_size_options)
    )
    page_size = int(view.get("page_size", defaults.view.page_size))
    if page_size not in page_size_options:
        page_size_options = tuple(sorted({*page_size_options, page_size}))

    return AppConfig(
        storage=StorageConfig(
            path=str(storage.get("path", defaults.storage.path)),
            namespace=str(storage.get("namespace", defaults.storage.namespace)),
        ),
        encryption=EncryptionConfig(
            enabled=bool(encryption.get("enabled", defaults.encryption.enabled)),
            key_env=str(encryption.get("key_env", DEFAULT_ENCRYPTION_KEY_ENV)),
        ),
        view=ViewConfig(page_size=page_size, page_size_options=page_size_options),
        logging=LoggingConfig(
            level=str(logging_raw.get("level", defaults.logging.level)).upper(),
            directory=str(logging_raw.get("directory", defaults.logging.directory)),
            max_bytes=int(logging_raw.get("max_bytes", defaults.logging.max_bytes)),
            backup_count=int(logging_raw.get("backup_count", defaults.logging.backup_count)),
        ),
    )
