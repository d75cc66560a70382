from __future__ import annotations

from pathlib import Path

import pytest

from prakan_app.core import config as app_config


@pytest.fixture
def isolated_env(monkeypatch, tmp_path: Path) -> Path:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PRAKAN_ENCRYPTION_KEY", raising=False)
    monkeypatch.setattr(app_config, "_RUNTIME_ENV_LOADED", False)
    monkeypatch.setattr(app_config, "_project_root", lambda: tmp_path)
    return tmp_path


def test_encryption_key_loads_from_local_env_file(monkeypatch, isolated_env: Path) -> None:
    env_file = isolated_env / ".env.local"
    env_file.write_text("export PRAKAN_ENCRYPTION_KEY='enc-from-file'\n", encoding="utf-8")
    monkeypatch.setattr(app_config, "_iter_env_candidates", lambda: [env_file])

    assert app_config.ensure_encryption_key(app_config.AppConfig()) == "enc-from-file"


def test_encryption_key_bootstraps_runtime_env(monkeypatch, isolated_env: Path) -> None:
    monkeypatch.setattr(app_config, "_iter_env_candidates", lambda: [])

    key = app_config.ensure_encryption_key(app_config.AppConfig())

    runtime_env = isolated_env / "config" / "runtime.env"
    assert runtime_env.exists()
    assert f"PRAKAN_ENCRYPTION_KEY='{key}'" in runtime_env.read_text(encoding="utf-8")


def test_existing_storage_without_key_file_is_refused(monkeypatch, isolated_env: Path) -> None:
    monkeypatch.setattr(app_config, "_iter_env_candidates", lambda: [])
    storage = isolated_env / "data" / "prakan.db"
    storage.parent.mkdir()
    storage.write_bytes(b"")

    with pytest.raises(RuntimeError):
        app_config.ensure_encryption_key(app_config.AppConfig())


def test_disabled_encryption_returns_no_key(isolated_env: Path) -> None:
    config = app_config.AppConfig(encryption=app_config.EncryptionConfig(enabled=False))
    assert app_config.ensure_encryption_key(config) is None
    assert not (isolated_env / "config" / "runtime.env").exists()


def test_load_config_reads_yaml_and_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text(
        "storage:\n  path: custom.db\nview:\n  page_size: 20\nlogging:\n  level: debug\n",
        encoding="utf-8",
    )

    config = app_config.load_config(path)

    assert config.storage.path == "custom.db"
    assert config.storage.namespace == "insuranceData"
    assert config.view.page_size == 20
    assert 20 in config.view.page_size_options
    assert config.logging.level == "DEBUG"
    assert config.encryption.enabled is True


def test_load_config_missing_file_gives_defaults(tmp_path: Path) -> None:
    assert app_config.load_config(tmp_path / "missing.yaml") == app_config.AppConfig()


def test_load_config_rejects_non_mapping_section(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("storage: [1, 2]\n", encoding="utf-8")

    with pytest.raises(ValueError):
        app_config.load_config(path)


def test_existing_storage_with_key_file_missing_the_key_is_refused(monkeypatch, isolated_env: Path) -> None:
    runtime_env = isolated_env / "config" / "runtime.env"
    runtime_env.parent.mkdir()
    runtime_env.write_text("# restored from backup without keys\n", encoding="utf-8")
    monkeypatch.setattr(app_config, "_iter_env_candidates", lambda: [runtime_env])
    storage = isolated_env / "data" / "prakan.db"
    storage.parent.mkdir()
    storage.write_bytes(b"")

    with pytest.raises(RuntimeError):
        app_config.ensure_encryption_key(app_config.AppConfig())
    assert "PRAKAN_ENCRYPTION_KEY" not in runtime_env.read_text(encoding="utf-8")
