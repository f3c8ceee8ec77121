from __future__ import annotations

import importlib
import json

import pytest

import settings
from core.models import Channel


@pytest.fixture
def reload_settings(monkeypatch):
    def reload():
        return importlib.reload(settings)

    yield reload
    monkeypatch.undo()
    importlib.reload(settings)


def _write_config(directory, **sections) -> None:
    (directory / "config.json").write_text(json.dumps(sections), encoding="utf-8")


def test_config_is_read_from_working_directory(tmp_path, monkeypatch, reload_settings) -> None:
    _write_config(tmp_path, database={"path": "data/updates.db"}, chains={"primary": "base"})
    monkeypatch.delenv("DIFFSCOPE_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)

    loaded = reload_settings()

    assert loaded.CONFIG_PATH == str(tmp_path / "config.json")
    assert loaded.DB_PATH == str(tmp_path / "data" / "updates.db")
    assert loaded.PRIMARY_CHAIN == "base"


def test_environment_variable_wins(tmp_path, monkeypatch, reload_settings) -> None:
    config_dir = tmp_path / "etc"
    config_dir.mkdir()
    _write_config(config_dir, notifications={"internal_chat_id": -100, "max_message_length": 1000})
    _write_config(tmp_path, chains={"primary": "base"})
    monkeypatch.setenv("DIFFSCOPE_CONFIG", str(config_dir / "config.json"))
    monkeypatch.chdir(tmp_path)

    loaded = reload_settings()

    assert loaded.CONFIG_PATH == str(config_dir / "config.json")
    assert loaded.INBOX_PATH == str(config_dir / "inbox")
    assert loaded.CHANNEL_CHATS[Channel.INTERNAL] == -100
    assert loaded.notifier_config().max_message_length == 1000
    assert loaded.PRIMARY_CHAIN == "ethereum"


def test_missing_config_fails_fast(tmp_path, monkeypatch, reload_settings) -> None:
    monkeypatch.setenv("DIFFSCOPE_CONFIG", str(tmp_path / "missing.json"))

    with pytest.raises(FileNotFoundError):
        reload_settings()
