"""Tests for settings lookup."""

import init_session
from init_session import SETTING_DEFAULTS, read_setting


def test_environment_wins(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("STORE_API_URL", "https://api.example/api")
    assert read_setting("STORE_API_URL") == "https://api.example/api"


def test_secrets_before_default(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("STORE_REDIRECT_DELAY", raising=False)
    monkeypatch.setattr(init_session, "_secret", lambda name: "5")
    assert read_setting("STORE_REDIRECT_DELAY") == "5"


def test_falls_back_to_default(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("STORE_MAP_ZOOM", raising=False)
    monkeypatch.setattr(init_session, "_secret", lambda name: None)
    assert read_setting("STORE_MAP_ZOOM") == SETTING_DEFAULTS["STORE_MAP_ZOOM"]


def test_dotenv_file_is_loaded(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("STORE_IMAGE_URL", raising=False)
    monkeypatch.setattr(init_session, "_secret", lambda name: None)
    (tmp_path / ".env").write_text("STORE_IMAGE_URL=https://img.example\n")

    # the delenv above also removes what load_dotenv sets, on teardown
    assert read_setting("STORE_IMAGE_URL") == "https://img.example"
