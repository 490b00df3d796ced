import pydantic
import pytest

from chat_core.config.settings import ChatSettings


def test_settings_read_yaml_config(tmp_path, monkeypatch):
    cfg = tmp_path / "chat.yaml"
    cfg.write_text("default_model: gpt-4o-mini\nrequest_timeout: 90\n", encoding="utf-8")
    monkeypatch.setenv("CHAT_CONFIG_FILE", str(cfg))
    monkeypatch.delenv("DEFAULT_MODEL", raising=False)
    monkeypatch.delenv("REQUEST_TIMEOUT", raising=False)

    s = ChatSettings(_env_file=None)
    assert s.default_model == "gpt-4o-mini"
    assert s.request_timeout == 90


def test_settings_env_overrides_yaml(tmp_path, monkeypatch):
    cfg = tmp_path / "chat.yaml"
    cfg.write_text("default_model: from-yaml\n", encoding="utf-8")
    monkeypatch.setenv("CHAT_CONFIG_FILE", str(cfg))
    monkeypatch.setenv("DEFAULT_MODEL", "from-env")

    assert ChatSettings(_env_file=None).default_model == "from-env"


def test_settings_bounds():
    with pytest.raises(pydantic.ValidationError):
        ChatSettings(_env_file=None, request_timeout=10)
    with pytest.raises(pydantic.ValidationError):
        ChatSettings(_env_file=None, default_temperature=3)


def test_blank_api_key_is_unset():
    assert ChatSettings(_env_file=None, chat_api_key="  ").chat_api_key is None
