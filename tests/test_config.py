from __future__ import annotations

import pytest

from friendhelp.config import settings
from friendhelp.config.llm_factory import _get_model_config, validate_llm_config
from friendhelp.config.loader import _flatten, get_config_path, load_yaml_dict


def test_flatten_nested_yaml() -> None:
    data = {"llm": {"default_provider": "openai", "gemini": {"default_model": "gemini-x"}}, "top": 1}

    assert _flatten(data) == {
        "LLM_DEFAULT_PROVIDER": "openai",
        "LLM_GEMINI_DEFAULT_MODEL": "gemini-x",
        "TOP": 1,
    }


def test_load_yaml_dict(tmp_path) -> None:
    assert load_yaml_dict(tmp_path / "missing.yaml") == {}

    empty = tmp_path / "empty.yaml"
    empty.write_text("")
    assert load_yaml_dict(empty) == {}

    good = tmp_path / "good.yaml"
    good.write_text("checkin:\n  follow_up_limit: 3\n")
    assert load_yaml_dict(good) == {"checkin": {"follow_up_limit": 3}}


def test_load_yaml_dict_rejects_bad_files(tmp_path) -> None:
    listing = tmp_path / "list.yaml"
    listing.write_text("- a\n- b\n")
    with pytest.raises(ValueError):
        load_yaml_dict(listing)

    broken = tmp_path / "broken.yaml"
    broken.write_text("llm: [unclosed\n")
    with pytest.raises(ValueError):
        load_yaml_dict(broken)


def test_config_path_override(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("FRIENDHELP_CONFIG", str(tmp_path / "custom.yaml"))

    assert get_config_path() == tmp_path / "custom.yaml"


def test_analysis_model_falls_back_to_default(monkeypatch) -> None:
    monkeypatch.setattr(settings, "OPENAI_DEFAULT_MODEL", "gpt-4o-mini")
    monkeypatch.setattr(settings, "OPENAI_ANALYSIS_MODEL", None)
    monkeypatch.setattr(settings, "ANALYSIS_LLM_MODEL", None)

    assert _get_model_config("openai", "analysis") == "gpt-4o-mini"
    assert _get_model_config("openai", "gpt-4.1") == "gpt-4.1"


def test_gemini_defaults() -> None:
    assert _get_model_config("gemini", "default") == settings.GEMINI_DEFAULT_MODEL
    assert _get_model_config("gemini", "analysis") == settings.GEMINI_ANALYSIS_MODEL


def test_missing_model_raises(monkeypatch) -> None:
    monkeypatch.setattr(settings, "ANTHROPIC_DEFAULT_MODEL", None)
    monkeypatch.setattr(settings, "DEFAULT_LLM_MODEL", None)

    with pytest.raises(ValueError):
        _get_model_config("anthropic", "default")


def test_validate_llm_config_reports_missing_key(monkeypatch) -> None:
    monkeypatch.setattr(settings, "DEFAULT_LLM_PROVIDER", "gemini")
    monkeypatch.setattr(settings, "GOOGLE_API_KEY", None)

    with pytest.raises(ValueError, match="GOOGLE_API_KEY"):
        validate_llm_config()


def test_validate_llm_config_passes(monkeypatch) -> None:
    monkeypatch.setattr(settings, "DEFAULT_LLM_PROVIDER", "gemini")
    monkeypatch.setattr(settings, "GOOGLE_API_KEY", "test-key")
    monkeypatch.setattr(settings, "DEFAULT_LLM_MODEL", None)
    monkeypatch.setattr(settings, "ANALYSIS_LLM_MODEL", None)
    monkeypatch.setattr(settings, "GEMINI_DEFAULT_MODEL", "gemini-3-flash-preview")
    monkeypatch.setattr(settings, "GEMINI_ANALYSIS_MODEL", "gemini-3-pro-preview")

    validate_llm_config()


def test_conversation_defaults() -> None:
    assert settings.CHECKIN_FOLLOW_UP_LIMIT == 2
    assert settings.INSIGHTS_WINDOW_DAYS == 7
    assert settings.SESSION_TITLE_LENGTH == 20
