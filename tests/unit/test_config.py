from pydantic import ValidationError
import pytest

from content_recovery.config import RecoverySettings, get_settings
from content_recovery.core.types import GenerationConfig
from content_recovery.exceptions import ConfigurationError


@pytest.mark.unit
def test_defaults(settings):
    assert settings.max_attempts == 3
    assert settings.base_delay_ms == 1000
    assert settings.max_delay_ms == 10_000
    assert settings.jitter_ms == 1000
    assert settings.temperature == 0.3
    assert settings.max_output_tokens == 800


@pytest.mark.unit
def test_environment_overrides_defaults(monkeypatch):
    monkeypatch.setenv("CONTENT_RECOVERY_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("CONTENT_RECOVERY_TEMPERATURE", "0.9")
    settings = get_settings()
    assert settings.max_attempts == 5
    assert settings.temperature == 0.9


@pytest.mark.unit
def test_keyword_overrides_beat_environment(monkeypatch):
    monkeypatch.setenv("CONTENT_RECOVERY_MAX_ATTEMPTS", "5")
    assert get_settings(max_attempts=2).max_attempts == 2


@pytest.mark.unit
def test_env_file_is_read_when_requested(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("CONTENT_RECOVERY_JITTER_MS=0\nCONTENT_RECOVERY_BASE_DELAY_MS=250\n")
    settings = get_settings(env_file=env_file)
    assert settings.jitter_ms == 0
    assert settings.base_delay_ms == 250


@pytest.mark.unit
def test_invalid_environment_value(monkeypatch):
    monkeypatch.setenv("CONTENT_RECOVERY_MAX_ATTEMPTS", "0")
    with pytest.raises(ConfigurationError, match="Invalid content recovery settings"):
        get_settings()


@pytest.mark.unit
def test_cap_below_base_delay_is_rejected():
    with pytest.raises(ConfigurationError, match="max_delay_ms"):
        get_settings(base_delay_ms=2000, max_delay_ms=1000)


@pytest.mark.unit
def test_settings_are_frozen(settings):
    with pytest.raises(ValidationError):
        settings.max_attempts = 10


@pytest.mark.unit
def test_generation_config():
    config = RecoverySettings(temperature=0.5, max_output_tokens=1200).generation_config()
    assert config == GenerationConfig(temperature=0.5, max_output_tokens=1200)
    assert config.to_dict() == {"temperature": 0.5, "maxOutputTokens": 1200}
