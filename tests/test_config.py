import pydantic
import pytest

from app.core.config import Settings


def _settings(**overrides: object) -> Settings:
    return Settings(_env_file=None, **overrides)


def test_settings_defaults_offer_six_twenty_minute_morning_slots() -> None:
    settings = _settings()

    assert settings.slot_source_timezone == "Europe/Paris"
    assert settings.slot_display_timezone == "Europe/Paris"
    assert settings.slot_template == ["08:00", "08:20", "08:40", "09:00", "09:20", "09:40"]
    assert settings.slot_duration_minutes == 20
    assert settings.booking_reminder_minutes_before == 30
    assert settings.booking_conferencing_provider_key == "hangoutsMeet"


def test_settings_parse_comma_separated_slot_template() -> None:
    settings = _settings(slot_template=" 12:00, 12:30 ,", slot_duration_minutes=30)

    assert settings.slot_template == ["12:00", "12:30"]


def test_settings_read_slot_template_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SLOT_TEMPLATE", "14:00,14:30,15:00")
    monkeypatch.setenv("SLOT_DURATION_MINUTES", "30")
    monkeypatch.setenv("SLOT_DISPLAY_TIMEZONE", "Asia/Kolkata")

    settings = _settings()

    assert settings.slot_template == ["14:00", "14:30", "15:00"]
    assert settings.slot_display_timezone == "Asia/Kolkata"


def test_settings_reject_overlapping_slot_template() -> None:
    with pytest.raises(pydantic.ValidationError, match="overlaps"):
        _settings(slot_template="12:00,12:20", slot_duration_minutes=30)


def test_settings_reject_unknown_timezone() -> None:
    with pytest.raises(pydantic.ValidationError, match="Unknown time zone"):
        _settings(slot_source_timezone="Europe/Atlantis")


def test_settings_normalize_non_positive_timeout() -> None:
    assert _settings(google_calendar_api_timeout_seconds="0").google_calendar_api_timeout_seconds == 10.0


def test_settings_detect_google_calendar_configuration() -> None:
    assert not _settings(google_calendar_api_token="").google_calendar_configured
    assert _settings(google_calendar_api_token="token").google_calendar_configured
    assert _settings(
        google_calendar_api_token="",
        google_calendar_refresh_token="refresh",
        google_calendar_client_id="client",
        google_calendar_client_secret="secret",
    ).google_calendar_configured


def test_settings_parse_allowed_origins() -> None:
    settings = _settings(allowed_origins="https://a.example.com, https://b.example.com")

    assert settings.allowed_origins == ["https://a.example.com", "https://b.example.com"]
