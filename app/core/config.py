from functools import lru_cache
from typing import Annotated

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from app.services.slot_generator import validate_slot_template
from app.services.time_zone_projector import InvalidTimeError, resolve_zone


class Settings(BaseSettings):
    app_name: str = "Meeting Slots API"
    app_env: str = "development"
    app_version: str = "0.1.0"
    api_prefix: str = "/api"
    allowed_origins: Annotated[list[str], NoDecode] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    slot_source_timezone: str = "Europe/Paris"
    slot_display_timezone: str = ""
    slot_template: Annotated[list[str], NoDecode] = [
        "08:00",
        "08:20",
        "08:40",
        "09:00",
        "09:20",
        "09:40",
    ]
    slot_duration_minutes: int = 20
    booking_reminder_minutes_before: int = 30
    booking_conferencing_provider_key: str = "hangoutsMeet"
    booking_allow_weekends: bool = False
    booking_send_invites: bool = False
    google_calendar_api_token: str = ""
    google_calendar_refresh_token: str = ""
    google_calendar_client_id: str = ""
    google_calendar_client_secret: str = ""
    google_calendar_id: str = "primary"
    google_calendar_api_timeout_seconds: float = 10.0

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("slot_template", mode="before")
    @classmethod
    def parse_slot_template(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [entry.strip() for entry in value.split(",") if entry.strip()]
        return value

    @field_validator("slot_source_timezone", "slot_display_timezone", mode="before")
    @classmethod
    def normalize_timezone(cls, value: str) -> str:
        cleaned = str(value or "").strip()
        if not cleaned:
            return ""
        try:
            resolve_zone(cleaned)
        except InvalidTimeError as exc:
            raise ValueError(str(exc)) from exc
        return cleaned

    @field_validator("google_calendar_api_timeout_seconds", mode="before")
    @classmethod
    def normalize_google_calendar_timeout(cls, value: float | str) -> float:
        parsed_value = float(value)
        if parsed_value <= 0:
            return 10.0
        return parsed_value

    @field_validator("booking_reminder_minutes_before", mode="before")
    @classmethod
    def normalize_reminder_minutes(cls, value: int | str) -> int:
        parsed_value = int(value)
        if parsed_value < 0:
            return 30
        return parsed_value

    @model_validator(mode="after")
    def validate_slot_configuration(self) -> "Settings":
        if not self.slot_source_timezone:
            raise ValueError("SLOT_SOURCE_TIMEZONE must name an IANA time zone.")
        if not self.slot_display_timezone:
            self.slot_display_timezone = self.slot_source_timezone
        try:
            self.slot_template = list(
                validate_slot_template(self.slot_template, self.slot_duration_minutes),
            )
        except InvalidTimeError as exc:
            raise ValueError(str(exc)) from exc
        return self

    @property
    def google_calendar_configured(self) -> bool:
        if self.google_calendar_api_token.strip():
            return True
        return bool(
            self.google_calendar_refresh_token.strip()
            and self.google_calendar_client_id.strip()
            and self.google_calendar_client_secret.strip()
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
