from datetime import UTC, datetime

from app.core.config import Settings
from app.schemas.health import HealthResponse


class HealthService:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def get_status(self) -> HealthResponse:
        calendar_configured = self.settings.google_calendar_configured
        return HealthResponse(
            status="ok" if calendar_configured else "degraded",
            service=self.settings.app_name,
            version=self.settings.app_version,
            timestamp=datetime.now(UTC),
            calendar_configured=calendar_configured,
            slot_timezone=self.settings.slot_display_timezone,
        )
