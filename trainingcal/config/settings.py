from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TIMEZONE = "America/Toronto"


class Settings(BaseSettings):
    timezone: str = Field(default=DEFAULT_TIMEZONE, validation_alias="DEFAULT_TIMEZONE")
    training_calendar_id: str = Field(default="", validation_alias="TRAINING_CALENDAR_ID")
    primary_calendar_id: str = Field(default="primary", validation_alias="PRIMARY_CALENDAR_ID")
    google_access_token: str = Field(default="", validation_alias="GOOGLE_ACCESS_TOKEN")
    google_api_base_url: str = Field(
        default="https://www.googleapis.com/calendar/v3",
        validation_alias="GOOGLE_CALENDAR_API_URL",
    )
    google_timeout_seconds: float = Field(default=10.0, validation_alias="GOOGLE_TIMEOUT_SECONDS")
    min_gap_minutes: int = Field(
        default=30,
        validation_alias="MIN_GAP_MINUTES",
        description="Minimum gap between two workouts (bricks excepted)",
    )
    reschedule_attempt_budget: int = Field(
        default=14,
        validation_alias="RESCHEDULE_ATTEMPT_BUDGET",
        description="Auto-rescheduler attempt budget (roughly two weeks of daily displacement)",
    )
    batch_rounds: int = Field(
        default=3,
        validation_alias="BATCH_ROUNDS",
        description="Per-candidate check/propose/reschedule rounds during batch planning",
    )
    extended_description_fields: bool = Field(
        default=False,
        validation_alias="EXTENDED_DESCRIPTION_FIELDS",
        description="Also require Distance and Time labels in workout descriptions",
    )
    planner_timeout_seconds: float = Field(
        default=10.0,
        validation_alias="PLANNER_TIMEOUT_SECONDS",
        description="Bound on the external workout generator before falling back to the rule-based planner",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Validate that the timezone is a known IANA zone name."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown DEFAULT_TIMEZONE '{value}'. Defaulting to {DEFAULT_TIMEZONE}.")
            return DEFAULT_TIMEZONE
        return value

    @field_validator("min_gap_minutes")
    @classmethod
    def validate_min_gap(cls, value: int) -> int:
        if value < 0:
            raise ValueError("Minimum gap must be non-negative")
        return value

    @field_validator("reschedule_attempt_budget", "batch_rounds")
    @classmethod
    def validate_at_least_one(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Reschedule budget and batch rounds must be at least 1")
        return value

    @field_validator("training_calendar_id")
    @classmethod
    def validate_training_calendar(cls, value: str) -> str:
        """Warn when the training calendar is not configured.

        The in-memory calendar works without it; the Google adapter does not.
        """
        if not value:
            logger.warning(
                "TRAINING_CALENDAR_ID is not set. "
                "Writes through the Google Calendar adapter will fail until it is configured."
            )
        return value

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


settings = Settings()
