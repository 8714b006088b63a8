"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from busplan.timecodec import to_minutes
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="config")

_TOPIC_ROOT = "student/MUJI/qingshan"


class Settings(BaseSettings):
    """Environment-driven configuration for the bus planner service."""
    model_config = SettingsConfigDict(env_prefix="BUSPLAN_", env_file=".env", extra="ignore")

    # Stratford / London Aquatics Centre
    latitude: float = 51.538
    longitude: float = -0.011
    timezone: str = "Europe/London"

    weather_source: str = "open_meteo"
    weather_base_url: str = "https://api.open-meteo.com/v1/forecast"
    weather_timeout_seconds: float = 10.0
    weather_retries: int = 2

    class_end: str = "13:00"
    history_days: int = 30

    current_walk_interval_seconds: int = 5 * 60
    timetable_interval_seconds: int = 60 * 60
    walk_history_interval_seconds: int = 6 * 60 * 60

    mqtt_enabled: bool = True
    mqtt_broker: str = "mqtt.cetools.org"
    mqtt_port: int = 1884
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_client_id: str = ""
    mqtt_qos: int = 1
    mqtt_keepalive_seconds: int = 60

    topic_timetable_108: str = f"{_TOPIC_ROOT}/bus-108"
    topic_timetable_339: str = f"{_TOPIC_ROOT}/bus-339"
    topic_best_108: str = f"{_TOPIC_ROOT}/hzh-108"
    topic_best_339: str = f"{_TOPIC_ROOT}/hzh-339"
    topic_walk: str = f"{_TOPIC_ROOT}/walk"
    topic_walk_history: str = f"{_TOPIC_ROOT}/walk-history"

    port: int = 3000
    log_level: str = "INFO"

    @field_validator("weather_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")

    @field_validator("class_end", mode="after")
    @classmethod
    def validate_class_end(cls, v: str) -> str:
        """Reject class end times that are not HH:MM."""
        to_minutes(v)
        return v

    @field_validator("mqtt_qos", mode="after")
    @classmethod
    def validate_qos(cls, v: int) -> int:
        if v not in (0, 1, 2):
            raise ValueError("mqtt_qos must be 0, 1 or 2")
        return v


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4, exclude={'mqtt_password'})}")
