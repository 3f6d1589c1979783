import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

DEFAULT_CITY = "DefaultCity"
OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"


def _optional_float(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    return float(raw)


@dataclass
class Settings:
    telegram_bot_token: str
    default_city: str
    openweather_api_key: str
    openweather_url: str
    weather_timeout: float | None
    postgres_user: str
    postgres_password: str
    postgres_db: str
    postgres_host: str
    postgres_port: str
    database_url_override: str | None = None
    db_echo: bool = False
    scheduler_timezone: str = "UTC"
    log_level: str = "INFO"
    log_dir: str = "logs"

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://"
            f"{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


def get_settings() -> Settings:
    return Settings(
        telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        default_city=os.getenv("CITY") or DEFAULT_CITY,
        openweather_api_key=os.getenv("OPENWEATHER_API_KEY", ""),
        openweather_url=os.getenv("OPENWEATHER_URL", OPENWEATHER_URL),
        weather_timeout=_optional_float(os.getenv("WEATHER_TIMEOUT")),
        postgres_user=os.getenv("POSTGRES_USER", "weather_user"),
        postgres_password=os.getenv("POSTGRES_PASSWORD", "weather_pass"),
        postgres_db=os.getenv("POSTGRES_DB", "weather_db"),
        postgres_host=os.getenv("POSTGRES_HOST", "weather-postgres"),
        postgres_port=os.getenv("POSTGRES_PORT", "5432"),
        database_url_override=os.getenv("DATABASE_URL"),
        db_echo=os.getenv("DB_ECHO", "0") == "1",
        scheduler_timezone=os.getenv("SCHEDULER_TIMEZONE", "UTC"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_dir=os.getenv("LOG_DIR", "logs"),
    )

settings = get_settings()
