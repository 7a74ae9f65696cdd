"""Process-level settings, read from the environment or a local .env file."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # "development" fails fast on malformed events; anything else degrades.
    APP_ENV: str = "development"
    DATABASE_PATH: str = ":memory:"
    REFRESH_DEBOUNCE_SECONDS: float = 1.0
    REFRESH_INTERVAL_SECONDS: float = 60.0
    LOG_LEVEL: str = "INFO"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.strip().lower() in ("development", "dev", "test")


settings = Settings()
