"""
MODULE OVERVIEW:
Application-wide configuration using Pydantic Settings.

WHAT IS HAPPENING HERE:
The access endpoint, the client-side request timeout and the emulator's long-poll
hold time all live here so they can be overridden from the environment
(KGS_POLLER_ACCESS_URL=...) or a local .env file instead of being hardcoded
deep inside the session or a route.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="KGS_POLLER_",
        env_file=".env",
        env_file_encoding='utf-8',
        extra='ignore',
    )

    ACCESS_URL: str = "http://metakgs.org/api/access"

    # None means no client-side timeout: a long poll may be held open indefinitely
    POLL_TIMEOUT_S: float | None = None

    LOG_LEVEL: str = "INFO"

    # Access API emulator
    PORT: int = 8000
    LONG_POLL_TIMEOUT_S: float = 30.0

settings = Settings()
