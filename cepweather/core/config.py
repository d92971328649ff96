from functools import lru_cache
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    """Logging-specific configuration settings."""
    LEVEL: str = "INFO"
    FORMAT: str = "json"

    model_config = SettingsConfigDict(env_prefix="LOGGING_")


class InputSettings(BaseSettings):
    """Settings for the public Input service."""
    SERVICE_NAME: str = "input-service"
    VERSION: str = "1.0.0"
    ENV: str = "development"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Orchestrator hop
    ORCHESTRATOR_URL: str = "http://localhost:8081/"
    ORCHESTRATOR_TIMEOUT: float = 8.0  # seconds, must exceed the orchestrator's provider budget

    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


class OrchestratorSettings(BaseSettings):
    """Settings for the internal Orchestrator service."""
    SERVICE_NAME: str = "orchestrator-service"
    VERSION: str = "1.0.0"
    ENV: str = "development"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8081

    # Providers
    VIACEP_URL: str = "https://viacep.com.br/ws"
    WEATHER_API_URL: str = "https://api.weatherapi.com/v1/current.json"
    WEATHER_SECRET_KEY: str = ""
    PROVIDER_TIMEOUT: float = 3.0  # seconds, per provider call

    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


def load_env_file() -> None:
    """
    Load environment variables from .env files based on the environment.

    Priority:
    1. .env.{ENV}.local
    2. .env.{ENV}
    3. .env
    """
    env = os.getenv("ENV", "development")
    for env_file in (f".env.{env}.local", f".env.{env}", ".env"):
        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(dotenv_path=env_path)
            return


@lru_cache()
def get_input_settings() -> InputSettings:
    """
    Returns cached Input service settings.

    Using lru_cache to avoid re-reading environment variables on each call.
    """
    load_env_file()
    return InputSettings()


@lru_cache()
def get_orchestrator_settings() -> OrchestratorSettings:
    """Returns cached Orchestrator service settings."""
    load_env_file()
    return OrchestratorSettings()
