import logging
from functools import lru_cache
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

UnhandledRequestStrategy = Literal["bypass", "warn", "error"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MOCKNET_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Interception
    on_unhandled_request: UnhandledRequestStrategy = "warn"
    passthrough_timeout: float = 10.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    log_lifecycle: bool = False

    @model_validator(mode="after")
    def _validate(self) -> "Settings":
        if self.passthrough_timeout <= 0:
            raise ValueError("PASSTHROUGH_TIMEOUT must be a positive number of seconds.")
        level = self.log_level.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"LOG_LEVEL {self.log_level!r} is not a known logging level.")
        self.log_level = level
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
