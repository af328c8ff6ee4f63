"""Runtime settings, read from the environment or a ``.env`` file."""
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class CalculatorSettings(BaseSettings):
    """Settings of the calculator CLI. Command-line flags take precedence over these."""

    decimal_places: int = Field(default=3, ge=0, le=15, description="Digits printed after the decimal point")
    log_level: str = Field(default="ERROR", description="Level of the package logger")
    results_suffix: str = Field(default="_results.txt", description="Suffix of the optional results file")

    model_config = SettingsConfigDict(
        env_prefix="INFIX_CALCULATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    def log_level_must_be_known(cls, v: str) -> str:
        """Normalize the level name and reject unknown ones."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v!r}")
        return level


@lru_cache
def get_settings() -> CalculatorSettings:
    return CalculatorSettings()
