from typing import List, Optional

from pydantic import Field, ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.exceptions import ConfigError


# PUBLIC_INTERFACE
class AppConfig(BaseSettings):
    """Explicit runtime configuration handed to the application factory."""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    data_file: str = Field(..., validation_alias="QUIZ_DATA_FILE", description="Path of the JSON file backing the quiz store.")
    cors_allow_origins: str = Field(default="*", validation_alias="CORS_ALLOW_ORIGINS", description="Comma-separated origins allowed by CORS.")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL", description="Root logging level name.")

    @field_validator("data_file")
    @classmethod
    def _data_file_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return (value or "INFO").strip().upper()

    @property
    def cors_origins(self) -> List[str]:
        origins = [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]
        return origins or ["*"]


# PUBLIC_INTERFACE
def load_config(env_file: Optional[str] = ".env") -> AppConfig:
    """
    Build the application configuration from the environment and `.env`.

    Args:
        env_file: Dotenv file to read in addition to the process environment;
            None reads the environment only.

    Raises:
        ConfigError: If a required variable is absent or invalid.
    """
    try:
        return AppConfig(_env_file=env_file)
    except PydanticValidationError as e:
        names = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        raise ConfigError(f"Missing or invalid configuration: {', '.join(names)}") from e
