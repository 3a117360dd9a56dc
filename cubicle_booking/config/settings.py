"""
Environment configuration for the cubicle booking service.
Uses Pydantic's settings management to handle environment variables
with proper type validation and default values.
"""

import json
from typing import Annotated, Any, Dict, List, Optional, Union
from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import Field, field_validator
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)

DEFAULT_CAREERS = [
    "Ingeniería en Sistemas Computacionales",
    "Ingeniería Industrial",
    "Ingeniería Electrónica",
    "Ingeniería Civil",
    "Arquitectura",
    "Ingeniería Mecánica",
    "Ingeniería Química",
]


def _parse_list(v: Union[str, List[Any]]) -> List[Any]:
    """Accept JSON arrays or comma-separated strings from the environment"""
    if isinstance(v, str):
        if v.startswith('[') and v.endswith(']'):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        return [item.strip() for item in v.split(",") if item.strip()]
    return v


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    # Application configuration
    APP_NAME: str = Field(default="Cubicle Booking Service", alias="PROJECT_NAME")
    API_VERSION: str = Field(default="v1", alias="PROJECT_VERSION")
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    TIMEZONE: str = Field(default="America/Mexico_City", alias="TIMEZONE")

    # Server configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(default=["*"], alias="BACKEND_CORS_ORIGINS")

    # Database configuration
    DATABASE_URL: str = "sqlite:///./cubicles.db"
    DB_POOL_SIZE: int = 20
    DB_POOL_OVERFLOW: int = 10
    DB_ECHO: bool = False

    # Business rules
    MIN_RENTAL_HOURS: int = 1
    MAX_RENTAL_HOURS: int = 6
    DEFAULT_RENTAL_HOURS: int = 1
    TOP_STUDENTS_LIMIT: int = 5
    CAREERS: Annotated[List[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_CAREERS))

    # Import / export
    MAX_UPLOAD_SIZE: int = Field(default=5242880, alias="MAX_FILE_SIZE")
    REPORT_OUTPUT_DIR: Optional[str] = None

    # Live state
    BOARD_CACHE_TTL: float = 5.0
    BOOKING_FLOW_IDLE_TIMEOUT: float = 900.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = True

    @field_validator('CORS_ORIGINS', 'CAREERS', mode='before')
    @classmethod
    def parse_string_lists(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse list settings from a JSON or comma-separated string"""
        return _parse_list(v)

    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    def engine_options(self) -> Dict[str, Any]:
        """Keyword arguments for ``create_engine`` suited to the configured backend"""
        if self.is_sqlite():
            return {"connect_args": {"check_same_thread": False}, "echo": self.DB_ECHO}
        return {
            "pool_pre_ping": True,
            "pool_size": self.DB_POOL_SIZE,
            "max_overflow": self.DB_POOL_OVERFLOW,
            "echo": self.DB_ECHO,
        }

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT == "production"

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
