"""
Registrar service configuration

This module provides configuration management for the web service using Pydantic Settings.
All configuration values can be set via environment variables or .env file.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class AppConfig(BaseSettings):
    """
    Registrar service configuration

    All settings can be overridden via environment variables.
    Example: APP_PORT=9000 STORAGE_BACKEND=mysql uvicorn contoso.web.main:app
    """

    # ========== Service Configuration ==========
    app_host: str = Field(
        default="0.0.0.0",
        description="Service host address"
    )
    app_port: int = Field(
        default=8000,
        description="Service port"
    )

    # ========== Storage Configuration ==========
    storage_backend: str = Field(
        default="memory",
        description="Backing store: 'memory' or 'mysql'"
    )
    mysql_host: str = Field(
        default="127.0.0.1",
        description="MySQL host"
    )
    mysql_port: int = Field(
        default=33061,
        description="MySQL port"
    )
    mysql_user: str = Field(
        default="root",
        description="MySQL user"
    )
    mysql_password: str = Field(
        default="1234",
        description="MySQL password"
    )
    mysql_database: str = Field(
        default="contoso",
        description="MySQL database name"
    )

    # ========== Listing Configuration ==========
    students_page_size: int = Field(
        default=3,
        description="Students shown per page",
        ge=1,
    )
    departments_page_size: int = Field(
        default=10,
        description="Departments shown per page",
        ge=1,
    )
    instructors_page_size: int = Field(
        default=10,
        description="Instructors shown per page",
        ge=1,
    )

    # ========== Display Configuration ==========
    date_display_format: str = Field(
        default="%Y-%m-%d",
        description="strftime format used in conflict messages"
    )
    currency_symbol: str = Field(
        default="$",
        description="Currency symbol used in conflict messages"
    )

    # ========== Logging Configuration ==========
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global configuration instance
config = AppConfig()


def get_config() -> AppConfig:
    """
    Get the global configuration instance.

    This function is used for dependency injection in FastAPI.

    Returns:
        AppConfig: The global configuration instance
    """
    return config
