# src/interest_api/config/settings.py
import logging
from typing import Dict, Any
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """
    Single source of truth for all application settings.

    Configuration precedence:
    1. Environment variables (highest priority)
    2. .env file (if exists)
    3. Default values in this class (lowest priority)

    Usage:
        from interest_api.config.settings import get_settings
        settings = get_settings()
        folder = settings.file_upload_folder_path
    """

    # Application Settings
    app_name: str = Field(
        default="interest",
        description="Application name"
    )

    # Database Configuration
    db_path: str = Field(
        default="interest.db",
        description="SQLite database holding records, mappings and the file index"
    )

    # Storage Configuration
    storage_dir: str = Field(
        default="storage",
        description="Local directory backing the file storages"
    )

    file_table: str = Field(
        default="file",
        description="Table whose operations carry file data"
    )

    file_upload_folder_path: str = Field(
        default="1:/user_upload/",
        description="Combined identifier (storage:folder) for uploaded files, may contain {placeholders}"
    )

    hashed_subfolders: str = Field(
        default="0",
        description="Number of hashed single-character subfolder levels, may contain {placeholders}"
    )

    # HTTP Configuration
    http_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for URL downloads"
    )

    # Pipeline
    skip_repeated_operations: bool = Field(
        default=False,
        description="Skip operations identical to the previous one for the same remote id"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Normalize and validate the logging level name."""
        level = str(v).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Invalid log_level: {v}")
        return level

    @field_validator('file_upload_folder_path')
    @classmethod
    def validate_folder_identifier(cls, v):
        """The upload folder must be a combined identifier, e.g. 1:/user_upload/"""
        if ':' not in v:
            raise ValueError(f"Invalid file_upload_folder_path: {v}. Expected <storage>:<folder>")
        return v

    def get_environment_dict(self) -> Dict[str, Any]:
        """Get configuration as a dictionary of environment variables."""
        return {
            'DB_PATH': self.db_path,
            'STORAGE_DIR': self.storage_dir,
            'FILE_TABLE': self.file_table,
            'FILE_UPLOAD_FOLDER_PATH': self.file_upload_folder_path,
            'HASHED_SUBFOLDERS': self.hashed_subfolders,
            'HTTP_TIMEOUT': str(self.http_timeout),
            'SKIP_REPEATED_OPERATIONS': str(self.skip_repeated_operations).lower(),
            'LOG_LEVEL': self.log_level,
        }

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
