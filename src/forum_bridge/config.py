"""Configuration management for Forum Bridge using Pydantic.

This module provides type-safe configuration models for the source and
target databases, importer tuning, source-specific options and logging.
"""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DATABASE_SCHEMES = ("sqlite", "mysql", "postgresql", "mariadb")


def _validate_database_url(v: str) -> str:
    if not v or v.strip() == "":
        raise ValueError("Database URL cannot be empty")
    scheme = v.split(":", 1)[0].split("+", 1)[0]
    if scheme not in _DATABASE_SCHEMES:
        raise ValueError(
            f"Unsupported database URL scheme '{scheme}'. "
            f"Must be one of: {', '.join(_DATABASE_SCHEMES)}"
        )
    return v


class SourceConfig(BaseModel):
    """Connection settings for the source forum/CMS database."""

    url: str = Field(..., description="SQLAlchemy URL of the source database")
    echo: bool = Field(default=False, description="Log every SQL statement sent to the source")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate the database URL scheme."""
        return _validate_database_url(v)


class TargetConfig(BaseModel):
    """Connection settings for the target discussion platform database."""

    url: str = Field(
        default="sqlite:///forum.db", description="SQLAlchemy URL of the target database"
    )
    echo: bool = Field(default=False, description="Log every SQL statement sent to the target")
    rate_limit: float = Field(
        default=0, ge=0, description="Maximum entity writes per second (0 = unlimited)"
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate the database URL scheme."""
        return _validate_database_url(v)


class AdminConfig(BaseModel):
    """Administrator account created at the end of an import run."""

    email: str = Field(..., description="Admin email address")
    username: str = Field(..., description="Preferred admin username")


class ImporterConfig(BaseModel):
    """Importer tuning."""

    batch_size: int = Field(
        default=1000, ge=1, le=100000, description="Rows fetched per source page"
    )
    progress: bool = Field(default=True, description="Print progress lines to stdout")
    admin: AdminConfig | None = Field(default=None, description="Admin account to create")


class DrupalConfig(BaseModel):
    """Options for the Drupal source script."""

    category_vocabulary_id: int = Field(
        default=1, ge=0, description="Taxonomy vocabulary holding the forum categories"
    )
    blog_category: str = Field(default="Blog", description="Category receiving blog posts")
    blog_category_description: str = Field(default="Articles from the blog")
    excluded_category_ids: list[int] = Field(
        default_factory=list,
        description="Taxonomy term ids to leave out (Drupal allows duplicate names)",
    )

    @field_validator("blog_category")
    @classmethod
    def validate_blog_category(cls, v: str) -> str:
        """Validate the blog category name."""
        if not v.strip():
            raise ValueError("Blog category name cannot be empty")
        return v.strip()


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING", description="Console log level")
    file_level: str = Field(default="DEBUG", description="File log level")
    format: str = Field(default="json", description="Log file format (json or console)")
    file: str | None = Field(default="logs/import.log", description="Log file path")

    @field_validator("level", "file_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = ["json", "console"]
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Log format must be one of: {', '.join(valid_formats)}")
        return v_lower


class BridgeConfig(BaseSettings):
    """Main Forum Bridge configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FORUM_BRIDGE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    source: SourceConfig = Field(..., description="Source database configuration")
    target: TargetConfig = Field(default_factory=TargetConfig, description="Target database")
    importer: ImporterConfig = Field(default_factory=ImporterConfig)
    drupal: DrupalConfig = Field(default_factory=DrupalConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config_from_yaml(config_path: str | Path) -> BridgeConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        BridgeConfig: Loaded configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is empty or references a missing variable
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        config_data = yaml.safe_load(f)

    if not config_data:
        raise ValueError(f"Empty configuration file: {config_path}")

    return BridgeConfig(**_expand_env_vars(config_data))


def _expand_env_vars(data):
    """Recursively expand ``${VAR_NAME}`` values from the environment."""
    if isinstance(data, dict):
        return {k: _expand_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        if data.startswith("${") and data.endswith("}"):
            var_name = data[2:-1]
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(
                    f"Environment variable '{var_name}' not found. "
                    f"Please set it in your environment or .env file."
                )
            return env_value
        return data
    else:
        return data
