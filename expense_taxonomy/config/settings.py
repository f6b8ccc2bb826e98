"""
Configuration Management for Expense Taxonomy

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The default labels live in configuration rather than in module globals,
so deployments (and tests) can substitute their own fallback vocabulary.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TaxonomySettings(BaseSettings):
    """Default labels and vocabulary limits."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_TAXONOMY_",
        extra="ignore"
    )

    default_project: str = Field(
        default="日常开支",
        description="Project used when a proposed project is unknown"
    )
    default_category: str = Field(
        default="其他",
        description="Category used when a proposed category is unknown"
    )
    default_sub_category: str = Field(
        default="其他",
        description="Sub-category used when a proposed sub-category is unknown"
    )

    # How many allowed triples are rendered into an LLM prompt hint
    hint_max_items: int = Field(
        default=120,
        ge=1,
        le=1000,
        description="Maximum number of triples in a vocabulary hint"
    )

    @field_validator("default_project", "default_category", "default_sub_category")
    @classmethod
    def validate_default_label(cls, v: str) -> str:
        """Default labels must survive normalization unchanged."""
        v = v.strip()
        if not v:
            raise ValueError("Default labels cannot be blank")
        return v


class ParserSettings(BaseSettings):
    """Offline parser and candidate validation configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_PARSER_",
        extra="ignore"
    )

    fallback_description: str = Field(
        default="消费",
        description="Description used when the input text is empty"
    )
    future_date_tolerance_days: int = Field(
        default=1,
        ge=0,
        description="How many days in the future an expense date can be"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Log level for the stdlib logger behind structlog"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def taxonomy(self) -> TaxonomySettings:
        return TaxonomySettings()

    @property
    def parser(self) -> ParserSettings:
        return ParserSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("taxonomy", "parser", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
