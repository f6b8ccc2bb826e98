"""Configuration package."""

from expense_taxonomy.config.settings import (
    AppSettings,
    ParserSettings,
    Settings,
    TaxonomySettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "ParserSettings",
    "Settings",
    "TaxonomySettings",
    "get_settings",
    "validate_all_settings",
]
