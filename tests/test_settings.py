"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from expense_taxonomy.config import (
    AppSettings,
    ParserSettings,
    TaxonomySettings,
    get_settings,
    validate_all_settings,
)


class TestTaxonomySettings:
    """Tests for default labels and hint limits."""

    def test_defaults(self):
        settings = TaxonomySettings()
        assert settings.default_project == "日常开支"
        assert settings.default_category == "其他"
        assert settings.default_sub_category == "其他"
        assert settings.hint_max_items == 120

    def test_env_override_is_trimmed(self, monkeypatch):
        """Test labels from the environment are normalized."""
        monkeypatch.setenv("EXPENSE_TAXONOMY_DEFAULT_PROJECT", "  Household ")
        assert TaxonomySettings().default_project == "Household"

    def test_blank_label_rejected(self, monkeypatch):
        """Test a blank default label fails validation."""
        monkeypatch.setenv("EXPENSE_TAXONOMY_DEFAULT_SUB_CATEGORY", "   ")
        with pytest.raises(ValidationError):
            TaxonomySettings()

    @pytest.mark.parametrize("value", ["0", "1001"])
    def test_hint_limit_bounds(self, monkeypatch, value):
        monkeypatch.setenv("EXPENSE_TAXONOMY_HINT_MAX_ITEMS", value)
        with pytest.raises(ValidationError):
            TaxonomySettings()


class TestParserSettings:
    """Tests for offline parser settings."""

    def test_defaults(self):
        settings = ParserSettings()
        assert settings.fallback_description == "消费"
        assert settings.future_date_tolerance_days == 1

    def test_negative_tolerance_rejected(self, monkeypatch):
        monkeypatch.setenv("EXPENSE_PARSER_FUTURE_DATE_TOLERANCE_DAYS", "-1")
        with pytest.raises(ValidationError):
            ParserSettings()


class TestAppSettings:
    """Tests for application settings."""

    def test_log_level_normalized(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert AppSettings().log_level == "DEBUG"

    def test_unknown_log_level_rejected(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        with pytest.raises(ValidationError):
            AppSettings()


class TestSettingsContainer:
    """Tests for the cached root settings."""

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_sub_settings_read_environment(self, monkeypatch):
        monkeypatch.setenv("EXPENSE_PARSER_FALLBACK_DESCRIPTION", "spending")
        assert get_settings().parser.fallback_description == "spending"

    def test_validate_all_settings_ok(self):
        assert validate_all_settings() == {"taxonomy": True, "parser": True, "app": True}

    def test_validate_all_settings_reports_errors(self, monkeypatch):
        """Test a broken section is reported instead of raised."""
        monkeypatch.setenv("EXPENSE_TAXONOMY_DEFAULT_PROJECT", "")
        results = validate_all_settings()
        assert results["taxonomy"] is False
        assert "taxonomy_error" in results
        assert results["parser"] is True
