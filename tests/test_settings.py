"""
Unit tests for user settings.

Tests default merging, field-by-field repair and persistence failures.
"""

import json
import os
import sqlite3
import tempfile
from unittest.mock import Mock

import pytest

from sgcc_widget.config.settings import (
    DEFAULT_SETTINGS,
    SETTINGS_KEY,
    Dimension,
    Settings,
    SettingsStore,
    WidgetRange,
    merge_settings,
    parse_setting
)
from sgcc_widget.storage.repository import SqliteKeyValueStore


class TestSettingsDefaults:
    """Test the static default set."""
    
    def test_defaults(self):
        """Verify every default value."""
        assert DEFAULT_SETTINGS.account_index == 0
        assert DEFAULT_SETTINGS.bar_count == 7
        assert DEFAULT_SETTINGS.dimension == Dimension.DAILY
        assert DEFAULT_SETTINGS.one_level_pq == 2160
        assert DEFAULT_SETTINGS.two_level_pq == 4800
        assert DEFAULT_SETTINGS.refresh_interval == 180
        assert DEFAULT_SETTINGS.large_widget_range == WidgetRange.SEVEN_DAYS
    
    def test_to_dict_uses_camel_case(self):
        """Persisted shape uses camelCase keys and enum values."""
        assert DEFAULT_SETTINGS.to_dict() == {
            "accountIndex": 0,
            "barCount": 7,
            "dimension": "daily",
            "oneLevelPq": 2160,
            "twoLevelPq": 4800,
            "refreshInterval": 180,
            "largeWidgetRange": "7days",
        }
    
    def test_invalid_direct_construction_raises(self):
        """Constructing out-of-range settings directly is rejected."""
        with pytest.raises(ValueError, match="barCount must be > 0"):
            Settings(bar_count=0)
        with pytest.raises(ValueError, match="twoLevelPq must be > oneLevelPq"):
            Settings(one_level_pq=5000, two_level_pq=4800)


class TestMergeSettings:
    """Test field-by-field merging and repair."""
    
    def test_empty_partial_yields_defaults(self):
        """No fields -> all defaults."""
        assert merge_settings({}) == DEFAULT_SETTINGS
    
    def test_partial_overrides_only_given_fields(self):
        """Given fields override, absent fields keep defaults."""
        settings = merge_settings({"barCount": 30, "dimension": "monthly"})
        
        assert settings.bar_count == 30
        assert settings.dimension == Dimension.MONTHLY
        assert settings.account_index == DEFAULT_SETTINGS.account_index
        assert settings.one_level_pq == DEFAULT_SETTINGS.one_level_pq
        assert settings.large_widget_range == DEFAULT_SETTINGS.large_widget_range
    
    def test_unknown_fields_ignored(self):
        """Extra keys do not leak into settings."""
        settings = merge_settings({"theme": "dark", "accountIndex": 2})
        assert settings.account_index == 2
        assert not hasattr(settings, "theme")
    
    def test_invalid_fields_repaired_individually(self):
        """Bad fields fall back to defaults while good ones are kept."""
        settings = merge_settings({
            "accountIndex": -1,
            "barCount": "lots",
            "dimension": "hourly",
            "oneLevelPq": 3000,
            "refreshInterval": 0,
            "largeWidgetRange": "30days",
        })
        
        assert settings.account_index == 0
        assert settings.bar_count == 7
        assert settings.dimension == Dimension.DAILY
        assert settings.one_level_pq == 3000
        assert settings.refresh_interval == 180
        assert settings.large_widget_range == WidgetRange.THIRTY_DAYS
    
    def test_numeric_strings_accepted(self):
        """Values saved as strings by older forms still parse."""
        settings = merge_settings({"accountIndex": "1", "oneLevelPq": "2000.5"})
        assert settings.account_index == 1
        assert settings.one_level_pq == 2000.5
    
    def test_boolean_is_not_a_number(self):
        """true/false never count as numeric settings."""
        assert merge_settings({"barCount": True}).bar_count == 7
    
    def test_inverted_thresholds_reset_upper(self):
        """twoLevelPq below oneLevelPq falls back to its default."""
        settings = merge_settings({"oneLevelPq": 1000, "twoLevelPq": 500})
        assert settings.one_level_pq == 1000
        assert settings.two_level_pq == 4800
    
    def test_inverted_thresholds_reset_both(self):
        """When the default upper bound is still too low both reset."""
        settings = merge_settings({"oneLevelPq": 6000, "twoLevelPq": 5000})
        assert settings.one_level_pq == 2160
        assert settings.two_level_pq == 4800
    
    @pytest.mark.parametrize("partial", [
        {},
        {"barCount": 30},
        {"dimension": "monthly", "largeWidgetRange": "12months"},
        {"accountIndex": 3, "oneLevelPq": 100, "twoLevelPq": 200},
        {"refreshInterval": 60.0},
    ])
    def test_merged_fields_always_defined_and_typed(self, partial):
        """Every merged field has the right type."""
        settings = merge_settings(partial)
        assert isinstance(settings.account_index, int)
        assert isinstance(settings.bar_count, int)
        assert isinstance(settings.dimension, Dimension)
        assert isinstance(settings.one_level_pq, (int, float))
        assert isinstance(settings.two_level_pq, (int, float))
        assert isinstance(settings.refresh_interval, int)
        assert isinstance(settings.large_widget_range, WidgetRange)


class TestParseSetting:
    """Test parsing of interactive single-field edits."""
    
    def test_camel_case_key(self):
        assert parse_setting("barCount", "30") == {"bar_count": 30}
    
    def test_snake_case_key(self):
        assert parse_setting("large_widget_range", "12months") == {
            "large_widget_range": WidgetRange.TWELVE_MONTHS
        }
    
    def test_unknown_key_raises(self):
        with pytest.raises(ValueError, match="Unknown setting"):
            parse_setting("colour", "red")
    
    def test_invalid_value_raises(self):
        with pytest.raises(ValueError, match="Invalid value for dimension"):
            parse_setting("dimension", "weekly")


class TestSettingsStore:
    """Test settings persistence."""
    
    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()
        self.kv = SqliteKeyValueStore(os.path.join(self.temp_dir, "test.db"))
        self.store = SettingsStore(self.kv)
    
    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)
    
    def test_get_missing_returns_defaults(self):
        """Nothing stored -> defaults."""
        assert self.store.get() == DEFAULT_SETTINGS
    
    def test_save_then_get(self):
        """Saved settings are read back."""
        settings = DEFAULT_SETTINGS.replace(bar_count=30, dimension=Dimension.MONTHLY)
        self.store.save(settings)
        assert self.store.get() == settings
    
    def test_get_merges_partial_blob(self):
        """A stored partial object is merged over defaults."""
        self.kv.write(SETTINGS_KEY, json.dumps({"accountIndex": 1, "barCount": 30}))
        settings = self.store.get()
        assert settings.account_index == 1
        assert settings.bar_count == 30
        assert settings.large_widget_range == WidgetRange.SEVEN_DAYS
    
    @pytest.mark.parametrize("raw", ["{broken", "[1, 2]", "null", '"text"'])
    def test_get_unparseable_returns_defaults(self, raw):
        """Corrupt or non-object blobs yield defaults."""
        self.kv.write(SETTINGS_KEY, raw)
        assert self.store.get() == DEFAULT_SETTINGS
    
    def test_get_store_failure_returns_defaults(self):
        """Storage errors on read yield defaults."""
        kv = Mock()
        kv.read.side_effect = sqlite3.OperationalError("unable to open database file")
        assert SettingsStore(kv).get() == DEFAULT_SETTINGS
    
    def test_save_failure_is_swallowed(self):
        """Storage errors on save never reach the caller."""
        kv = Mock()
        kv.write.side_effect = sqlite3.OperationalError("readonly database")
        SettingsStore(kv).save(DEFAULT_SETTINGS)
        kv.write.assert_called_once()
    
    def test_reset_restores_defaults(self):
        """Reset persists and returns defaults."""
        self.store.save(DEFAULT_SETTINGS.replace(bar_count=30))
        assert self.store.reset() == DEFAULT_SETTINGS
        assert self.store.get() == DEFAULT_SETTINGS
