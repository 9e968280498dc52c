"""
User settings management.

Loads, repairs and persists widget settings against a static default set.
"""

import dataclasses
import json
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from sgcc_widget.storage.repository import KeyValueStore

logger = logging.getLogger(__name__)

SETTINGS_KEY = "sgccSettings"


class Dimension(Enum):
    """Granularity of the standard bar chart."""
    DAILY = "daily"
    MONTHLY = "monthly"


class WidgetRange(Enum):
    """Display range of the large widget chart."""
    SEVEN_DAYS = "7days"
    THIRTY_DAYS = "30days"
    TWELVE_MONTHS = "12months"


@dataclass(frozen=True)
class Settings:
    """Widget settings.

    Stored as JSON with camelCase keys (see ``to_dict``); every field has a
    default in ``DEFAULT_SETTINGS``.
    """
    account_index: int = 0
    bar_count: int = 7
    dimension: Dimension = Dimension.DAILY
    one_level_pq: float = 2160
    two_level_pq: float = 4800
    refresh_interval: int = 180
    large_widget_range: WidgetRange = WidgetRange.SEVEN_DAYS

    def __post_init__(self):
        """Validate field ranges."""
        if self.account_index < 0:
            raise ValueError("accountIndex must be >= 0")
        if self.bar_count <= 0:
            raise ValueError("barCount must be > 0")
        if self.one_level_pq <= 0:
            raise ValueError("oneLevelPq must be > 0")
        if self.two_level_pq <= self.one_level_pq:
            raise ValueError("twoLevelPq must be > oneLevelPq")
        if self.refresh_interval <= 0:
            raise ValueError("refreshInterval must be > 0")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the persisted camelCase shape."""
        return {
            "accountIndex": self.account_index,
            "barCount": self.bar_count,
            "dimension": self.dimension.value,
            "oneLevelPq": self.one_level_pq,
            "twoLevelPq": self.two_level_pq,
            "refreshInterval": self.refresh_interval,
            "largeWidgetRange": self.large_widget_range.value,
        }

    def replace(self, **changes: Any) -> "Settings":
        """Return a copy with ``changes`` applied (validated)."""
        return dataclasses.replace(self, **changes)


DEFAULT_SETTINGS = Settings()


def _coerce_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _coerce_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _non_negative_int(value: Any) -> Optional[int]:
    number = _coerce_int(value)
    return number if number is not None and number >= 0 else None


def _positive_int(value: Any) -> Optional[int]:
    number = _coerce_int(value)
    return number if number is not None and number > 0 else None


def _positive_number(value: Any) -> Optional[float]:
    number = _coerce_number(value)
    return number if number is not None and number > 0 else None


def _enum_member(enum_cls: type) -> Callable[[Any], Any]:
    def parse(value: Any) -> Any:
        if isinstance(value, enum_cls):
            return value
        try:
            return enum_cls(value)
        except ValueError:
            return None
    return parse


# Persisted key -> (dataclass field, parser returning None when invalid)
_FIELDS: Dict[str, tuple] = {
    "accountIndex": ("account_index", _non_negative_int),
    "barCount": ("bar_count", _positive_int),
    "dimension": ("dimension", _enum_member(Dimension)),
    "oneLevelPq": ("one_level_pq", _positive_number),
    "twoLevelPq": ("two_level_pq", _positive_number),
    "refreshInterval": ("refresh_interval", _positive_int),
    "largeWidgetRange": ("large_widget_range", _enum_member(WidgetRange)),
}


def merge_settings(raw: Mapping[str, Any], defaults: Settings = DEFAULT_SETTINGS) -> Settings:
    """Merge a partial settings mapping over ``defaults``, field by field.

    Missing or invalid fields take the default value; valid ones are kept.
    Unknown keys are ignored. When the repaired thresholds are out of order,
    ``twoLevelPq`` falls back to its default, then both thresholds do.

    Args:
        raw: Parsed settings object (camelCase keys)
        defaults: Settings supplying the fallback values

    Returns:
        A valid Settings instance
    """
    values = {}
    for key, (name, parse) in _FIELDS.items():
        parsed = parse(raw[key]) if key in raw else None
        if key in raw and parsed is None:
            logger.warning("Ignoring invalid setting %s=%r", key, raw[key])
        values[name] = getattr(defaults, name) if parsed is None else parsed

    if values["two_level_pq"] <= values["one_level_pq"]:
        logger.warning(
            "twoLevelPq %s must exceed oneLevelPq %s; using default",
            values["two_level_pq"], values["one_level_pq"]
        )
        values["two_level_pq"] = defaults.two_level_pq
        if values["two_level_pq"] <= values["one_level_pq"]:
            values["one_level_pq"] = defaults.one_level_pq

    return Settings(**values)


def parse_setting(key: str, raw_value: str) -> Dict[str, Any]:
    """Parse one user-supplied setting into dataclass field form.

    Args:
        key: Setting name, camelCase (``barCount``) or snake_case (``bar_count``)
        raw_value: Value as typed by the user

    Returns:
        ``{field_name: typed_value}`` suitable for ``Settings.replace``

    Raises:
        ValueError: If the key is unknown or the value is invalid
    """
    by_field = {name: (camel, parse) for camel, (name, parse) in _FIELDS.items()}
    if key in _FIELDS:
        name, parse = _FIELDS[key]
        camel = key
    elif key in by_field:
        name = key
        camel, parse = by_field[key]
    else:
        raise ValueError(f"Unknown setting: {key}. Valid settings: {list(_FIELDS)}")

    value = parse(raw_value)
    if value is None:
        raise ValueError(f"Invalid value for {camel}: {raw_value!r}")
    return {name: value}


class SettingsStore:
    """Reads and writes Settings through a KeyValueStore."""

    def __init__(self, store: KeyValueStore, key: str = SETTINGS_KEY):
        self.store = store
        self.key = key

    def get(self) -> Settings:
        """Load settings; never raises.

        Returns:
            DEFAULT_SETTINGS on a missing key, unparseable JSON, a non-object
            payload or a storage error; otherwise the repaired merge
        """
        try:
            raw = self.store.read(self.key)
            if not raw:
                return DEFAULT_SETTINGS
            parsed = json.loads(raw)
        except Exception:
            logger.exception("Loading settings failed; using defaults")
            return DEFAULT_SETTINGS

        if not isinstance(parsed, dict):
            logger.warning("Stored settings are not an object; using defaults")
            return DEFAULT_SETTINGS
        return merge_settings(parsed)

    def save(self, settings: Settings) -> None:
        """Persist settings; failures are logged and swallowed."""
        try:
            self.store.write(self.key, json.dumps(settings.to_dict()))
        except Exception:
            logger.exception("Saving settings failed")

    def reset(self) -> Settings:
        """Persist and return the default settings."""
        self.save(DEFAULT_SETTINGS)
        return DEFAULT_SETTINGS
