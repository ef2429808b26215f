"""
Pipeline settings.
Loads thresholds and alias overrides from YAML, falling back to built-in defaults.
"""
from typing import Dict, Any, Optional, Tuple
from dataclasses import dataclass, field
import logging
import os

import yaml

log = logging.getLogger(__name__)

# filename used for the settings YAML
SETTINGS_FILENAME = 'pipeline.yaml'

# hard ceiling on the ranked contributor list
MAX_TOP_PERFORMERS = 10

DEFAULT_SETTINGS: Dict[str, Any] = {
    'top_performer_limit': MAX_TOP_PERFORMERS,
    # week numbers (from "Week N" labels) that count as onboarding weeks
    'new_contributor_weeks': [1, 2],
    'new_contributor_threshold': 2,
    # allowed gap between self-reported and tracker-derived issue counts
    'max_issue_difference': 2,
    'contributor_aliases': {},
    'partner_aliases': {},
}


class SettingsError(ValueError):
    """Raised when an explicitly requested settings file cannot be used."""


@dataclass(frozen=True)
class PipelineSettings:
    top_performer_limit: int = MAX_TOP_PERFORMERS
    new_contributor_weeks: Tuple[int, ...] = (1, 2)
    new_contributor_threshold: int = 2
    max_issue_difference: int = 2
    contributor_aliases: Dict[str, str] = field(default_factory=dict)
    partner_aliases: Dict[str, str] = field(default_factory=dict)


def default_settings_path() -> str:
    return os.getenv('ENGAGE_CONFIG') or os.path.join(os.path.dirname(os.path.dirname(__file__)), 'config', SETTINGS_FILENAME)


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_alias_map(value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k).strip().lower(): str(v).strip() for k, v in value.items() if k is not None and v is not None}


def settings_from_mapping(data: Dict[str, Any]) -> PipelineSettings:
    """Build PipelineSettings from a plain mapping; unknown keys are ignored, bad values fall back to defaults."""
    merged = dict(DEFAULT_SETTINGS)
    merged.update({k: v for k, v in (data or {}).items() if k in DEFAULT_SETTINGS})

    weeks_raw = merged.get('new_contributor_weeks') or []
    if not isinstance(weeks_raw, (list, tuple)):
        weeks_raw = [weeks_raw]
    weeks = tuple(w for w in (_as_int(w, -1) for w in weeks_raw) if w >= 0)

    limit = _as_int(merged.get('top_performer_limit'), MAX_TOP_PERFORMERS)
    return PipelineSettings(
        top_performer_limit=max(0, min(limit, MAX_TOP_PERFORMERS)),
        new_contributor_weeks=weeks,
        new_contributor_threshold=_as_int(merged.get('new_contributor_threshold'), 2),
        max_issue_difference=max(0, _as_int(merged.get('max_issue_difference'), 2)),
        contributor_aliases=_as_alias_map(merged.get('contributor_aliases')),
        partner_aliases=_as_alias_map(merged.get('partner_aliases')),
    )


def load_settings(path: Optional[str] = None) -> PipelineSettings:
    """
    Load pipeline settings from a YAML file.

    When no path is given the default location is tried and silently skipped if absent.
    An explicit path that is missing or unparseable raises SettingsError.
    """
    explicit = path is not None
    path = path or default_settings_path()
    if not os.path.exists(path):
        if explicit:
            raise SettingsError(f"Settings file not found at: {path}")
        return PipelineSettings()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as ex:
        if explicit:
            raise SettingsError(f"Failed to load settings from {path}: {ex}")
        log.warning("Ignoring unreadable settings file %s: %s", path, ex)
        return PipelineSettings()
    if not isinstance(data, dict):
        if explicit:
            raise SettingsError(f"Settings file {path} must contain a mapping")
        log.warning("Ignoring settings file %s: expected a mapping", path)
        return PipelineSettings()
    return settings_from_mapping(data)
