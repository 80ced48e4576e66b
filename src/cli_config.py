"""Settings file overrides for runtime tunables.

Settings are read from YAML and applied onto Constants before a command
runs. CLI flags still take precedence since they are consulted after.
A bad settings file is logged and otherwise ignored.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Dict, Optional, Tuple

import yaml

from constants import Constants

logger = logging.getLogger(__name__)


def _string_list(value: Any) -> list:
    if not isinstance(value, list) or not all(isinstance(v, (str, int)) for v in value):
        raise ValueError("expected a list of strings")
    return [str(v) for v in value]


def _text(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError("expected a non-empty string")
    return value.strip()


# (section, key) -> (Constants attribute, coercion)
SETTINGS: Dict[Tuple[str, str], Tuple[str, Callable[[Any], Any]]] = {
    ("http", "request_timeout"): ("REQUEST_TIMEOUT", int),
    ("http", "retry_max"): ("HTTP_RETRY_MAX", int),
    ("http", "retry_base_delay_sec"): ("HTTP_RETRY_BASE_DELAY_SEC", float),
    ("defaults", "repository"): ("DEFAULT_REPOSITORY", _text),
    ("defaults", "group"): ("DEFAULT_GROUP_ID", _text),
    ("launcher", "main"): ("LAUNCHER_MAIN", _text),
    ("jlink", "options"): ("JLINK_OPTIONS", _string_list),
}


def load_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the settings mapping from path, or from $RYM_SETTINGS.

    Returns an empty mapping when no file is configured or it is unusable.
    """
    path = path or os.environ.get(Constants.ENV_SETTINGS)
    if not path:
        return {}
    if not os.path.isfile(path):
        logger.warning("Settings file not found: %s", path)
        return {}
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to load settings from %s: %s", path, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring settings file %s: top level is not a mapping", path)
        return {}
    return data


def apply_settings(settings: Dict[str, Any]) -> int:
    """Apply known settings onto Constants; return how many were applied."""
    applied = 0
    for (section, key), (attribute, coerce) in SETTINGS.items():
        block = settings.get(section)
        if not isinstance(block, dict) or key not in block:
            continue
        try:
            value = coerce(block[key])
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring setting %s.%s: %s", section, key, e)
            continue
        setattr(Constants, attribute, value)
        applied += 1
    return applied
