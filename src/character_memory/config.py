"""Settings loading and updates for Character Memory."""

import os
from dataclasses import fields, replace
from typing import Any, Mapping

from character_memory.models import DEFAULT_THRESHOLD, Settings

ENV_PREFIX = "CHARACTER_MEMORY_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"Not a boolean: {value!r}")


def _parse_threshold(value: Any) -> int:
    # Non-numeric or zero input falls back to the default, like the settings form
    try:
        threshold = int(value)
    except (TypeError, ValueError):
        return DEFAULT_THRESHOLD
    return threshold or DEFAULT_THRESHOLD


def _coerce(name: str, value: Any) -> Any:
    if name == "messages_before_summarize":
        return _parse_threshold(value)

    default = getattr(Settings(), name)
    if isinstance(default, bool):
        return _parse_bool(value)
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    return str(value)


def update_settings(settings: Settings, changes: Mapping[str, Any]) -> Settings:
    """Return a copy of ``settings`` with ``changes`` applied and validated.

    Raises:
        KeyError: An unknown setting name was given
        ValueError: A value cannot be converted or is out of range
    """
    known = {f.name for f in fields(Settings)}
    unknown = set(changes) - known
    if unknown:
        raise KeyError(f"Unknown settings: {', '.join(sorted(unknown))}")

    updated = replace(settings, **{name: _coerce(name, value) for name, value in changes.items()})
    updated.validate()
    return updated


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from defaults overridden by CHARACTER_MEMORY_* variables.

    ``CHARACTER_MEMORY_MESSAGES_BEFORE_SUMMARIZE=10`` sets
    ``messages_before_summarize`` and so on for every field.
    """
    environ = os.environ if environ is None else environ
    changes = {}
    for f in fields(Settings):
        key = ENV_PREFIX + f.name.upper()
        if key in environ:
            changes[f.name] = environ[key]
    return update_settings(Settings(), changes)
