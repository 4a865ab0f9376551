"""Pure transformations and file I/O for Claude settings JSON.

The transformation functions never mutate their input; they return new dicts,
so callers can compare before and after and only write when something changed.
"""

import copy
import json
from pathlib import Path
from typing import Any

from mcs.core.atomic_write import write_text_atomic
from mcs.core.constants import ENABLED_PLUGINS_KEY
from mcs.core.errors import SettingsFormatError


def load_settings(path: Path) -> dict[str, Any]:
    """Read a JSON settings file.

    Returns:
        Parsed settings, or an empty dict if the file does not exist

    Raises:
        SettingsFormatError: If the file is not a JSON object
    """
    if not path.exists():
        return {}
    content = path.read_text(encoding="utf-8")
    if not content.strip():
        return {}
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise SettingsFormatError(path, str(e)) from e
    if not isinstance(data, dict):
        raise SettingsFormatError(path, "top level is not an object")
    return data


def save_settings(path: Path, settings: dict[str, Any]) -> None:
    """Write settings with Claude's two-space indentation."""
    write_text_atomic(path, json.dumps(settings, indent=2) + "\n")


def deep_merge(
    base: dict[str, Any], overlay: dict[str, Any]
) -> tuple[dict[str, Any], list[str]]:
    """Merge `overlay` into a copy of `base`, key by key.

    Existing values win: a scalar already present in `base` is never
    overwritten. Nested objects merge recursively and lists gain the overlay
    items they lack.

    Returns:
        Tuple of (merged settings, dotted key paths that were added). List
        items appended to an existing list are not reported.
    """
    merged = copy.deepcopy(base)
    added: list[str] = []
    _merge_into(merged, overlay, prefix="", added=added)
    return merged, added


def _merge_into(
    target: dict[str, Any], overlay: dict[str, Any], prefix: str, added: list[str]
) -> None:
    for key, value in overlay.items():
        path = f"{prefix}{key}"
        if key not in target:
            target[key] = copy.deepcopy(value)
            added.append(path)
            continue

        existing = target[key]
        if isinstance(existing, dict) and isinstance(value, dict):
            _merge_into(existing, value, prefix=f"{path}.", added=added)
        elif isinstance(existing, list) and isinstance(value, list):
            for item in value:
                if item not in existing:
                    existing.append(copy.deepcopy(item))


def remove_key_paths(
    settings: dict[str, Any], key_paths: list[str]
) -> tuple[dict[str, Any], list[str]]:
    """Delete dotted key paths from a copy of `settings`.

    Objects left empty by a removal are pruned as well, so removing the only
    key a merge added to `env` also removes `env`.

    Returns:
        Tuple of (updated settings, key paths that were actually present)
    """
    updated = copy.deepcopy(settings)
    removed: list[str] = []
    for key_path in key_paths:
        if _remove_path(updated, key_path.split(".")):
            removed.append(key_path)
    return updated, removed


def _remove_path(node: dict[str, Any], parts: list[str]) -> bool:
    head = parts[0]
    if head not in node:
        return False
    if len(parts) == 1:
        del node[head]
        return True

    child = node[head]
    if not isinstance(child, dict):
        return False
    removed = _remove_path(child, parts[1:])
    if removed and not child:
        del node[head]
    return removed


def set_plugin_enabled(
    settings: dict[str, Any], plugin_name: str, enabled: bool
) -> dict[str, Any]:
    """Return settings with `enabledPlugins[plugin_name]` set."""
    updated = copy.deepcopy(settings)
    plugins = updated.setdefault(ENABLED_PLUGINS_KEY, {})
    plugins[plugin_name] = enabled
    return updated


def remove_plugin(settings: dict[str, Any], plugin_name: str) -> tuple[dict[str, Any], bool]:
    """Return settings without the plugin entry, and whether it was present."""
    updated = copy.deepcopy(settings)
    plugins = updated.get(ENABLED_PLUGINS_KEY)
    if not isinstance(plugins, dict) or plugin_name not in plugins:
        return updated, False
    del plugins[plugin_name]
    if not plugins:
        del updated[ENABLED_PLUGINS_KEY]
    return updated, True


def is_plugin_enabled(settings: dict[str, Any], plugin_name: str) -> bool:
    plugins = settings.get(ENABLED_PLUGINS_KEY)
    return isinstance(plugins, dict) and plugins.get(plugin_name) is True
