"""Loading of configuration mappings from TOML, JSON or YAML files."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence

import json
import tomllib

import yaml


ConfigLoader = Callable[[Any], Mapping[str, Any]]

FILE_LOADERS: Dict[str, ConfigLoader] = {
    ".toml": tomllib.load,
    ".json": json.load,
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
}
"""Decoder per file suffix. TOML is read in binary mode, the rest as UTF-8 text."""


def load_config_file(path: Path) -> Mapping[str, Any]:
    suffix = path.suffix.lower()
    try:
        loader = FILE_LOADERS[suffix]
    except KeyError:
        supported = ", ".join(sorted(FILE_LOADERS))
        raise ValueError(f"Unsupported configuration file extension '{suffix}' (supported: {supported})") from None

    if suffix == ".toml":
        with path.open("rb") as handle:
            data = loader(handle)
    else:
        with path.open("r", encoding="utf-8") as handle:
            data = loader(handle)

    # An empty YAML document decodes to None
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError(f"Configuration file '{path}' must contain a mapping at the root")
    return data


def load_layered_config(path: Path, overlays: Iterable[Path] = ()) -> Dict[str, Any]:
    """Load ``path`` and deep-merge each existing overlay on top, in order."""

    data: Dict[str, Any] = dict(load_config_file(path))
    for overlay in overlays:
        if overlay != path and overlay.is_file():
            data = merge_mappings(data, load_config_file(overlay))
    return data


def merge_mappings(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep merge; nested tables merge key by key, anything else is replaced."""

    merged: Dict[str, Any] = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            value = merge_mappings(current, value)
        merged[key] = value
    return merged


def normalize_string_list(value: Any, *, field_name: str | None = None) -> List[str]:
    """Accept a single string or a sequence of strings; blank entries are dropped."""

    prefix = f"{field_name} " if field_name else ""
    if value is None:
        return []
    if isinstance(value, (str, bytes)):
        value = [value]
    elif not isinstance(value, Sequence):
        raise TypeError(f"{prefix}must be a string or sequence of strings")

    items: List[str] = []
    for item in value:
        if not isinstance(item, (str, bytes)):
            raise TypeError(f"{prefix}entries must be strings")
        text = (item.decode() if isinstance(item, bytes) else item).strip()
        if text:
            items.append(text)
    return items


def reject_unknown_keys(data: Mapping[str, Any], allowed: set[str], *, section: str) -> None:
    unknown = sorted(str(key) for key in data if str(key) not in allowed)
    if unknown:
        raise ValueError(f"Section '{section}' contains unknown keys: {', '.join(unknown)}")


__all__ = [
    "ConfigLoader",
    "FILE_LOADERS",
    "load_config_file",
    "load_layered_config",
    "merge_mappings",
    "normalize_string_list",
    "reject_unknown_keys",
]
