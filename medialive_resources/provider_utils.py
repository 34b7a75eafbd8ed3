"""
A set of utils for use in resource providers.

Keep imports of the rest of the package out of here, these helpers only deal with plain dicts.
"""

import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Optional


def remove_none_values(obj):
    """Remove None values (recursively) in the given object."""
    if isinstance(obj, dict):
        return {k: remove_none_values(v) for k, v in obj.items() if v is not None}
    elif isinstance(obj, list):
        return [remove_none_values(o) for o in obj if o is not None]
    else:
        return obj


def normalize_value(value: Any) -> Any:
    """
    Returns a comparable form of a declared value. Lists are treated as sets, so two declarations
    that only differ in the order of their list items are considered equal. Empty blocks and lists
    are the same as absent ones.
    """
    if isinstance(value, dict):
        result = {k: normalize_value(v) for k, v in value.items()}
        return {k: v for k, v in result.items() if v is not None} or None
    if isinstance(value, (list, tuple, set)):
        items = [normalize_value(v) for v in value]
        return sorted(items, key=lambda item: json.dumps(item, sort_keys=True, default=str)) or None
    return value


def has_changed(old: Optional[dict], new: Optional[dict], key: str) -> bool:
    """Whether the declared value of ``key`` differs between the two states."""
    return normalize_value((old or {}).get(key)) != normalize_value((new or {}).get(key))


def changed_keys(old: Optional[dict], new: Optional[dict], keys: list[str]) -> list[str]:
    return [key for key in keys if has_changed(old, new, key)]


def copy_model(model: Optional[dict]) -> dict:
    return deepcopy(model) if model else {}


def get_schema_path(file_path: Path) -> dict:
    file_name_base = file_path.name.removesuffix(".py")
    with Path(file_path).parent.joinpath(f"{file_name_base}.schema.json").open() as fd:
        return json.load(fd)
