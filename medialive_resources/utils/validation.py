"""
Field validators for desired states.

Each check returns a list of violation messages (empty when the value is fine) and ignores absent
(``None``) values, so optional fields are only checked when they are set. Required fields are checked
separately with ``check_required``.
"""
import ipaddress
from typing import Any, Iterable, List, Mapping, Optional, Sequence


def _path(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def check_required(obj: Mapping[str, Any], fields: Iterable[str], prefix: str = "") -> List[str]:
    return [
        f"{_path(prefix, name)}: required field is missing"
        for name in fields
        if obj.get(name) is None or obj.get(name) == ""
    ]


def check_one_of(value: Any, allowed: Sequence[str], path: str) -> List[str]:
    if value is None or value in allowed:
        return []
    return [f"{path}: expected one of {list(allowed)}, got {value!r}"]


def check_int_between(value: Any, minimum: int, maximum: int, path: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, bool) or not isinstance(value, int):
        return [f"{path}: expected an integer, got {value!r}"]
    if not minimum <= value <= maximum:
        return [f"{path}: expected to be in the range ({minimum} - {maximum}), got {value}"]
    return []


def check_size_between(
    values: Optional[Sequence[Any]], path: str, minimum: int = 0, maximum: Optional[int] = None
) -> List[str]:
    if values is None:
        return []
    size = len(values)
    if size < minimum:
        return [f"{path}: attribute supports {minimum} item minimum, config has {size} declared"]
    if maximum is not None and size > maximum:
        return [f"{path}: attribute supports {maximum} item maximum, config has {size} declared"]
    return []


def check_string_list(values: Optional[Sequence[Any]], path: str) -> List[str]:
    if values is None:
        return []
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        return [f"{path}: expected a list of strings, got {values!r}"]
    return [
        f"{path}[{i}]: expected a string, got {value!r}"
        for i, value in enumerate(values)
        if not isinstance(value, str)
    ]


def check_ipv4_cidr_network_address(value: Any, path: str) -> List[str]:
    """The value must be an IPv4 CIDR block whose host bits are all zero, e.g. ``10.0.0.0/16``."""
    if value is None:
        return []
    try:
        network = ipaddress.IPv4Network(value, strict=False)
    except (ValueError, TypeError):
        return [f"{path}: {value!r} is not a valid IPv4 CIDR block"]
    if "/" not in str(value) or str(network) != value:
        return [f"{path}: {value!r} is not a valid IPv4 CIDR network address, expected {network}"]
    return []
