"""Typed parameter readers over an untyped params mapping.

Pure Python, no framework dependencies.
"""

import json
from typing import Any, Dict, List, Mapping, Optional, Sequence

from matrix_actions.domain.errors import InvalidParameterError, MissingParameterError
from matrix_actions.domain.models import ParamField

_TRUE_WORDS = ("1", "true", "yes", "on")
_FALSE_WORDS = ("0", "false", "no", "off", "")


def read_string_param(
    params: Mapping[str, Any],
    key: str,
    *,
    required: bool = False,
    allow_empty: bool = False,
    trim: bool = True,
    label: Optional[str] = None,
) -> Optional[str]:
    """Read a string value.

    Numbers are accepted and stringified. With ``trim`` (the default) the
    value is stripped before the emptiness check; message bodies pass
    ``trim=False`` to keep their whitespace. Returns ``None`` for a missing
    optional value.
    """
    name = label or key
    raw = params.get(key)
    if raw is None:
        if required:
            raise MissingParameterError(name)
        return None
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
        raise InvalidParameterError(name, "must be a string")
    value = raw if isinstance(raw, str) else str(raw)
    if trim:
        value = value.strip()
    if not value and not allow_empty:
        if required:
            raise MissingParameterError(name)
        return None
    return value


def read_number_param(
    params: Mapping[str, Any],
    key: str,
    *,
    required: bool = False,
    integer: bool = False,
    minimum: Optional[float] = None,
    label: Optional[str] = None,
) -> Optional[float]:
    """Read a numeric value from a number or a numeric string.

    With ``integer`` the value must be integral and is returned as ``int``.
    ``minimum`` is an inclusive lower bound.
    """
    name = label or key
    raw = params.get(key)
    if isinstance(raw, str):
        raw = raw.strip() or None
    if raw is None:
        if required:
            raise MissingParameterError(name)
        return None
    if isinstance(raw, bool):
        raise InvalidParameterError(name, "must be a number")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidParameterError(name, "must be a number")
    if value != value or value in (float("inf"), float("-inf")):
        raise InvalidParameterError(name, "must be a finite number")
    if minimum is not None and value < minimum:
        raise InvalidParameterError(name, f"must be at least {minimum:g}")
    if integer:
        if not value.is_integer():
            raise InvalidParameterError(name, "must be an integer")
        return int(value)
    return value


def read_bool_param(
    params: Mapping[str, Any],
    key: str,
    *,
    required: bool = False,
    label: Optional[str] = None,
) -> Optional[bool]:
    name = label or key
    raw = params.get(key)
    if raw is None:
        if required:
            raise MissingParameterError(name)
        return None
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return raw != 0
    if isinstance(raw, str):
        word = raw.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise InvalidParameterError(name, "must be a boolean")


def read_json_list_param(
    params: Mapping[str, Any],
    key: str,
    *,
    required: bool = False,
    label: Optional[str] = None,
) -> Optional[List[str]]:
    """Read a list of strings, given either as a list or a JSON array string."""
    name = label or key
    raw = params.get(key)
    if isinstance(raw, str):
        if not raw.strip():
            raw = None
        else:
            try:
                raw = json.loads(raw)
            except ValueError:
                raise InvalidParameterError(name, "must be a JSON array")
    if raw is None:
        if required:
            raise MissingParameterError(name)
        return None
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise InvalidParameterError(name, "must be a list of strings")
    return list(raw)


def split_list_param(value: Optional[str]) -> List[str]:
    """Split a comma-separated value, trimming and dropping empty entries."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _read_one(params: Mapping[str, Any], name: str, spec: ParamField) -> Any:
    if spec.kind == "string":
        return read_string_param(
            params, name, allow_empty=spec.allow_empty, trim=spec.trim, label=spec.key
        )
    if spec.kind in ("integer", "number"):
        return read_number_param(
            params,
            name,
            integer=spec.kind == "integer",
            minimum=spec.minimum,
            label=spec.key,
        )
    if spec.kind == "bool":
        return read_bool_param(params, name, label=spec.key)
    if spec.kind == "json_list":
        return read_json_list_param(params, name, label=spec.key)
    raise ValueError(f"Unknown param kind: {spec.kind}")


def extract_params(
    params: Mapping[str, Any], fields: Sequence[ParamField]
) -> Dict[str, Any]:
    """Run every field contract over ``params``.

    Aliases are tried in order and a blank alias falls through to the next
    one. A required field with no usable alias raises
    ``MissingParameterError`` named after the field's label.
    """
    args: Dict[str, Any] = {}
    for spec in fields:
        value = None
        for name in spec.names:
            value = _read_one(params, name, spec)
            if value is not None:
                break
        if value is None and spec.required:
            raise MissingParameterError(spec.key)
        args[spec.key] = value
    return args
