"""
Default value conversion used when script values are passed to host
functions. Handles the script-native scalars (bool, int, float, str), typing
constructs (Any, Optional/Union, parametrized generics) and falls back to an
isinstance check for everything else.
"""

import inspect
import types
import typing
from typing import Any, Optional

from quill.quill_errors import Loc, ScriptConversionError


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return value is not None


def to_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_int(loc: Optional[Loc], value: Any) -> int:
    """Floats convert only when integral; 2.7 is rejected rather than truncated."""
    if value is None:
        return 0
    if isinstance(value, (bool, int)):
        return int(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ScriptConversionError(loc, value, int)


def to_float(loc: Optional[Loc], value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            pass
    raise ScriptConversionError(loc, value, float)


def _is_any(dest_type: Any) -> bool:
    return dest_type in (Any, object, None, inspect.Parameter.empty)


def to_object(loc: Optional[Loc], value: Any, dest_type: Any) -> Any:
    """Converts `value` to `dest_type`, raising ScriptConversionError on mismatch."""
    if _is_any(dest_type):
        return value

    origin = typing.get_origin(dest_type)
    if origin is typing.Union or origin is types.UnionType:
        members = typing.get_args(dest_type)
        if value is None and type(None) in members:
            return None
        # Prefer an exact match before trying lossy conversions
        for member in members:
            if isinstance(member, type) and type(value) is member:
                return value
        for member in members:
            if member is type(None):
                continue
            try:
                return to_object(loc, value, member)
            except ScriptConversionError:
                continue
        raise ScriptConversionError(loc, value, dest_type)
    if origin is typing.Annotated:
        return to_object(loc, value, typing.get_args(dest_type)[0])
    if origin is not None:
        # list[int], dict[str, Any], Callable[...]: check the container only
        dest_type = origin

    if dest_type is bool:
        return to_bool(value)
    if dest_type is str:
        return to_string(value)
    if dest_type is int:
        return to_int(loc, value)
    if dest_type is float:
        return to_float(loc, value)

    if value is None:
        return None
    if isinstance(dest_type, type):
        if isinstance(value, dest_type):
            return value
        raise ScriptConversionError(loc, value, dest_type)
    # Unresolved string annotations and other exotic hints are not checked
    return value
