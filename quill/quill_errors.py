"""
Exception types raised by the quill runtime.

Structural misuse by host glue code (a missing member name, importing a
string) raises the builtin-derived errors immediately. Script-level faults
(calling convention, argument conversion, host failures during a call) raise
ScriptRuntimeError subclasses that carry the source location of the node
that triggered them.
"""

from typing import Any, Dict, Optional


Loc = Dict[str, Any]


def format_loc(loc: Optional[Loc]) -> str:
    """Render a node location as 'line L, col C' (empty when unknown)."""
    if not loc or loc.get('line') is None:
        return ""
    col = loc.get('col')
    col_info = f", col {col}" if col is not None else ""
    return f"line {loc.get('line')}{col_info}"


class InvalidArgumentError(ValueError):
    """A required identifier (member name, function) was None."""
    def __init__(self, name: str):
        super().__init__(f"Argument '{name}' cannot be None")
        self.name = name


class UnsupportedTypeError(TypeError):
    """Raised when trying to import a value that has no members to import."""
    def __init__(self, obj_type: type):
        super().__init__(f"Unsupported object type [{obj_type.__name__}]. Expecting plain class or instance")
        self.obj_type = obj_type


class ScriptRuntimeError(Exception):
    """Base class for errors surfaced to script authors."""
    def __init__(self, loc: Optional[Loc], message: str):
        super().__init__(message)
        self.loc = loc
        self.message = message

    def __str__(self) -> str:
        where = format_loc(self.loc)
        if where:
            return f"Error on {where}: {self.message}"
        return self.message


class ScriptConversionError(ScriptRuntimeError):
    """A value could not be converted to the requested type."""
    def __init__(self, loc: Optional[Loc], value: Any, dest_type: Any):
        super().__init__(loc, f"Unable to convert type [{type(value).__name__}] to [{_type_name(dest_type)}]")
        self.value = value
        self.dest_type = dest_type


class ArityMismatchError(ScriptRuntimeError):
    def __init__(self, loc: Optional[Loc], supplied: int, expected: int, variadic: bool, call_site: str):
        expecting = f"at least {expected - 1}" if variadic else str(expected)
        super().__init__(loc, f"Invalid number of arguments passed [{supplied}] while expecting [{expecting}] for [{call_site}]")
        self.supplied = supplied
        self.expected = expected
        self.variadic = variadic
        self.call_site = call_site


class ArgumentConversionError(ScriptRuntimeError):
    """An argument failed conversion; the original error is in __cause__."""
    def __init__(self, loc: Optional[Loc], index: int, source_type: type, dest_type: Any):
        super().__init__(loc, f"Unable to convert parameter #{index} of type [{source_type.__name__}] to type [{_type_name(dest_type)}]")
        self.index = index
        self.source_type = source_type
        self.dest_type = dest_type


class CallFailedError(ScriptRuntimeError):
    """The host function raised; the original error is in __cause__."""
    def __init__(self, loc: Optional[Loc], call_site: str):
        super().__init__(loc, f"Unexpected exception when calling {call_site}")
        self.call_site = call_site


def _type_name(tp: Any) -> str:
    name = getattr(tp, '__name__', None)
    if isinstance(name, str):
        return name
    return str(tp).replace('typing.', '')
