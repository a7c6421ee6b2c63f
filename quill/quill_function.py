"""
Callable script values wrapping host functions.
"""

import inspect
import types
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Tuple

from quill.quill_config import dbg
from quill.quill_convert import to_object
from quill.quill_errors import ArityMismatchError, ArgumentConversionError, CallFailedError

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


class IScriptCustomFunction(ABC):
    """A value the evaluator can invoke as a function."""

    @abstractmethod
    def evaluate(self, context, caller_context, arguments: List[Any], block_statement=None) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class ParameterSignature:
    """Formal parameters of a wrapped callable.

    When `variadic` is set, the last entry stands for the `*args` tail and
    any number of trailing arguments (including none) binds to it.
    """
    names: Tuple[str, ...]
    types: Tuple[Any, ...]
    variadic: bool = False

    @property
    def count(self) -> int:
        return len(self.types)

    @property
    def fixed_count(self) -> int:
        return self.count - 1 if self.variadic else self.count

    @classmethod
    def from_callable(cls, func: Callable) -> 'ParameterSignature':
        try:
            try:
                sig = inspect.signature(func, eval_str=True)
            except (NameError, AttributeError, SyntaxError):
                # Annotations referencing names that are not importable here
                sig = inspect.signature(func)
        except (ValueError, TypeError):
            # Builtins without signature metadata accept anything
            return cls(("args",), (Any,), True)

        names: List[str] = []
        param_types: List[Any] = []
        variadic = False
        for param in sig.parameters.values():
            if param.kind in _POSITIONAL:
                names.append(param.name)
                param_types.append(Any if param.annotation is param.empty else param.annotation)
            elif param.kind is inspect.Parameter.VAR_POSITIONAL:
                names.append(param.name)
                param_types.append(list)
                variadic = True
        return cls(tuple(names), tuple(param_types), variadic)

    def __str__(self) -> str:
        parts = list(self.names)
        if self.variadic:
            parts[-1] = "*" + parts[-1]
        return f"({', '.join(parts)})"


class ObjectFunctionWrapper(IScriptCustomFunction):
    """Wraps a host function, bound to `target` unless it is static."""

    def __init__(self, target: Any, method: Callable):
        self.target = target
        self.method = method
        self._callable = method if target is None else types.MethodType(method, target)
        self.signature = ParameterSignature.from_callable(self._callable)

    @property
    def name(self) -> str:
        return getattr(self.method, '__name__', type(self.method).__name__)

    def _call_site(self, caller_context) -> str:
        if caller_context is None:
            return self.name
        return str(caller_context)

    def evaluate(self, context, caller_context, arguments, block_statement=None):
        loc = getattr(caller_context, 'loc', None)
        sig = self.signature
        count = len(arguments)
        if (sig.variadic and count < sig.count - 1) or (not sig.variadic and count != sig.count):
            raise ArityMismatchError(loc, count, sig.count, sig.variadic, self._call_site(caller_context))

        convert = getattr(context, 'to_object', None) or to_object
        fixed_count = sig.fixed_count
        fixed_args = []
        rest_args = []
        for i, arg in enumerate(arguments):
            in_tail = i >= fixed_count
            dest_type = Any if in_tail else sig.types[i]
            try:
                value = convert(loc, arg, dest_type)
            except Exception as e:
                raise ArgumentConversionError(loc, i, type(arg), dest_type) from e
            if in_tail:
                rest_args.append(value)
            else:
                fixed_args.append(value)

        dbg("call", self.name, "argc", count, "rest", len(rest_args))
        try:
            return self._callable(*fixed_args, *rest_args)
        except Exception as e:
            raise CallFailedError(loc, self._call_site(caller_context)) from e

    def __repr__(self) -> str:
        bound = "" if self.target is None else f" bound to {type(self.target).__name__}"
        return f"<ObjectFunctionWrapper {self.name}{self.signature}{bound}>"
