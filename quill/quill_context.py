"""
A minimal evaluation context: a stack of global scopes, expression
evaluation, and resolution of assignment targets through member accessors.
"""

import collections.abc
from typing import Any, Dict, List, Optional

from quill.quill_accessor import IMemberAccessor, get_member_accessor
from quill.quill_config import dbg
from quill.quill_convert import to_int, to_object
from quill.quill_errors import InvalidArgumentError, Loc, ScriptRuntimeError
from quill.quill_object import ScriptObject
from quill.quill_syntax import (
    ScriptIndexerExpression, ScriptMemberExpression, ScriptNode, ScriptVariable
)


class TemplateContext:
    """Evaluation state shared by the nodes of one script run."""

    def __init__(self, builtins: Optional[ScriptObject] = None):
        self.builtins = builtins if builtins is not None else ScriptObject()
        self._globals: List[Any] = [self.builtins]
        self._member_accessors: Dict[type, IMemberAccessor] = {}
        self.current_node: Optional[ScriptNode] = None

    # --- Scopes ---

    @property
    def current_global(self) -> Any:
        return self._globals[-1]

    def push_global(self, scope: Any):
        """Makes `scope` the innermost global scope."""
        if scope is None:
            raise InvalidArgumentError("scope")
        self._globals.append(scope)

    def pop_global(self) -> Any:
        if len(self._globals) == 1:
            raise RuntimeError("Cannot pop the builtins scope")
        return self._globals.pop()

    # --- Accessors and conversion ---

    def register_member_accessor(self, cls: type, accessor: IMemberAccessor):
        """Use `accessor` for values of `cls` (and subclasses) in this context."""
        self._member_accessors[cls] = accessor

    def get_member_accessor(self, target: Any) -> IMemberAccessor:
        if target is not None and self._member_accessors:
            for cls in type(target).__mro__:
                accessor = self._member_accessors.get(cls)
                if accessor is not None:
                    return accessor
        return get_member_accessor(target)

    def to_object(self, loc: Optional[Loc], value: Any, dest_type: Any) -> Any:
        return to_object(loc, value, dest_type)

    # --- Evaluation ---

    def evaluate(self, node: Optional[ScriptNode]) -> Any:
        if node is None:
            return None
        previous = self.current_node
        self.current_node = node
        try:
            return node.evaluate(self)
        finally:
            self.current_node = previous

    def _find_scope(self, name: str) -> Optional[Any]:
        for scope in reversed(self._globals):
            if self.get_member_accessor(scope).has_member(scope, name):
                return scope
        return None

    def get_value(self, target: ScriptNode) -> Any:
        """Reads the value denoted by a variable, member or indexer expression."""
        match target:
            case ScriptVariable(name=name):
                scope = self._find_scope(name)
                if scope is None:
                    return None
                return self.get_member_accessor(scope).get_value(scope, name)
            case ScriptMemberExpression():
                obj = self.evaluate(target.target)
                return self.get_member_accessor(obj).get_value(obj, target.member.name)
            case ScriptIndexerExpression():
                obj = self.evaluate(target.target)
                index = self.evaluate(target.index)
                return self._get_index(target, obj, index)
            case _:
                raise ScriptRuntimeError(getattr(target, 'loc', None), f"Unsupported expression [{target}]")

    def set_value(self, target: ScriptNode, value: Any):
        """Stores `value` into the location denoted by `target`.

        Raises ScriptRuntimeError when the location is read-only or cannot be
        assigned.
        """
        loc = getattr(target, 'loc', None)
        match target:
            case ScriptVariable(name=name):
                scope = self._find_scope(name)
                if scope is None:
                    scope = self.current_global
                dbg("set", name, "=", repr(value))
                if not self.get_member_accessor(scope).try_set_value(scope, name, value):
                    raise ScriptRuntimeError(loc, f"Cannot set value on the readonly variable [{name}]")
            case ScriptMemberExpression():
                obj = self.evaluate(target.target)
                member = target.member.name
                if obj is None:
                    raise ScriptRuntimeError(loc, f"Object [{target.target}] is null. Cannot set member [{member}]")
                dbg("set member", member, "=", repr(value))
                if not self.get_member_accessor(obj).try_set_value(obj, member, value):
                    raise ScriptRuntimeError(loc, f"Cannot set a value for the readonly member [{member}] in [{target}]")
            case ScriptIndexerExpression():
                obj = self.evaluate(target.target)
                index = self.evaluate(target.index)
                self._set_index(target, obj, index, value)
            case _:
                raise ScriptRuntimeError(loc, f"Invalid assignment target [{target}]")

    # --- Indexers ---

    def _get_index(self, node: ScriptIndexerExpression, obj: Any, index: Any) -> Any:
        if obj is None:
            return None
        if index is None:
            raise ScriptRuntimeError(node.loc, f"Cannot access target [{node.target}] with a null indexer")
        if isinstance(obj, ScriptObject):
            return obj[str(index)]
        if isinstance(obj, collections.abc.Mapping):
            return obj.get(index)
        if isinstance(obj, collections.abc.Sequence):
            i = to_int(node.loc, index)
            if -len(obj) <= i < len(obj):
                return obj[i]
            return None
        return self.get_member_accessor(obj).get_value(obj, str(index))

    def _set_index(self, node: ScriptIndexerExpression, obj: Any, index: Any, value: Any):
        if obj is None:
            raise ScriptRuntimeError(node.loc, f"Object [{node.target}] is null. Cannot assign an indexer")
        if index is None:
            raise ScriptRuntimeError(node.loc, f"Cannot assign target [{node.target}] with a null indexer")
        dbg("set index", repr(index), "=", repr(value))
        if isinstance(obj, ScriptObject):
            # Indexer assignment redefines the member even if it is read-only
            obj[str(index)] = value
        elif isinstance(obj, collections.abc.MutableMapping):
            obj[index] = value
        elif isinstance(obj, collections.abc.MutableSequence):
            i = to_int(node.loc, index)
            if i < 0:
                i += len(obj)
            if i < 0:
                raise ScriptRuntimeError(node.loc, f"Index [{index}] is out of range for [{node.target}]")
            while len(obj) <= i:
                obj.append(None)
            obj[i] = value
        elif not self.get_member_accessor(obj).try_set_value(obj, str(index), value):
            raise ScriptRuntimeError(node.loc, f"Cannot set a value for the readonly member [{index}] in [{node}]")
