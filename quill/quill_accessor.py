"""
Member accessors: the uniform way the evaluator reads and writes members of
heterogeneous runtime values.

A value kind that wants to expose members declares an `accessor` class
attribute holding an IMemberAccessor (ScriptObject does). Mappings and plain
Python objects get the accessors defined here.
"""

import collections.abc
import dataclasses
from abc import ABC, abstractmethod
from typing import Any


class IMemberAccessor(ABC):
    """Capability contract for any member-bearing value."""

    @abstractmethod
    def has_member(self, target: Any, member: str) -> bool: raise NotImplementedError

    @abstractmethod
    def get_value(self, target: Any, member: str) -> Any: raise NotImplementedError

    @abstractmethod
    def try_set_value(self, target: Any, member: str, value: Any) -> bool:
        """Write `value`; returns False when the member is locked."""
        raise NotImplementedError

    @abstractmethod
    def set_read_only(self, target: Any, member: str, read_only: bool): raise NotImplementedError

    @property
    @abstractmethod
    def has_read_only(self) -> bool:
        """True when set_read_only is meaningful for this value kind."""
        raise NotImplementedError


class NullAccessor(IMemberAccessor):
    """Accessor for None: no members and every write is rejected."""

    def has_member(self, target, member):
        return False

    def get_value(self, target, member):
        return None

    def try_set_value(self, target, member, value):
        return False

    def set_read_only(self, target, member, read_only):
        pass

    @property
    def has_read_only(self):
        return False


class DictionaryAccessor(IMemberAccessor):
    """Accessor for mutable mappings keyed by member name."""

    def has_member(self, target, member):
        return member in target

    def get_value(self, target, member):
        return target.get(member)

    def try_set_value(self, target, member, value):
        target[member] = value
        return True

    def set_read_only(self, target, member, read_only):
        pass

    @property
    def has_read_only(self):
        return False


class TypedObjectAccessor(IMemberAccessor):
    """Accessor for plain Python objects through their public attributes."""

    def has_member(self, target, member):
        if member.startswith('_'):
            return False
        return hasattr(target, member)

    def get_value(self, target, member):
        if member.startswith('_'):
            return None
        return getattr(target, member, None)

    def try_set_value(self, target, member, value):
        if member.startswith('_') or not self._is_writable(target, member):
            return False
        try:
            setattr(target, member, value)
        except (AttributeError, TypeError):
            # Builtins and __slots__ classes refuse unknown attributes.
            return False
        return True

    def set_read_only(self, target, member, read_only):
        pass

    @property
    def has_read_only(self):
        return False

    def _is_writable(self, target, member) -> bool:
        if dataclasses.is_dataclass(target) and target.__dataclass_params__.frozen:
            return False
        from quill.quill_import import is_final_attribute
        cls = type(target)
        if is_final_attribute(cls, member):
            return False
        for klass in cls.__mro__:
            attrs = vars(klass)
            if member not in attrs:
                continue
            if isinstance(attrs[member], property):
                return attrs[member].fset is not None
            break
        return True


NULL_ACCESSOR = NullAccessor()
DICTIONARY_ACCESSOR = DictionaryAccessor()
TYPED_OBJECT_ACCESSOR = TypedObjectAccessor()


def get_member_accessor(target: Any) -> IMemberAccessor:
    """Returns the accessor the evaluator should use for `target`."""
    if target is None:
        return NULL_ACCESSOR
    accessor = getattr(type(target), 'accessor', None)
    if isinstance(accessor, IMemberAccessor):
        return accessor
    if isinstance(target, collections.abc.MutableMapping):
        return DICTIONARY_ACCESSOR
    return TYPED_OBJECT_ACCESSOR
