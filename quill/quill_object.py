"""
The ScriptObject: a dynamic member bag used as a script scope and as the
runtime representation of script objects.

Each member is held in a slot pairing its value with a read-only flag. The
soft setter (try_set_value) respects the flag; the hard setter (set_value,
`obj[name] = value`) overrides it.
"""

import collections.abc
from typing import Any, Callable, Iterator, Optional, Tuple

from quill.quill_accessor import IMemberAccessor
from quill.quill_errors import InvalidArgumentError


class _Slot:
    __slots__ = ("value", "read_only")

    def __init__(self, value: Any = None, read_only: bool = False):
        self.value = value
        self.read_only = read_only

    def __repr__(self):
        lock = " read-only" if self.read_only else ""
        return f"<Slot {self.value!r}{lock}>"


class _MemberView(collections.abc.Sequence):
    """A restartable, lazily projected snapshot of a ScriptObject's slots."""
    __slots__ = ("_entries", "_project")

    def __init__(self, entries: Tuple[Tuple[str, _Slot], ...], project: Callable[[str, _Slot], Any]):
        self._entries = entries
        self._project = project

    def __len__(self):
        return len(self._entries)

    def __getitem__(self, idx):
        if isinstance(idx, slice):
            return [self._project(*entry) for entry in self._entries[idx]]
        return self._project(*self._entries[idx])

    def __iter__(self):
        for name, slot in self._entries:
            yield self._project(name, slot)

    def __repr__(self):
        return f"<MemberView {list(self)!r}>"


def _check_member(member: Any) -> str:
    if member is None:
        raise InvalidArgumentError("member")
    if not isinstance(member, str):
        raise TypeError(f"ScriptObject member must be a str, not {type(member)}")
    return member


class ScriptObjectAccessor(IMemberAccessor):
    """Routes member access straight to the ScriptObject store."""

    def has_member(self, target, member):
        return target.contains(member)

    def get_value(self, target, member):
        value, _ = target.try_get_value(member)
        return value

    def try_set_value(self, target, member, value):
        return target.try_set_value(member, value, False)

    def set_read_only(self, target, member, read_only):
        target.set_read_only(member, read_only)

    @property
    def has_read_only(self):
        return True


class ScriptObject:
    """Base runtime object used to store script members."""

    accessor: IMemberAccessor = ScriptObjectAccessor()

    def __init__(self):
        self._store: dict[str, _Slot] = {}

    # --- Bag operations ---

    def clear(self):
        """Removes all members."""
        self._store.clear()

    @property
    def count(self) -> int:
        return len(self._store)

    def __len__(self) -> int:
        return len(self._store)

    def contains(self, member: str) -> bool:
        return _check_member(member) in self._store

    def __contains__(self, member: Any) -> bool:
        return self.contains(member)

    def remove(self, member: str) -> bool:
        """Removes `member`; returns True if it existed."""
        return self._store.pop(_check_member(member), None) is not None

    def __delitem__(self, member: str):
        if not self.remove(member):
            raise KeyError(f"'{member}'")

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._store))

    # --- Reads ---

    def try_get_value(self, member: str) -> Tuple[Any, bool]:
        """Returns (value, found). An absent member yields (None, False)."""
        slot = self._store.get(_check_member(member))
        if slot is None:
            return None, False
        return slot.value, True

    def __getitem__(self, member: str) -> Any:
        value, _ = self.try_get_value(member)
        return value

    def get(self, member: str, default: Any = None) -> Any:
        value, found = self.try_get_value(member)
        return value if found else default

    def get_safe_value(self, member: str, expected_type: type) -> Any:
        """Gets `member` if it is an instance of `expected_type`.

        A value of any other type is replaced by None in this object, so
        later reads observe the same result.
        """
        value = self[member]
        if value is None:
            return None
        if not isinstance(value, expected_type):
            value = None
            self[member] = value
        return value

    # --- Writes ---

    def try_set_value(self, member: str, value: Any, read_only: bool = False) -> bool:
        """Sets a member unless the existing one is read-only.

        Returns False, leaving the member untouched, when it is locked.
        """
        slot = self._store.get(_check_member(member))
        if slot is not None and slot.read_only:
            return False
        self._store[member] = _Slot(value, read_only)
        return True

    def set_value(self, member: str, value: Any, read_only: bool = False):
        """Sets a member and its read-only state, overriding any lock."""
        self._store[_check_member(member)] = _Slot(value, read_only)

    def __setitem__(self, member: str, value: Any):
        self.set_value(member, value, False)

    def add(self, member: str, value: Any):
        self.set_value(member, value, False)

    def is_read_only(self, member: str) -> bool:
        slot = self._store.get(_check_member(member))
        return slot is not None and slot.read_only

    def set_read_only(self, member: str, read_only: bool):
        """Locks or unlocks `member`, creating an empty entry if missing."""
        slot = self._store.get(_check_member(member))
        if slot is None:
            slot = self._store[member] = _Slot()
        slot.read_only = read_only

    # --- Snapshots ---

    def keys(self) -> _MemberView:
        return _MemberView(tuple(self._store.items()), lambda name, slot: name)

    def values(self) -> _MemberView:
        return _MemberView(tuple(self._store.items()), lambda name, slot: slot.value)

    def items(self) -> _MemberView:
        return _MemberView(tuple(self._store.items()), lambda name, slot: (name, slot.value))

    def _slots(self) -> Tuple[Tuple[str, _Slot], ...]:
        return tuple(self._store.items())

    # --- Import ---

    @classmethod
    def from_object(cls, obj: Any) -> 'ScriptObject':
        """Creates a ScriptObject populated from `obj`.

        - a class imports its static fields and static/class methods,
        - a ScriptObject has its members copied,
        - any other object imports its public fields and properties.
        """
        script_object = cls()
        script_object.import_object(obj)
        return script_object

    @staticmethod
    def is_importable(obj: Any) -> bool:
        from quill.quill_import import is_importable
        return is_importable(obj)

    def import_object(self, obj: Any, flags=None, filter: Optional[Callable[[str], bool]] = None,
                      renamer: Optional[Callable[[str], str]] = None):
        """Imports the members of `obj` (a class, a ScriptObject or an instance) into this object."""
        from quill.quill_import import import_into
        import_into(self, obj, flags, filter, renamer)

    def import_member(self, obj: Any, member_name: str, export_name: Optional[str] = None):
        """Imports a single member of `obj`, optionally under `export_name`."""
        from quill.quill_import import import_member
        import_member(self, obj, member_name, export_name)

    def import_function(self, member: str, function: Callable):
        """Stores `function` as a read-only callable member."""
        from quill.quill_import import import_function
        import_function(self, member, function)

    def __repr__(self) -> str:
        keys = ', '.join(self._store)
        return f"<ScriptObject members=[{keys}]>"
