"""
Reflective import of host objects, classes and modules into a ScriptObject.

A class contributes its static members: class-level data attributes (fields)
and static/class methods. An instance contributes its fields (class-level and
per-instance attributes), its properties and, when METHOD_INSTANCE is set,
its methods bound to it. A module is imported like a class whose functions are
all static.

Members whose name starts with an underscore are never imported, and neither
are members tagged with `script_ignore` / `Annotated[..., ScriptIgnore]`.
"""

import array
import dataclasses
import enum
import functools
import inspect
import numbers
import re
import sys
import typing
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from quill.quill_config import dbg
from quill.quill_errors import InvalidArgumentError, UnsupportedTypeError
from quill.quill_function import ObjectFunctionWrapper
from quill.quill_object import ScriptObject


class ScriptMemberImportFlags(enum.IntFlag):
    FIELD = 1
    PROPERTY = 2
    METHOD = 4
    # Import methods bound to the instance being imported
    METHOD_INSTANCE = 8
    ALL = FIELD | PROPERTY | METHOD


class ScriptIgnore:
    """Annotation marker for fields hidden from scripts: `Annotated[int, ScriptIgnore]`."""


def script_ignore(member):
    """A decorator hiding a method or property from script imports."""
    func = member
    if isinstance(member, property):
        func = member.fget
    elif isinstance(member, (staticmethod, classmethod)):
        func = member.__func__
    elif isinstance(member, functools.cached_property):
        func = member.func
    func._script_ignore = True
    return member


_NON_IMPORTABLE = (str, numbers.Number, enum.Enum, list, tuple, bytes, bytearray, memoryview, array.array)


def is_importable(obj: Any) -> bool:
    """None, or anything that is not a string, number, enum member or raw array."""
    if obj is None:
        return True
    cls = obj if isinstance(obj, type) else type(obj)
    return not issubclass(cls, _NON_IMPORTABLE)


_CAMEL_ACRONYM = re.compile(r'([A-Z]+)([A-Z][a-z])')
_CAMEL_WORD = re.compile(r'([a-z0-9])([A-Z])')


def standard_member_renamer(name: str) -> str:
    """Converts PascalCase/camelCase names to snake_case.

    Names without any lowercase letter (constants like `MAX_SIZE` or `X`)
    and names that are already snake_case are returned unchanged.
    """
    if name.lower() == name or name.upper() == name:
        return name
    name = _CAMEL_ACRONYM.sub(r'\1_\2', name)
    return _CAMEL_WORD.sub(r'\1_\2', name).lower()


@dataclass
class ImportPolicy:
    """The flags, filter and renamer used for one import."""
    flags: ScriptMemberImportFlags = ScriptMemberImportFlags.ALL
    filter: Optional[Callable[[str], bool]] = None
    renamer: Optional[Callable[[str], str]] = None

    def apply(self, store: ScriptObject, obj: Any):
        store.import_object(obj, self.flags, self.filter, self.renamer)


# =================================================================
# Member descriptions
# =================================================================

FIELD = "field"
PROPERTY = "property"
METHOD = "method"


@dataclass(frozen=True)
class MemberInfo:
    name: str
    kind: str
    static: bool
    raw: Any
    read_only: bool = False
    ignored: bool = False


def _is_public(name: str) -> bool:
    return not name.startswith('_')


def _unwrap_annotation(ann: Any) -> Iterator[Any]:
    """Yields `ann` and the annotations nested inside Final/ClassVar/Annotated."""
    yield ann
    origin = typing.get_origin(ann)
    if origin in (typing.Final, typing.ClassVar, typing.Annotated):
        args = typing.get_args(ann)
        if args:
            yield from _unwrap_annotation(args[0])


def _annotation_is_final(ann: Any) -> bool:
    if isinstance(ann, str):
        return ann.startswith(('Final', 'typing.Final'))
    return any(a is typing.Final or typing.get_origin(a) is typing.Final for a in _unwrap_annotation(ann))


def _annotation_is_ignored(ann: Any) -> bool:
    if isinstance(ann, str):
        # Unresolvable forward reference: only the text is left to inspect
        return 'ScriptIgnore' in ann
    for a in _unwrap_annotation(ann):
        if typing.get_origin(a) is typing.Annotated:
            if any(m is ScriptIgnore or isinstance(m, ScriptIgnore) for m in a.__metadata__):
                return True
    return False


def _raw_annotations(klass: type) -> Dict[str, Any]:
    try:
        return inspect.get_annotations(klass)
    except Exception:
        return {}


def _resolve_annotation(klass: type, ann: Any) -> Any:
    """Evaluates a string annotation in the namespace of the class that declares it.

    Names that only exist for type checkers stay as strings.
    """
    if not isinstance(ann, str):
        return ann
    module = sys.modules.get(klass.__module__)
    globalns = vars(module) if module is not None else {}
    try:
        return eval(ann, globalns, dict(vars(klass)))
    except Exception:
        return ann


def _field_hints(cls: type) -> Dict[str, Any]:
    """Annotations of `cls` and its bases, each resolved on its own."""
    hints: Dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name, ann in _raw_annotations(klass).items():
            hints[name] = _resolve_annotation(klass, ann)
    return hints


def is_final_attribute(cls: type, name: str) -> bool:
    """True if `name` is annotated typing.Final on `cls` or a base."""
    for klass in cls.__mro__:
        raw = _raw_annotations(klass)
        if name in raw:
            return _annotation_is_final(_resolve_annotation(klass, raw[name]))
    return False


def _callable_ignored(func: Any) -> bool:
    return bool(getattr(func, '_script_ignore', False))


def _describe(name: str, raw: Any, hints: Dict[str, Any], instance_fields: set) -> Optional[MemberInfo]:
    if isinstance(raw, staticmethod) or isinstance(raw, classmethod):
        return MemberInfo(name, METHOD, True, raw, True, _callable_ignored(raw.__func__))
    if isinstance(raw, property):
        if raw.fget is None:
            return None
        return MemberInfo(name, PROPERTY, False, raw, raw.fset is None, _callable_ignored(raw.fget))
    if isinstance(raw, functools.cached_property):
        return MemberInfo(name, PROPERTY, False, raw, True, _callable_ignored(raw.func))
    if inspect.isroutine(raw):
        return MemberInfo(name, METHOD, False, raw, True, _callable_ignored(raw))
    if isinstance(raw, type):
        return None

    ann = hints.get(name)
    ignored = ann is not None and _annotation_is_ignored(ann)
    final = ann is not None and _annotation_is_final(ann)
    if inspect.ismemberdescriptor(raw):
        # __slots__ entry
        return MemberInfo(name, FIELD, False, raw, final, ignored)
    if inspect.isgetsetdescriptor(raw):
        return MemberInfo(name, PROPERTY, False, raw, True, ignored)
    if hasattr(type(raw), '__get__'):
        # Custom descriptor: readable like a property, writable if it has __set__
        return MemberInfo(name, PROPERTY, False, raw, not hasattr(type(raw), '__set__'), ignored)
    return MemberInfo(name, FIELD, name not in instance_fields, raw, final, ignored)


def describe_members(cls: type) -> Tuple[MemberInfo, ...]:
    """Describes the public members declared on `cls` and its bases (not object).

    The most derived definition of a name wins. The class is scanned on every
    call, so members added or replaced since a previous import are seen.
    """
    hints = _field_hints(cls)
    instance_fields = set(getattr(cls, '__dataclass_fields__', None) or ())
    seen = set()
    members = []
    for klass in cls.__mro__:
        if klass is object:
            continue
        for name, raw in vars(klass).items():
            if name in seen:
                continue
            seen.add(name)
            if not _is_public(name):
                continue
            info = _describe(name, raw, hints, instance_fields)
            if info is not None:
                members.append(info)
    return tuple(members)


def _describe_module(module) -> Iterator[MemberInfo]:
    names = getattr(module, '__all__', None)
    if names is None:
        names = [n for n in vars(module) if _is_public(n)]
    hints = getattr(module, '__annotations__', {}) or {}
    for name in names:
        raw = getattr(module, name, None)
        if inspect.ismodule(raw) or isinstance(raw, type):
            continue
        if inspect.isroutine(raw):
            yield MemberInfo(name, METHOD, True, raw, True, _callable_ignored(raw))
        else:
            ann = hints.get(name)
            yield MemberInfo(name, FIELD, True, raw,
                             ann is not None and _annotation_is_final(ann),
                             ann is not None and _annotation_is_ignored(ann))


def _instance_members(obj: Any) -> Iterator[MemberInfo]:
    """Instance attributes first, then the members described by its class."""
    cls = type(obj)
    described = describe_members(cls)
    class_names = {info.name for info in described}
    hints = None
    for name in getattr(obj, '__dict__', {}):
        if not _is_public(name) or name in class_names:
            continue
        if hints is None:
            hints = _field_hints(cls)
        ann = hints.get(name)
        yield MemberInfo(name, FIELD, False, None,
                         ann is not None and _annotation_is_final(ann),
                         ann is not None and _annotation_is_ignored(ann))
    yield from described


# =================================================================
# Import
# =================================================================

def _write(store: ScriptObject, name: str, value: Any, read_only: bool):
    if not store.try_set_value(name, value, read_only):
        dbg("import skipped read-only member", name)


def _import_script_object(store: ScriptObject, other: ScriptObject):
    for name, slot in other._slots():
        if store.is_read_only(name):
            dbg("import skipped read-only member", name)
            continue
        store.set_value(name, slot.value, slot.read_only)


def _static_callable(owner: Any, info: MemberInfo) -> ObjectFunctionWrapper:
    raw = info.raw
    if isinstance(raw, classmethod):
        return ObjectFunctionWrapper(owner, raw.__func__)
    if isinstance(raw, staticmethod):
        return ObjectFunctionWrapper(None, raw.__func__)
    return ObjectFunctionWrapper(None, raw)


def import_into(store: ScriptObject, obj: Any, flags: Optional[ScriptMemberImportFlags] = None,
                filter: Optional[Callable[[str], bool]] = None,
                renamer: Optional[Callable[[str], str]] = None):
    """Imports `obj` into `store`. See ScriptObject.import_object."""
    if obj is None:
        return
    if isinstance(obj, ScriptObject):
        _import_script_object(store, obj)
        return
    if not is_importable(obj):
        raise UnsupportedTypeError(obj if isinstance(obj, type) else type(obj))

    if flags is None:
        flags = ScriptMemberImportFlags.ALL
    renamer = renamer or standard_member_renamer

    use_static = isinstance(obj, type) or inspect.ismodule(obj)
    use_method_instance = not use_static and bool(flags & ScriptMemberImportFlags.METHOD_INSTANCE)
    frozen = not use_static and dataclasses.is_dataclass(obj) and obj.__dataclass_params__.frozen

    if inspect.ismodule(obj):
        members = _describe_module(obj)
    elif isinstance(obj, type):
        members = iter(describe_members(obj))
    else:
        members = _instance_members(obj)

    for info in members:
        if info.ignored:
            continue
        if filter is not None and not filter(info.name):
            continue

        if info.kind == FIELD:
            if not flags & ScriptMemberImportFlags.FIELD or (use_static and not info.static):
                continue
            try:
                value = getattr(obj, info.name)
            except AttributeError:
                # Unset __slots__ entry
                continue
            read_only = info.read_only or (frozen and not info.static)
        elif info.kind == PROPERTY:
            if not flags & ScriptMemberImportFlags.PROPERTY or use_static:
                continue
            value = getattr(obj, info.name)
            read_only = info.read_only
        else:
            if not flags & ScriptMemberImportFlags.METHOD:
                continue
            if use_static and info.static:
                value = _static_callable(obj, info)
            elif use_method_instance and not info.static:
                value = ObjectFunctionWrapper(obj, info.raw)
            else:
                continue
            read_only = True

        export_name = renamer(info.name) or info.name
        dbg("import", info.kind, info.name, "as", export_name, "read-only" if read_only else "")
        _write(store, export_name, value, read_only)


def import_member(store: ScriptObject, obj: Any, member_name: str, export_name: Optional[str] = None):
    """Imports only `member_name` from `obj`, as `export_name` when given."""
    if member_name is None:
        raise InvalidArgumentError("member_name")
    if isinstance(obj, ScriptObject):
        for name, slot in obj._slots():
            if name == member_name:
                _write(store, export_name or name, slot.value, slot.read_only)
        return
    renamer = (lambda name: export_name) if export_name is not None else None
    import_into(store, obj, ScriptMemberImportFlags.ALL | ScriptMemberImportFlags.METHOD_INSTANCE,
                lambda name: name == member_name, renamer)


def import_function(store: ScriptObject, member: str, function: Callable):
    """Stores `function` under `member` as a read-only callable.

    A bound method keeps its receiver as the call target.
    """
    if member is None:
        raise InvalidArgumentError("member")
    if function is None:
        raise InvalidArgumentError("function")
    if inspect.ismethod(function):
        wrapper = ObjectFunctionWrapper(function.__self__, function.__func__)
    else:
        wrapper = ObjectFunctionWrapper(None, function)
    store.set_value(member, wrapper, True)
