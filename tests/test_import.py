import enum
import types
from dataclasses import dataclass
from typing import Annotated, Final

import pytest

from quill.quill_context import TemplateContext
from quill.quill_errors import InvalidArgumentError, UnsupportedTypeError
from quill.quill_function import ObjectFunctionWrapper
from quill.quill_import import (
    ImportPolicy, ScriptIgnore, ScriptMemberImportFlags, describe_members, is_importable,
    script_ignore, standard_member_renamer
)
from quill.quill_object import ScriptObject

Flags = ScriptMemberImportFlags


class Counter:
    X = 5
    LIMIT: Final[int] = 10
    secret: Annotated[int, ScriptIgnore] = 7
    hidden: Annotated[int, ScriptIgnore]
    _label = "c"

    def __init__(self, start=0):
        self.value = start
        self.hidden = 3

    @staticmethod
    def M(a, b):
        return a + b

    @classmethod
    def create(cls, start):
        return cls(start)

    def increment(self, step: int = 1) -> int:
        self.value += step
        return self.value

    @property
    def double(self):
        return self.value * 2

    @property
    def label(self):
        return self._label

    @label.setter
    def label(self, value):
        self._label = value

    @script_ignore
    def internal(self):
        return "internal"

    @script_ignore
    @staticmethod
    def hidden_static():
        return "hidden"


class Greeter:
    def __init__(self):
        self.firstName = "Ada"

    def sayHello(self, name):
        return f"hello {name}"

    @property
    def HTTPStatus(self):
        return 200


@dataclass
class Item:
    name: str
    qty: int = 1


@dataclass(frozen=True)
class FrozenItem:
    name: str
    qty: int = 1


class Slotted:
    __slots__ = ("a", "b")

    def __init__(self):
        self.a = 1


class Color(enum.Enum):
    RED = 1


@pytest.fixture
def context():
    return TemplateContext()

# --- Classes ---

def test_type_import_exposes_static_members_only(context):
    obj = ScriptObject.from_object(Counter)
    assert set(obj.keys()) == {"X", "LIMIT", "M", "create"}

    assert obj["X"] == 5
    assert not obj.is_read_only("X")
    assert obj.is_read_only("M")
    assert isinstance(obj["M"], ObjectFunctionWrapper)
    assert obj["M"].evaluate(context, None, [1, 2]) == 3

    created = obj["create"].evaluate(context, None, [4])
    assert isinstance(created, Counter)
    assert created.value == 4


def test_final_field_is_read_only():
    obj = ScriptObject.from_object(Counter)
    assert obj["LIMIT"] == 10
    assert obj.is_read_only("LIMIT")
    assert obj.try_set_value("LIMIT", 11) is False


def test_type_import_with_method_flag_only():
    obj = ScriptObject()
    obj.import_object(Counter, Flags.METHOD)
    assert set(obj.keys()) == {"M", "create"}


def test_describe_members_reports_static_kinds():
    kinds = {info.name: (info.kind, info.static) for info in describe_members(Counter)}
    assert kinds["X"] == ("field", True)
    assert kinds["M"] == ("method", True)
    assert kinds["increment"] == ("method", False)
    assert "secret" not in {info.name for info in describe_members(Counter) if not info.ignored}


def test_import_sees_members_added_after_a_previous_import(context):
    class Mutable:
        X = 1

    assert list(ScriptObject.from_object(Mutable).keys()) == ["X"]

    Mutable.Y = 2
    Mutable.twice = staticmethod(lambda v: v * 2)
    obj = ScriptObject.from_object(Mutable)
    assert list(obj.keys()) == ["X", "Y", "twice"]
    assert obj["twice"].evaluate(context, None, [3]) == 6

    del Mutable.Y
    assert "Y" not in ScriptObject.from_object(Mutable)

# --- Instances ---

def test_instance_import_exposes_fields_and_properties():
    c = Counter(3)
    obj = ScriptObject.from_object(c)
    assert set(obj.keys()) == {"value", "X", "LIMIT", "double", "label"}
    assert obj["value"] == 3
    assert obj["double"] == 6
    assert obj.is_read_only("double")
    assert obj["label"] == "c"
    assert not obj.is_read_only("label")
    assert not obj.is_read_only("value")


@pytest.mark.parametrize("flags, expected", [
    (Flags.FIELD, {"value", "X", "LIMIT"}),
    (Flags.PROPERTY, {"double", "label"}),
    (Flags.METHOD, set()),
    (Flags.METHOD | Flags.METHOD_INSTANCE, {"increment"}),
], ids=["fields", "properties", "methods_without_instance", "instance_methods"])
def test_instance_import_flags(flags, expected):
    obj = ScriptObject()
    obj.import_object(Counter(1), flags)
    assert set(obj.keys()) == expected


def test_instance_methods_are_bound_to_the_instance(context):
    c = Counter(3)
    obj = ScriptObject()
    obj.import_object(c, Flags.ALL | Flags.METHOD_INSTANCE)
    assert obj.is_read_only("increment")
    assert obj["increment"].target is c
    assert obj["increment"].evaluate(context, None, [2]) == 5
    assert c.value == 5


def test_ignored_members_never_appear():
    c = Counter(3)
    obj = ScriptObject()
    obj.import_object(c, Flags.ALL | Flags.METHOD_INSTANCE,
                      filter=lambda name: True, renamer=lambda name: "renamed_" + name)
    names = set(obj.keys())
    for ignored in ("secret", "hidden", "internal", "hidden_static"):
        assert ignored not in names
        assert "renamed_" + ignored not in names
    assert "renamed_value" in names


def test_dataclass_instance_fields():
    obj = ScriptObject.from_object(Item("a", 2))
    assert list(obj.items()) == [("name", "a"), ("qty", 2)]
    assert not obj.is_read_only("qty")

    frozen = ScriptObject.from_object(FrozenItem("b"))
    assert frozen["qty"] == 1
    assert frozen.is_read_only("name")
    assert frozen.is_read_only("qty")


def test_dataclass_type_has_no_static_fields():
    assert len(ScriptObject.from_object(Item)) == 0


def test_unset_slot_is_skipped():
    obj = ScriptObject.from_object(Slotted())
    assert list(obj.keys()) == ["a"]

# --- Filter and renamer ---

def test_standard_renamer_converts_camel_case():
    obj = ScriptObject()
    obj.import_object(Greeter(), Flags.ALL | Flags.METHOD_INSTANCE)
    assert set(obj.keys()) == {"first_name", "say_hello", "http_status"}
    assert obj["first_name"] == "Ada"


@pytest.mark.parametrize("name, expected", [
    ("value", "value"),
    ("snake_case", "snake_case"),
    ("X", "X"),
    ("MAX_SIZE", "MAX_SIZE"),
    ("camelCase", "camel_case"),
    ("PascalCase", "pascal_case"),
    ("HTTPStatus", "http_status"),
    ("parseJSON2", "parse_json2"),
])
def test_standard_member_renamer(name, expected):
    assert standard_member_renamer(name) == expected


def test_empty_renamer_result_keeps_original_name():
    obj = ScriptObject()
    obj.import_object(Greeter(), renamer=lambda name: "")
    assert set(obj.keys()) == {"firstName", "HTTPStatus"}


def test_filter_sees_original_names():
    obj = ScriptObject()
    obj.import_object(Greeter(), filter=lambda name: name == "firstName")
    assert list(obj.keys()) == ["first_name"]


def test_import_policy_applies_flags_filter_and_renamer():
    policy = ImportPolicy(flags=Flags.FIELD, filter=lambda name: name != "LIMIT")
    obj = ScriptObject()
    policy.apply(obj, Counter)
    assert list(obj.keys()) == ["X"]

# --- Store merges and locks ---

def test_merge_keeps_destination_locks():
    a = ScriptObject()
    a.set_value("k", 1, True)
    b = ScriptObject()
    b["k"] = 2
    b.set_value("other", 3, True)

    a.import_object(b)
    assert a["k"] == 1
    assert a["other"] == 3
    assert a.is_read_only("other")

    c = ScriptObject.from_object(b)
    assert c["k"] == 2
    assert c.is_read_only("other")


def test_reflective_import_never_clobbers_locked_members():
    dest = ScriptObject()
    dest.set_value("X", "locked", True)
    dest.import_object(Counter)
    assert dest["X"] == "locked"
    assert dest["M"] is not None


def test_skipped_member_is_traced(monkeypatch, capsys):
    monkeypatch.setenv("QUILL_DEBUG", "1")
    dest = ScriptObject()
    dest.set_value("X", "locked", True)
    dest.import_object(Counter, Flags.FIELD)
    assert "[DBG] import skipped read-only member X" in capsys.readouterr().err

# --- Unsupported values ---

@pytest.mark.parametrize("value", [
    "text", 3, 2.5, True, Color.RED, Color, [1], (1,), b"x", str, int,
], ids=["str", "int", "float", "bool", "enum_member", "enum_type", "list", "tuple", "bytes",
        "str_type", "int_type"])
def test_unsupported_values_raise(value):
    assert not is_importable(value)
    with pytest.raises(UnsupportedTypeError) as excinfo:
        ScriptObject.from_object(value)
    assert "Expecting plain class or instance" in str(excinfo.value)


def test_unsupported_error_names_the_type():
    with pytest.raises(UnsupportedTypeError) as excinfo:
        ScriptObject().import_object(Color.RED)
    assert excinfo.value.obj_type is Color
    assert "[Color]" in str(excinfo.value)


def test_none_import_is_a_no_op():
    assert ScriptObject.is_importable(None)
    obj = ScriptObject()
    obj.import_object(None)
    assert len(obj) == 0

# --- Modules ---

def _helpers_module():
    mod = types.ModuleType("helpers")
    mod.VERSION = "1.0"
    mod.double = lambda x: x * 2
    mod.Helper = Counter
    mod.os = types
    mod._private = 1
    return mod


def test_module_import_exposes_functions_and_data(context):
    obj = ScriptObject.from_object(_helpers_module())
    assert set(obj.keys()) == {"VERSION", "double"}
    assert obj["VERSION"] == "1.0"
    assert obj["double"].target is None
    assert obj["double"].evaluate(context, None, [4]) == 8


def test_module_import_respects_all():
    mod = _helpers_module()
    mod.__all__ = ["double"]
    obj = ScriptObject.from_object(mod)
    assert list(obj.keys()) == ["double"]

# --- Single members and functions ---

def test_import_member_with_export_name(context):
    obj = ScriptObject()
    obj.import_member(Counter, "M", "add")
    assert list(obj.keys()) == ["add"]
    assert obj["add"].evaluate(context, None, [2, 3]) == 5


def test_import_member_binds_instance_method(context):
    c = Counter(1)
    obj = ScriptObject()
    obj.import_member(c, "increment")
    assert list(obj.keys()) == ["increment"]
    obj["increment"].evaluate(context, None, [1])
    assert c.value == 2


def test_import_member_from_script_object():
    src = ScriptObject()
    src.set_value("a", 1, True)
    src["b"] = 2
    obj = ScriptObject()
    obj.import_member(src, "a", "alias")
    assert list(obj.keys()) == ["alias"]
    assert obj.is_read_only("alias")


def test_import_member_requires_a_name():
    with pytest.raises(InvalidArgumentError):
        ScriptObject().import_member(Counter, None)


def test_import_function(context):
    obj = ScriptObject()
    obj.import_function("twice", lambda x: x * 2)
    assert obj.is_read_only("twice")
    assert obj["twice"].evaluate(context, None, [4]) == 8


def test_import_function_keeps_bound_receiver(context):
    c = Counter(1)
    obj = ScriptObject()
    obj.import_function("inc", c.increment)
    assert obj["inc"].target is c
    assert obj["inc"].evaluate(context, None, [1]) == 2
    assert c.value == 2


def test_import_function_overrides_lock():
    obj = ScriptObject()
    obj.set_value("f", "locked", True)
    obj.import_function("f", len)
    assert isinstance(obj["f"], ObjectFunctionWrapper)


def test_import_function_requires_name_and_function():
    obj = ScriptObject()
    with pytest.raises(InvalidArgumentError):
        obj.import_function(None, len)
    with pytest.raises(InvalidArgumentError):
        obj.import_function("f", None)
