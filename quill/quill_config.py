"""
Runtime settings: debug tracing controlled by the QUILL_DEBUG environment
variable, and import policies declared as YAML documents.
"""

import os
import sys
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

_FLAG_NAMES = ("field", "property", "method", "method_instance", "all")
_POLICY_KEYS = {"flags", "include", "exclude", "rename", "naming"}
_POLICY_SUFFIXES = (".yaml", ".yml")


def debug_enabled() -> bool:
    return bool(os.environ.get("QUILL_DEBUG"))


def dbg(*parts):
    if debug_enabled():
        try:
            print("[DBG]", *parts, file=sys.stderr)
        except Exception:
            pass


def _read_policy_document(source: Union[str, Path, Mapping[str, Any]]) -> Mapping[str, Any]:
    if isinstance(source, Mapping):
        return source
    # A single line naming a .yaml/.yml file is a path; a missing file raises FileNotFoundError
    if isinstance(source, str) and "\n" not in source and source.strip().lower().endswith(_POLICY_SUFFIXES):
        source = Path(source.strip())
    if isinstance(source, Path):
        return yaml.safe_load(source.read_text(encoding="utf-8")) or {}
    return yaml.safe_load(source) or {}


def load_import_policy(source: Union[str, Path, Mapping[str, Any]]) -> 'ImportPolicy':
    """Builds an ImportPolicy from YAML text, a YAML file (a Path, or a string
    ending in .yaml/.yml), or a parsed mapping.

    Recognized keys: flags (list of field/property/method/method_instance or
    "all"), include, exclude (lists of original member names), rename
    (original -> exported name) and naming ("standard" or "none").
    """
    from quill.quill_import import (
        ImportPolicy, ScriptMemberImportFlags, standard_member_renamer
    )

    doc = _read_policy_document(source)
    if not isinstance(doc, Mapping):
        raise ValueError(f"Import policy must be a mapping, not {type(doc).__name__}")
    unknown = set(doc) - _POLICY_KEYS
    if unknown:
        raise ValueError(f"Unknown import policy keys: {', '.join(sorted(unknown))}")

    raw_flags = doc.get("flags", "all")
    if isinstance(raw_flags, str):
        raw_flags = [raw_flags]
    flags = ScriptMemberImportFlags(0)
    for name in raw_flags:
        key = str(name).strip().lower().replace("-", "_")
        if key not in _FLAG_NAMES:
            raise ValueError(f"Unknown import flag: {name!r}")
        flags |= ScriptMemberImportFlags[key.upper()]

    include = doc.get("include")
    include = set(include) if include is not None else None
    exclude = set(doc.get("exclude") or ())

    def member_filter(name: str) -> bool:
        if include is not None and name not in include:
            return False
        return name not in exclude

    naming = doc.get("naming", "standard")
    if naming == "standard":
        base_renamer = standard_member_renamer
    elif naming in ("none", None):
        base_renamer = lambda name: name
    else:
        raise ValueError(f"Unknown naming convention: {naming!r}")

    renames = dict(doc.get("rename") or {})

    def renamer(name: str) -> str:
        if name in renames:
            return renames[name]
        return base_renamer(name)

    has_filter = include is not None or bool(exclude)
    return ImportPolicy(flags=flags, filter=member_filter if has_filter else None, renamer=renamer)
