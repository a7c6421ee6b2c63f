"""
quill: dynamic script objects and the bridge that exposes Python objects,
classes and functions to template scripts.
"""

from quill.quill_errors import (
    ArgumentConversionError, ArityMismatchError, CallFailedError, InvalidArgumentError,
    ScriptConversionError, ScriptRuntimeError, UnsupportedTypeError
)
from quill.quill_accessor import (
    DictionaryAccessor, IMemberAccessor, NullAccessor, TypedObjectAccessor, get_member_accessor
)
from quill.quill_object import ScriptObject, ScriptObjectAccessor
from quill.quill_function import IScriptCustomFunction, ObjectFunctionWrapper, ParameterSignature
from quill.quill_import import (
    ImportPolicy, ScriptIgnore, ScriptMemberImportFlags, script_ignore, standard_member_renamer
)
from quill.quill_syntax import (
    ScriptAssignExpression, ScriptFunctionCall, ScriptIndexerExpression, ScriptLiteral,
    ScriptMemberExpression, ScriptNode, ScriptToken, ScriptTrivia, ScriptVariable
)
from quill.quill_context import TemplateContext
from quill.quill_printer import Printer
from quill.quill_config import load_import_policy

__all__ = [
    "ArgumentConversionError", "ArityMismatchError", "CallFailedError", "InvalidArgumentError",
    "ScriptConversionError", "ScriptRuntimeError", "UnsupportedTypeError",
    "DictionaryAccessor", "IMemberAccessor", "NullAccessor", "TypedObjectAccessor", "get_member_accessor",
    "ScriptObject", "ScriptObjectAccessor",
    "IScriptCustomFunction", "ObjectFunctionWrapper", "ParameterSignature",
    "ImportPolicy", "ScriptIgnore", "ScriptMemberImportFlags", "script_ignore", "standard_member_renamer",
    "ScriptAssignExpression", "ScriptFunctionCall", "ScriptIndexerExpression", "ScriptLiteral",
    "ScriptMemberExpression", "ScriptNode", "ScriptToken", "ScriptTrivia", "ScriptVariable",
    "TemplateContext", "Printer", "load_import_policy",
]
