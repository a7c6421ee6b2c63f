"""
Writes expression nodes back to source text, keeping their trivia.
"""

from quill.quill_syntax import (
    ScriptAssignExpression, ScriptFunctionCall, ScriptIndexerExpression, ScriptLiteral,
    ScriptMemberExpression, ScriptNode, ScriptToken, ScriptVariable
)


class Printer:
    """Formats syntax nodes into script source strings."""

    def __init__(self):
        self._handlers = self._create_handlers()

    def pformat(self, node) -> str:
        """Public entry point to format a node with its trivia."""
        if node is None:
            return ""
        text = self._get_handler(node)(node)
        leading = ""
        if node.can_have_leading_trivia():
            leading = "".join(t.text for t in node.leading_trivia)
        trailing = "".join(t.text for t in node.trailing_trivia)
        return f"{leading}{text}{trailing}"

    def _get_handler(self, node):
        for cls in type(node).__mro__:
            handler = self._handlers.get(cls)
            if handler is not None:
                return handler
        if isinstance(node, ScriptNode):
            return lambda n: str(n)
        raise TypeError(f"Cannot format object of type {type(node).__name__}")

    def _create_handlers(self):
        return {
            ScriptToken: self._pformat_token,
            ScriptLiteral: self._pformat_literal,
            ScriptVariable: self._pformat_variable,
            ScriptMemberExpression: self._pformat_member,
            ScriptIndexerExpression: self._pformat_indexer,
            ScriptFunctionCall: self._pformat_call,
            ScriptAssignExpression: self._pformat_assign,
        }

    def _pformat_token(self, node):
        return node.text

    def _pformat_literal(self, node):
        return str(node)

    def _pformat_variable(self, node):
        return node.name

    def _pformat_member(self, node):
        return f"{self.pformat(node.target)}{self.pformat(node.dot_token)}{self.pformat(node.member)}"

    def _pformat_indexer(self, node):
        return f"{self.pformat(node.target)}[{self.pformat(node.index)}]"

    def _pformat_call(self, node):
        out = self.pformat(node.target)
        for arg in node.arguments:
            arg_text = self.pformat(arg)
            # Arguments parsed from source carry their separating whitespace
            if out and not out[-1].isspace() and arg_text and not arg_text[0].isspace():
                out += " "
            out += arg_text
        return out

    def _pformat_assign(self, node):
        return f"{self.pformat(node.target)}{self.pformat(node.equal_token)}{self.pformat(node.value)}"
