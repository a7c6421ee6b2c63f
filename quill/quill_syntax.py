"""
Expression nodes evaluated against a TemplateContext.

Only the nodes needed to denote and assign targets and to invoke callables
live here. Children are exclusively owned: attaching a node that already
belongs to another parent fails.
"""

from typing import Any, List, Optional

from quill.quill_errors import ScriptRuntimeError
from quill.quill_function import IScriptCustomFunction


class ScriptTrivia:
    """Whitespace or a comment kept for round-trip formatting."""
    def __init__(self, text: str, kind: str = "whitespace"):
        self.text = text
        self.kind = kind

    def __repr__(self):
        return f"ScriptTrivia({self.text!r}, {self.kind!r})"

    def __eq__(self, other):
        return isinstance(other, ScriptTrivia) and self.text == other.text and self.kind == other.kind


class ScriptNode:
    """Base class of all syntax nodes."""
    def __init__(self):
        self.parent: Optional['ScriptNode'] = None
        self.loc: Optional[dict] = None
        self.leading_trivia: List[ScriptTrivia] = []
        self.trailing_trivia: List[ScriptTrivia] = []

    def _parent_to_this(self, current: Optional['ScriptNode'], node: Optional['ScriptNode']) -> Optional['ScriptNode']:
        if node is not None:
            if node.parent is not None and node.parent is not self:
                raise ValueError("Cannot set this node as a child, it already belongs to another parent")
            node.parent = self
        if current is not None and current is not node and current.parent is self:
            current.parent = None
        return node

    def can_have_leading_trivia(self) -> bool:
        return True

    def add_leading_trivia(self, trivia: ScriptTrivia):
        if not self.can_have_leading_trivia():
            raise ValueError(f"{type(self).__name__} cannot have leading trivia")
        self.leading_trivia.append(trivia)

    def add_trailing_trivia(self, trivia: ScriptTrivia):
        self.trailing_trivia.append(trivia)

    def evaluate(self, context) -> Any:
        raise NotImplementedError(f"{type(self).__name__} cannot be evaluated")


class ScriptToken(ScriptNode):
    """A literal piece of syntax such as '=' or '.'."""
    def __init__(self, text: str):
        super().__init__()
        self.text = text

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"ScriptToken({self.text!r})"


class ScriptExpression(ScriptNode):
    pass


class ScriptLiteral(ScriptExpression):
    """A constant value. `text` keeps the source spelling when known."""
    def __init__(self, value: Any = None, text: Optional[str] = None):
        super().__init__()
        self.value = value
        self.text = text

    def evaluate(self, context):
        return self.value

    def __str__(self) -> str:
        if self.text is not None:
            return self.text
        if self.value is None:
            return "null"
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        if isinstance(self.value, str):
            escaped = self.value.replace('\\', '\\\\').replace('"', '\\"')
            return f'"{escaped}"'
        return str(self.value)


class ScriptVariable(ScriptExpression):
    def __init__(self, name: str):
        super().__init__()
        self.name = name

    def evaluate(self, context):
        return context.get_value(self)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"ScriptVariable({self.name!r})"


class ScriptMemberExpression(ScriptExpression):
    """`target.member`"""
    def __init__(self, target: Optional[ScriptExpression] = None, member: Optional[ScriptVariable] = None):
        super().__init__()
        self._target = None
        self._member = None
        self.dot_token = self._parent_to_this(None, ScriptToken("."))
        self.target = target
        self.member = member

    @property
    def target(self):
        return self._target

    @target.setter
    def target(self, value):
        self._target = self._parent_to_this(self._target, value)

    @property
    def member(self):
        return self._member

    @member.setter
    def member(self, value):
        self._member = self._parent_to_this(self._member, value)

    def evaluate(self, context):
        return context.get_value(self)

    def __str__(self) -> str:
        return f"{self.target}.{self.member}"


class ScriptIndexerExpression(ScriptExpression):
    """`target[index]`"""
    def __init__(self, target: Optional[ScriptExpression] = None, index: Optional[ScriptExpression] = None):
        super().__init__()
        self._target = None
        self._index = None
        self.target = target
        self.index = index

    @property
    def target(self):
        return self._target

    @target.setter
    def target(self, value):
        self._target = self._parent_to_this(self._target, value)

    @property
    def index(self):
        return self._index

    @index.setter
    def index(self, value):
        self._index = self._parent_to_this(self._index, value)

    def evaluate(self, context):
        return context.get_value(self)

    def __str__(self) -> str:
        return f"{self.target}[{self.index}]"


class ScriptFunctionCall(ScriptExpression):
    """`target arg1 arg2 ...`: invokes a callable value."""
    def __init__(self, target: Optional[ScriptExpression] = None, arguments: Optional[List[ScriptExpression]] = None):
        super().__init__()
        self._target = None
        self.target = target
        self.arguments: List[ScriptExpression] = []
        for arg in arguments or ():
            self.add_argument(arg)

    @property
    def target(self):
        return self._target

    @target.setter
    def target(self, value):
        self._target = self._parent_to_this(self._target, value)

    def add_argument(self, argument: ScriptExpression):
        self.arguments.append(self._parent_to_this(None, argument))

    def evaluate(self, context):
        function = context.evaluate(self.target)
        if not isinstance(function, IScriptCustomFunction):
            raise ScriptRuntimeError(self.loc, f"The target [{self.target}] is not a function")
        arguments = [context.evaluate(arg) for arg in self.arguments]
        return function.evaluate(context, self, arguments, None)

    def __str__(self) -> str:
        return " ".join([str(self.target)] + [str(arg) for arg in self.arguments])


class ScriptAssignExpression(ScriptExpression):
    """`target = value`

    Evaluates the value, then asks the context to store it into whatever the
    target denotes. The expression itself has no value. It never takes
    leading trivia.
    """
    def __init__(self, target: Optional[ScriptExpression] = None, value: Optional[ScriptExpression] = None,
                 equal_token: Optional[ScriptToken] = None):
        super().__init__()
        self._target = None
        self._equal_token = None
        self._value = None
        self.target = target
        self.equal_token = equal_token if equal_token is not None else ScriptToken("=")
        self.value = value

    @property
    def target(self):
        return self._target

    @target.setter
    def target(self, node):
        self._target = self._parent_to_this(self._target, node)

    @property
    def equal_token(self):
        return self._equal_token

    @equal_token.setter
    def equal_token(self, node):
        self._equal_token = self._parent_to_this(self._equal_token, node)

    @property
    def value(self):
        return self._value

    @value.setter
    def value(self, node):
        self._value = self._parent_to_this(self._value, node)

    def evaluate(self, context):
        value = context.evaluate(self.value)
        context.set_value(self.target, value)
        return None

    def can_have_leading_trivia(self) -> bool:
        return False

    def __str__(self) -> str:
        return f"{self.target} = {self.value}"
