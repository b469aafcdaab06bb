from dataclasses import dataclass, field
from enum import StrEnum
from typing import ClassVar, Iterator, Optional, TypeAlias


class NodeKind(StrEnum):
    PROGRAM = "Program"
    BLOCK_STATEMENT = "BlockStatement"
    EXPRESSION_STATEMENT = "ExpressionStatement"
    VARIABLE_DECLARATION = "VariableDeclaration"
    VARIABLE_DECLARATOR = "VariableDeclarator"
    FUNCTION_DECLARATION = "FunctionDeclaration"
    FUNCTION_EXPRESSION = "FunctionExpression"
    ARROW_FUNCTION_EXPRESSION = "ArrowFunctionExpression"
    RETURN_STATEMENT = "ReturnStatement"
    CALL_EXPRESSION = "CallExpression"
    BINARY_EXPRESSION = "BinaryExpression"
    UNARY_EXPRESSION = "UnaryExpression"
    OBJECT_EXPRESSION = "ObjectExpression"
    OBJECT_PROPERTY = "ObjectProperty"
    IDENTIFIER = "Identifier"
    NUMERIC_LITERAL = "NumericLiteral"
    STRING_LITERAL = "StringLiteral"
    BOOLEAN_LITERAL = "BooleanLiteral"
    NULL_LITERAL = "NullLiteral"


@dataclass(frozen=True)
class Located:
    line: int = 0
    column: int = 0
    end_line: int = 0
    end_column: int = 0

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(eq=False, kw_only=True)
class Node:
    """Base of every AST node.

    ``fields`` names the attributes holding child nodes, in source order; the
    traversal driver recurses through them for kinds without a rule.
    """

    kind: ClassVar[NodeKind]
    fields: ClassVar[tuple[str, ...]] = ()
    loc: Located = field(default_factory=Located)


@dataclass(eq=False, kw_only=True)
class Identifier(Node):
    kind = NodeKind.IDENTIFIER
    name: str


@dataclass(eq=False, kw_only=True)
class NumericLiteral(Node):
    kind = NodeKind.NUMERIC_LITERAL
    value: int | float


@dataclass(eq=False, kw_only=True)
class StringLiteral(Node):
    kind = NodeKind.STRING_LITERAL
    value: str


@dataclass(eq=False, kw_only=True)
class BooleanLiteral(Node):
    kind = NodeKind.BOOLEAN_LITERAL
    value: bool


@dataclass(eq=False, kw_only=True)
class NullLiteral(Node):
    kind = NodeKind.NULL_LITERAL


@dataclass(eq=False, kw_only=True)
class CallExpression(Node):
    kind = NodeKind.CALL_EXPRESSION
    fields = ("callee", "arguments")
    callee: Node
    arguments: list[Node] = field(default_factory=list)


@dataclass(eq=False, kw_only=True)
class BinaryExpression(Node):
    kind = NodeKind.BINARY_EXPRESSION
    fields = ("left", "right")
    operator: str
    left: Node
    right: Node


@dataclass(eq=False, kw_only=True)
class UnaryExpression(Node):
    kind = NodeKind.UNARY_EXPRESSION
    fields = ("argument",)
    operator: str
    argument: Node


@dataclass(eq=False, kw_only=True)
class ObjectProperty(Node):
    kind = NodeKind.OBJECT_PROPERTY
    fields = ("key", "value")
    key: Identifier | StringLiteral
    value: Node
    shorthand: bool = False


@dataclass(eq=False, kw_only=True)
class ObjectExpression(Node):
    kind = NodeKind.OBJECT_EXPRESSION
    fields = ("properties",)
    properties: list[ObjectProperty] = field(default_factory=list)


@dataclass(eq=False, kw_only=True)
class BlockStatement(Node):
    kind = NodeKind.BLOCK_STATEMENT
    fields = ("body",)
    body: list[Node] = field(default_factory=list)


@dataclass(eq=False, kw_only=True)
class Program(Node):
    kind = NodeKind.PROGRAM
    fields = ("body",)
    body: list[Node] = field(default_factory=list)


@dataclass(eq=False, kw_only=True)
class ExpressionStatement(Node):
    kind = NodeKind.EXPRESSION_STATEMENT
    fields = ("expression",)
    expression: Node


@dataclass(eq=False, kw_only=True)
class ReturnStatement(Node):
    kind = NodeKind.RETURN_STATEMENT
    fields = ("argument",)
    argument: Optional[Node] = None


@dataclass(eq=False, kw_only=True)
class VariableDeclarator(Node):
    kind = NodeKind.VARIABLE_DECLARATOR
    fields = ("id", "init")
    id: Identifier
    init: Optional[Node] = None


@dataclass(eq=False, kw_only=True)
class VariableDeclaration(Node):
    kind = NodeKind.VARIABLE_DECLARATION
    fields = ("declarations",)
    declarations: list[VariableDeclarator] = field(default_factory=list)
    declaration_kind: str = "const"


@dataclass(eq=False, kw_only=True)
class FunctionDeclaration(Node):
    kind = NodeKind.FUNCTION_DECLARATION
    fields = ("id", "params", "body")
    id: Identifier
    params: list[Identifier] = field(default_factory=list)
    body: BlockStatement


@dataclass(eq=False, kw_only=True)
class FunctionExpression(Node):
    kind = NodeKind.FUNCTION_EXPRESSION
    fields = ("id", "params", "body")
    id: Optional[Identifier] = None
    params: list[Identifier] = field(default_factory=list)
    body: BlockStatement


@dataclass(eq=False, kw_only=True)
class ArrowFunctionExpression(Node):
    kind = NodeKind.ARROW_FUNCTION_EXPRESSION
    fields = ("params", "body")
    params: list[Identifier] = field(default_factory=list)
    body: Node


Function: TypeAlias = FunctionDeclaration | FunctionExpression | ArrowFunctionExpression


def children(node: Node) -> Iterator[Node]:
    for name in node.fields:
        value = getattr(node, name)
        if value is None:
            continue
        if isinstance(value, list):
            yield from value
        else:
            yield value

def declared_names(statements: list[Node]) -> list[str]:
    """Names a block binds before running its statements, in source order."""
    names = []
    for statement in statements:
        if isinstance(statement, VariableDeclaration):
            names.extend(d.id.name for d in statement.declarations)
        elif isinstance(statement, FunctionDeclaration):
            names.append(statement.id.name)
    return names


NODE_TYPES: dict[NodeKind, type[Node]] = {cls.kind: cls for cls in Node.__subclasses__()}
