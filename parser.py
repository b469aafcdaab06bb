import ast

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import UnexpectedInput

from errors import ParseError
from nodes import (
    ArrowFunctionExpression,
    BinaryExpression,
    BlockStatement,
    BooleanLiteral,
    CallExpression,
    ExpressionStatement,
    FunctionDeclaration,
    FunctionExpression,
    Identifier,
    Located,
    NullLiteral,
    NumericLiteral,
    ObjectExpression,
    ObjectProperty,
    Program,
    ReturnStatement,
    StringLiteral,
    UnaryExpression,
    VariableDeclaration,
    VariableDeclarator,
)

GRAMMAR = r"""
start: statement* final_statement?

?statement: variable_declaration
          | function_declaration
          | return_statement
          | block
          | expression_statement
          | _SEMICOLON -> empty_statement

variable_declaration: _declarators _SEMICOLON
return_statement: "return" expression? _SEMICOLON
expression_statement: expression _SEMICOLON

// the last statement of a program or block may omit its semicolon
final_statement: _declarators -> variable_declaration
               | "return" expression? -> return_statement
               | expression -> expression_statement

_declarators: (CONST | LET | VAR) variable_declarator ("," variable_declarator)*
variable_declarator: identifier ("=" expression)?

function_declaration.2: "function" identifier "(" params ")" block
block.2: "{" statement* final_statement? "}"
params: (identifier ("," identifier)*)?

?expression: arrow_function
           | equality

arrow_function: identifier "=>" _arrow_body
              | "(" params ")" "=>" _arrow_body
_arrow_body: block | expression

?equality: relational
         | equality EQUALITY_OP relational -> binary_expression
?relational: additive
           | relational RELATIONAL_OP additive -> binary_expression
?additive: multiplicative
         | additive (PLUS | MINUS) multiplicative -> binary_expression
?multiplicative: unary
               | multiplicative (STAR | SLASH | PERCENT) unary -> binary_expression
?unary: call
      | (MINUS | PLUS | BANG) unary -> unary_expression
?call: primary
     | call "(" arguments ")" -> call_expression
arguments: (expression ("," expression)*)?

?primary: identifier
        | numeric_literal
        | string_literal
        | boolean_literal
        | null_literal
        | object_expression
        | function_expression
        | "(" expression ")"

function_expression: "function" identifier? "(" params ")" block
object_expression: "{" (object_property ("," object_property)* ","?)? "}"
object_property: (identifier | string_literal) ":" expression
               | identifier -> shorthand_property

identifier: NAME
numeric_literal: NUMBER
string_literal: STRING
boolean_literal: TRUE | FALSE
null_literal: NULL

CONST: "const"
LET: "let"
VAR: "var"
TRUE: "true"
FALSE: "false"
NULL: "null"

EQUALITY_OP: "===" | "!==" | "==" | "!="
RELATIONAL_OP: "<=" | ">=" | "<" | ">"
PLUS: "+"
MINUS: "-"
STAR: "*"
SLASH: "/"
PERCENT: "%"
BANG: "!"

NAME: /[a-zA-Z_$][a-zA-Z0-9_$]*/
NUMBER: /\d+(\.\d+)?/
STRING: /"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*'/
COMMENT: /\/\/[^\n]*|\/\*[\s\S]*?\*\//

_SEMICOLON: ";"
// line breaks only reach the parser as inserted semicolons
_NL: /(\r?\n[\t \f]*)+/
%ignore /[\t \f\r]+/
%ignore COMMENT
"""

def _loc(meta) -> Located:
    if meta.empty:
        return Located()
    return Located(meta.line, meta.column, meta.end_line, meta.end_column)

def _string_value(token: Token) -> str:
    try:
        return ast.literal_eval(token.value)
    except (ValueError, SyntaxError):
        # escapes Python does not share with JS are kept verbatim
        return token.value[1:-1]


@v_args(meta=True)
class AstBuilder(Transformer):
    def start(self, meta, children):
        return Program(body=[c for c in children if c is not None], loc=_loc(meta))

    def block(self, meta, children):
        return BlockStatement(body=[c for c in children if c is not None], loc=_loc(meta))

    def empty_statement(self, meta, children):
        return None

    def expression_statement(self, meta, children):
        (expression,) = children
        return ExpressionStatement(expression=expression, loc=_loc(meta))

    def return_statement(self, meta, children):
        argument = children[0] if children else None
        return ReturnStatement(argument=argument, loc=_loc(meta))

    def variable_declaration(self, meta, children):
        kind, *declarations = children
        return VariableDeclaration(
            declarations=declarations,
            declaration_kind=kind.value,
            loc=_loc(meta),
        )

    def variable_declarator(self, meta, children):
        id, *init = children
        return VariableDeclarator(id=id, init=init[0] if init else None, loc=_loc(meta))

    def function_declaration(self, meta, children):
        id, params, body = children
        return FunctionDeclaration(id=id, params=params, body=body, loc=_loc(meta))

    def function_expression(self, meta, children):
        *id, params, body = children
        return FunctionExpression(id=id[0] if id else None, params=params, body=body, loc=_loc(meta))

    def arrow_function(self, meta, children):
        params, body = children
        if isinstance(params, Identifier):
            params = [params]
        return ArrowFunctionExpression(params=params, body=body, loc=_loc(meta))

    def params(self, meta, children):
        return list(children)

    def arguments(self, meta, children):
        return list(children)

    def call_expression(self, meta, children):
        callee, arguments = children
        return CallExpression(callee=callee, arguments=arguments, loc=_loc(meta))

    def binary_expression(self, meta, children):
        left, operator, right = children
        return BinaryExpression(operator=operator.value, left=left, right=right, loc=_loc(meta))

    def unary_expression(self, meta, children):
        operator, argument = children
        return UnaryExpression(operator=operator.value, argument=argument, loc=_loc(meta))

    def object_expression(self, meta, children):
        return ObjectExpression(properties=children, loc=_loc(meta))

    def object_property(self, meta, children):
        key, value = children
        return ObjectProperty(key=key, value=value, loc=_loc(meta))

    def shorthand_property(self, meta, children):
        (key,) = children
        value = Identifier(name=key.name, loc=key.loc)
        return ObjectProperty(key=key, value=value, shorthand=True, loc=_loc(meta))

    def identifier(self, meta, children):
        (name,) = children
        return Identifier(name=name.value, loc=_loc(meta))

    def numeric_literal(self, meta, children):
        (token,) = children
        value = float(token.value) if "." in token.value else int(token.value)
        return NumericLiteral(value=value, loc=_loc(meta))

    def string_literal(self, meta, children):
        (token,) = children
        return StringLiteral(value=_string_value(token), loc=_loc(meta))

    def boolean_literal(self, meta, children):
        (token,) = children
        return BooleanLiteral(value=token.value == "true", loc=_loc(meta))

    def null_literal(self, meta, children):
        return NullLiteral(loc=_loc(meta))


# tokens after which a line break may end a statement, and tokens that may
# start the next one; "(" "+" "-" continue the expression instead
STATEMENT_ENDS = {"NAME", "NUMBER", "STRING", "TRUE", "FALSE", "NULL", "RPAR", "RBRACE"}
STATEMENT_STARTS = {"NAME", "NUMBER", "STRING", "TRUE", "FALSE", "NULL", "CONST", "LET", "VAR", "BANG", "FUNCTION", "RETURN"}

class AutomaticSemicolons:
    """Post-lexer turning a line break between two statements into a ``;``.

    Breaks inside parentheses never end a statement.
    """

    always_accept = ("_NL",)

    def process(self, stream):
        previous = None
        at_break = False
        depth = 0
        for token in stream:
            if token.type == "_NL":
                at_break = previous is not None and depth == 0
                continue
            if at_break and previous.type in STATEMENT_ENDS and token.type in STATEMENT_STARTS:
                yield Token.new_borrow_pos("_SEMICOLON", ";", previous)
            if token.type == "LPAR":
                depth += 1
            elif token.type == "RPAR" and depth:
                depth -= 1
            at_break = False
            previous = token
            yield token


_PARSER = Lark(
    GRAMMAR,
    parser="earley",
    lexer="basic",
    postlex=AutomaticSemicolons(),
    propagate_positions=True,
)

def parse(source: str) -> Program:
    try:
        tree = _PARSER.parse(source)
    except UnexpectedInput as exc:
        line = max(getattr(exc, "line", 0), 0)
        column = max(getattr(exc, "column", 0), 0)
        message = str(exc).strip().splitlines()[0]
        raise ParseError(message, line, column) from exc
    return AstBuilder().transform(tree)
