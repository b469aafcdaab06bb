import logging
from collections import Counter
from dataclasses import dataclass
from typing import Callable, TypeAlias

from errors import EngineError, UnboundIdentifierError
from jstypes import ErrType, Type, TypeFactory, TypeVariable
from nodes import (
    BinaryExpression,
    BlockStatement,
    CallExpression,
    Function,
    FunctionDeclaration,
    FunctionExpression,
    Identifier,
    Node,
    NodeKind,
    ObjectExpression,
    ObjectProperty,
    Program,
    ReturnStatement,
    UnaryExpression,
    VariableDeclaration,
    VariableDeclarator,
    declared_names,
)
from scheme import Context, apply_context, generalize, instantiate, monotype
from subst import Substitution, apply, compose, unify

logger = logging.getLogger(__name__)

Inferred: TypeAlias = tuple[Substitution, Type]

@dataclass(frozen=True)
class Api:
    visit: Callable[[Node, Context], Inferred]
    types: TypeFactory
    patch: Callable[[Node, Type, Type], None]

Rule: TypeAlias = Callable[[Node, Context, Api], Inferred]

ARITHMETIC_OPERATORS = {"+", "-", "*", "/", "%"}
RELATIONAL_OPERATORS = {"<", ">", "<=", ">="}
EQUALITY_OPERATORS = {"==", "!=", "===", "!=="}


def infer_boolean(node, context: Context, api: Api) -> Inferred:
    return Substitution(), api.types.bool_type()

def infer_number(node, context: Context, api: Api) -> Inferred:
    return Substitution(), api.types.int_type()

def infer_string(node, context: Context, api: Api) -> Inferred:
    return Substitution(), api.types.str_type()

def infer_identifier(node: Identifier, context: Context, api: Api) -> Inferred:
    scheme = context.lookup(node.name)
    if scheme is None:
        raise UnboundIdentifierError(node, node.name)
    return Substitution(), instantiate(scheme, api.types)

def infer_call(node: CallExpression, context: Context, api: Api) -> Inferred:
    result = api.types.variable()
    callee_s, callee = api.visit(node.callee, context)
    context = apply_context(callee_s, context)
    callee = instantiate(generalize(context, callee), api.types)

    s = Substitution()
    arg_types = []
    for arg in node.arguments:
        arg_s, arg_type = api.visit(arg, apply_context(s, context))
        s = compose(arg_s, s)
        arg_types.append(arg_type)
    shape = api.types.function([apply(s, t) for t in arg_types], result)

    unify_s = unify(shape, apply(s, callee), api.types)
    failure = unify_s.get(shape.id)
    if isinstance(failure, ErrType):
        # arity mismatch or a callee that is not a function
        unify_s = compose(Substitution({result.id: failure}), unify_s)
    subst = compose(unify_s, compose(s, callee_s))
    return subst, apply(subst, result)

def infer_function(node: Function, context: Context, api: Api) -> Inferred:
    types = api.types
    param_vars = [types.variable() for _ in node.params]
    func_context = context.extend({
        param.name: monotype(t)
        for param, t in zip(node.params, param_vars)
    })
    self_type = None
    if isinstance(node, FunctionExpression) and node.id is not None:
        self_type = types.variable()
        func_context = func_context.extend({node.id.name: monotype(self_type)})
    returns = None
    if isinstance(node.body, BlockStatement):
        returns = types.variable()
        func_context = func_context.with_returns(returns)

    param_s = Substitution()
    param_types = []
    for param in node.params:
        s, t = api.visit(param, apply_context(param_s, func_context))
        param_s = compose(s, param_s)
        param_types.append(t)

    body_s, body_type = api.visit(node.body, apply_context(param_s, func_context))
    if returns is not None:
        body_type = apply(body_s, returns)
        if isinstance(body_type, TypeVariable) and body_type.id == returns.id:
            body_type = types.void_type()

    shape = types.function(param_types, body_type)
    check_s = unify(apply(param_s, shape), apply(body_s, shape), types)
    subst = compose(check_s, compose(body_s, param_s))
    func_type = apply(subst, shape)

    if self_type is not None:
        # recursive calls inside the body constrain the expression itself
        subst = compose(unify(apply(subst, self_type), func_type, types), subst)
        func_type = apply(subst, func_type)
    if isinstance(node, FunctionDeclaration):
        name_s, name_type = api.visit(node.id, apply_context(subst, context))
        bind_s = unify(apply(name_s, name_type), func_type, types)
        subst = compose(bind_s, compose(name_s, subst))
        api.patch(node.id, name_type, apply(subst, name_type))
    return subst, func_type

def _initialized_names(statement: Node) -> list[str]:
    # `let x;` stays monomorphic so later uses all constrain the same variable
    if isinstance(statement, VariableDeclaration):
        return [d.id.name for d in statement.declarations if d.init is not None]
    return declared_names([statement])

def _generalize_declared(statement: Node, context: Context) -> Context:
    for name in _initialized_names(statement):
        scheme = context.lookup(name)
        if scheme is None or scheme.vars:
            continue
        context = context.extend({name: generalize(context.without(name), scheme.type)})
    return context

def infer_block(node: Program | BlockStatement, context: Context, api: Api) -> Inferred:
    names = declared_names(node.body)
    for name, seen in Counter(names).items():
        if seen > 1:
            logger.warning("%s: '%s' is declared %d times in the same scope", node.loc, name, seen)
    block_context = context.extend({name: monotype(api.types.variable()) for name in names})

    s = Substitution()
    for statement in node.body:
        statement_s, _ = api.visit(statement, block_context)
        s = compose(statement_s, s)
        block_context = _generalize_declared(statement, apply_context(statement_s, block_context))
    return s, api.types.void_type()

def infer_variable_declaration(node: VariableDeclaration, context: Context, api: Api) -> Inferred:
    s = Substitution()
    for declarator in node.declarations:
        declarator_s, _ = api.visit(declarator, apply_context(s, context))
        s = compose(declarator_s, s)
    return s, api.types.void_type()

def infer_variable_declarator(node: VariableDeclarator, context: Context, api: Api) -> Inferred:
    if node.init is None:
        id_s, _ = api.visit(node.id, context)
        return id_s, api.types.void_type()
    init_s, init_type = api.visit(node.init, context)
    id_s, id_type = api.visit(node.id, apply_context(init_s, context))
    unify_s = unify(apply(id_s, id_type), init_type, api.types)
    subst = compose(unify_s, compose(id_s, init_s))
    api.patch(node.id, id_type, apply(subst, id_type))
    return subst, api.types.void_type()

def infer_object(node: ObjectExpression, context: Context, api: Api) -> Inferred:
    s = Substitution()
    properties: list[tuple[str, Type]] = []
    for prop in node.properties:
        prop_s, prop_type = api.visit(prop, apply_context(s, context))
        s = compose(prop_s, s)
        [(key, value)] = prop_type.properties
        properties.append((key, value))
    for key, seen in Counter(key for key, _ in properties).items():
        if seen > 1:
            logger.warning("%s: duplicate property '%s' in object literal", node.loc, key)
    return s, api.types.obj([(key, apply(s, value)) for key, value in properties])

def property_name(node: ObjectProperty) -> str:
    if isinstance(node.key, Identifier):
        return node.key.name
    return node.key.value

def infer_property(node: ObjectProperty, context: Context, api: Api) -> Inferred:
    value_s, value_type = api.visit(node.value, context)
    name = property_name(node)
    if not isinstance(node.key, Identifier):
        return value_s, api.types.obj([(name, value_type)])
    key_context = apply_context(value_s, context.extend({name: monotype(api.types.variable())}))
    key_s, key_type = api.visit(node.key, key_context)
    unify_s = unify(apply(key_s, key_type), value_type, api.types)
    subst = compose(unify_s, compose(key_s, value_s))
    return subst, api.types.obj([(name, apply(subst, key_type))])

def _require(t: Type, expected: Type, s: Substitution, api: Api) -> Substitution:
    return compose(unify(apply(s, t), expected, api.types), s)

def infer_binary(node: BinaryExpression, context: Context, api: Api) -> Inferred:
    types = api.types
    left_s, left = api.visit(node.left, context)
    right_s, right = api.visit(node.right, apply_context(left_s, context))
    s = compose(right_s, left_s)
    if node.operator in EQUALITY_OPERATORS:
        s = compose(unify(apply(s, left), apply(s, right), types), s)
        return s, types.bool_type()
    if node.operator not in ARITHMETIC_OPERATORS | RELATIONAL_OPERATORS:
        raise EngineError(f"unknown binary operator {node.operator}", node)
    s = _require(left, types.int_type(), s, api)
    s = _require(right, types.int_type(), s, api)
    if node.operator in RELATIONAL_OPERATORS:
        return s, types.bool_type()
    return s, types.int_type()

def infer_unary(node: UnaryExpression, context: Context, api: Api) -> Inferred:
    types = api.types
    s, argument = api.visit(node.argument, context)
    match node.operator:
        case "-" | "+":
            return _require(argument, types.int_type(), s, api), types.int_type()
        case "!":
            return _require(argument, types.bool_type(), s, api), types.bool_type()
    raise EngineError(f"unknown unary operator {node.operator}", node)

def infer_return(node: ReturnStatement, context: Context, api: Api) -> Inferred:
    if context.returns is None:
        raise EngineError("'return' outside of a function", node)
    if node.argument is None:
        s, argument = Substitution(), api.types.void_type()
    else:
        s, argument = api.visit(node.argument, context)
    expected = apply(s, context.returns)
    # a mismatch is charged to the returned value, the return slot is bound otherwise
    if isinstance(argument, TypeVariable):
        s = compose(unify(expected, argument, api.types), s)
    else:
        s = compose(unify(argument, expected, api.types), s)
    if node.argument is None:
        return s, argument
    return s, api.types.void_type()


FUNCTION_KINDS = (
    NodeKind.FUNCTION_DECLARATION,
    NodeKind.FUNCTION_EXPRESSION,
    NodeKind.ARROW_FUNCTION_EXPRESSION,
)
BLOCK_KINDS = (NodeKind.PROGRAM, NodeKind.BLOCK_STATEMENT)

RULES: dict[NodeKind | tuple[NodeKind, ...], Rule] = {
    NodeKind.BOOLEAN_LITERAL: infer_boolean,
    NodeKind.NUMERIC_LITERAL: infer_number,
    NodeKind.STRING_LITERAL: infer_string,
    NodeKind.IDENTIFIER: infer_identifier,
    NodeKind.CALL_EXPRESSION: infer_call,
    FUNCTION_KINDS: infer_function,
    BLOCK_KINDS: infer_block,
    NodeKind.VARIABLE_DECLARATION: infer_variable_declaration,
    NodeKind.VARIABLE_DECLARATOR: infer_variable_declarator,
    NodeKind.OBJECT_EXPRESSION: infer_object,
    NodeKind.OBJECT_PROPERTY: infer_property,
    NodeKind.BINARY_EXPRESSION: infer_binary,
    NodeKind.UNARY_EXPRESSION: infer_unary,
    NodeKind.RETURN_STATEMENT: infer_return,
}


def js_context(types: TypeFactory) -> Context:
    """Builtin globals available to every program."""
    bindings = {
        "String": types.function([types.variable()], types.str_type()),
        "Number": types.function([types.variable()], types.int_type()),
        "Boolean": types.function([types.variable()], types.bool_type()),
        "parseInt": types.function([types.str_type()], types.int_type()),
        "isNaN": types.function([types.int_type()], types.bool_type()),
    }
    return Context({name: generalize(Context(), t) for name, t in bindings.items()})
