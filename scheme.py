from dataclasses import dataclass, field, replace
from typing import Mapping

from jstypes import BoolType, FuncType, IntType, ObjType, StrType, Type, TypeFactory, VoidType
from subst import Substitution, apply, delete_bound_vars, free_vars

@dataclass(frozen=True)
class Scheme:
    vars: tuple[int, ...]
    type: Type

def monotype(t: Type) -> Scheme:
    return Scheme((), t)


@dataclass(frozen=True)
class Context:
    """Identifier bindings of one lexical scope.

    Contexts are never mutated: ``extend``, ``without`` and ``with_returns``
    hand back a copy. ``returns`` is the return type variable of the
    enclosing function, ``None`` at the top level.
    """

    bindings: Mapping[str, Scheme] = field(default_factory=dict)
    returns: Type | None = None

    def __contains__(self, name: str) -> bool:
        return name in self.bindings

    def lookup(self, name: str) -> Scheme | None:
        return self.bindings.get(name)

    def extend(self, bindings: Mapping[str, Scheme]) -> "Context":
        return replace(self, bindings={**self.bindings, **bindings})

    def without(self, name: str) -> "Context":
        return replace(self, bindings={k: v for k, v in self.bindings.items() if k != name})

    def with_returns(self, returns: Type) -> "Context":
        return replace(self, returns=returns)


def apply_scheme(s: Substitution, scheme: Scheme) -> Scheme:
    return Scheme(scheme.vars, apply(delete_bound_vars(s, scheme.vars), scheme.type))

def apply_context(s: Substitution, context: Context) -> Context:
    if not s:
        return context
    return Context(
        {name: apply_scheme(s, scheme) for name, scheme in context.bindings.items()},
        None if context.returns is None else apply(s, context.returns),
    )

def free_vars_scheme(scheme: Scheme) -> list[int]:
    return [v for v in free_vars(scheme.type) if v not in scheme.vars]

def free_vars_context(context: Context) -> set[int]:
    found = set()
    for scheme in context.bindings.values():
        found.update(free_vars_scheme(scheme))
    if context.returns is not None:
        found.update(free_vars(context.returns))
    return found

def generalize(context: Context, t: Type) -> Scheme:
    bound = free_vars_context(context)
    return Scheme(tuple(v for v in free_vars(t) if v not in bound), t)

def instantiate(scheme: Scheme, types: TypeFactory) -> Type:
    """Type for one use of ``scheme``.

    Bound variables become fresh ones. Every other value except free
    variables is copied with a fresh id, so an error charged to one use site
    never reaches the declaration or another use.
    """
    fresh = Substitution({v: types.variable() for v in scheme.vars})
    return _copy(apply(fresh, scheme.type), types)

def _copy(t: Type, types: TypeFactory) -> Type:
    match t:
        case BoolType():
            return types.bool_type()
        case IntType():
            return types.int_type()
        case StrType():
            return types.str_type()
        case VoidType():
            return types.void_type()
        case FuncType(params=params, returns=returns):
            return types.function([_copy(p, types) for p in params], _copy(returns, types))
        case ObjType(properties=properties):
            return types.obj([(name, _copy(value, types)) for name, value in properties])
    return t
