from dataclasses import dataclass, field
from typing import Iterable, Mapping

from jstypes import (
    BoolType,
    ErrType,
    FuncType,
    IntType,
    ObjType,
    StrType,
    Type,
    TypeFactory,
    TypeVariable,
    VoidType,
)

@dataclass(frozen=True)
class Substitution:
    raw: Mapping[int, Type] = field(default_factory=dict)

    def __contains__(self, id: int) -> bool:
        return id in self.raw

    def __len__(self) -> int:
        return len(self.raw)

    def get(self, id: int) -> Type | None:
        return self.raw.get(id)

    def keys(self):
        return self.raw.keys()


def apply(s: Substitution, t: Type) -> Type:
    return _apply(s, t, frozenset())

def _apply(s: Substitution, t: Type, seen: frozenset[int]) -> Type:
    bound = s.raw.get(t.id)
    # a recorded inconsistency wins over any other binding
    if isinstance(bound, ErrType):
        return bound
    if isinstance(t, TypeVariable):
        if bound is None or t.id in seen:
            return t
        return _apply(s, bound, seen | {t.id})
    if isinstance(t, FuncType):
        return FuncType(
            t.id,
            tuple(_apply(s, p, seen) for p in t.params),
            _apply(s, t.returns, seen),
        )
    if isinstance(t, ObjType):
        return ObjType(
            t.id,
            tuple((name, _apply(s, value, seen)) for name, value in t.properties),
        )
    return t

def compose(s1: Substitution, s2: Substitution) -> Substitution:
    """Apply ``s2`` first, then ``s1``."""
    return Substitution({
        **s1.raw,
        **{id: apply(s1, t) for id, t in s2.raw.items()},
    })

def delete_bound_vars(s: Substitution, ids: Iterable[int]) -> Substitution:
    ids = set(ids)
    return Substitution({k: v for k, v in s.raw.items() if k not in ids})

def free_vars(t: Type) -> list[int]:
    found: dict[int, None] = {}

    def walk(t: Type) -> None:
        match t:
            case TypeVariable(id=id):
                found[id] = None
            case FuncType(params=params, returns=returns):
                for p in params:
                    walk(p)
                walk(returns)
            case ObjType(properties=properties):
                for _, value in properties:
                    walk(value)

    walk(t)
    return list(found)

def occurs(id: int, t: Type) -> bool:
    return id in free_vars(t)


def var_bind(var: TypeVariable, t: Type, types: TypeFactory) -> Substitution:
    if var.id == t.id:
        return Substitution()
    if occurs(var.id, t):
        return Substitution({var.id: types.err(var, t)})
    return Substitution({var.id: t})

def _unify_pairwise(pairs, types: TypeFactory) -> Substitution:
    s = Substitution()
    for a, b in pairs:
        s = compose(unify(apply(s, a), apply(s, b), types), s)
    return s

def unify(t1: Type, t2: Type, types: TypeFactory) -> Substitution:
    """Most general substitution making ``t1`` and ``t2`` equal.

    A mismatch is never raised: it comes back as a binding of ``t1``'s id to
    ``Err(t1, t2)`` so the rest of the pass can carry on around it.
    """
    if t1.id == t2.id:
        return Substitution()
    match t1, t2:
        case (IntType(), IntType()) | (BoolType(), BoolType()) | (StrType(), StrType()) | (VoidType(), VoidType()):
            return Substitution()
        case FuncType(), FuncType() if len(t1.params) == len(t2.params):
            s = _unify_pairwise(zip(t1.params, t2.params), types)
            return compose(unify(apply(s, t1.returns), apply(s, t2.returns), types), s)
        case ObjType(), ObjType() if [k for k, _ in t1.properties] == [k for k, _ in t2.properties]:
            return _unify_pairwise(
                ((a, b) for (_, a), (_, b) in zip(t1.properties, t2.properties)),
                types,
            )
        case TypeVariable(), _:
            return var_bind(t1, t2, types)
        case _, TypeVariable():
            return var_bind(t2, t1, types)
    return Substitution({t1.id: types.err(t1, t2)})
