from __future__ import annotations

from dataclasses import dataclass
from itertools import count
from typing import Callable, TypeAlias

@dataclass(frozen=True)
class BoolType:
    id: int

@dataclass(frozen=True)
class IntType:
    id: int

@dataclass(frozen=True)
class StrType:
    id: int

@dataclass(frozen=True)
class VoidType:
    id: int

@dataclass(frozen=True)
class TypeVariable:
    id: int

@dataclass(frozen=True)
class FuncType:
    id: int
    params: tuple[Type, ...]
    returns: Type

@dataclass(frozen=True)
class ObjType:
    id: int
    properties: tuple[tuple[str, Type], ...]

@dataclass(frozen=True)
class ErrType:
    id: int
    expected: Type
    actual: Type

Type: TypeAlias = BoolType | IntType | StrType | VoidType | TypeVariable | FuncType | ObjType | ErrType

def is_bool(t: Type) -> bool:
    return isinstance(t, BoolType)

def is_int(t: Type) -> bool:
    return isinstance(t, IntType)

def is_str(t: Type) -> bool:
    return isinstance(t, StrType)

def is_void(t: Type) -> bool:
    return isinstance(t, VoidType)

def is_var(t: Type) -> bool:
    return isinstance(t, TypeVariable)

def is_func(t: Type) -> bool:
    return isinstance(t, FuncType)

def is_obj(t: Type) -> bool:
    return isinstance(t, ObjType)

def is_err(t: Type) -> bool:
    return isinstance(t, ErrType)


class TypeFactory:
    """Builds type values stamped with ids from one inference pass.

    ``next_id`` is the pass's id generator; two factories sharing a generator
    never hand out the same id.
    """

    def __init__(self, next_id: Callable[[], int] | None = None):
        self.next_id = next_id or count(1).__next__

    def bool_type(self) -> BoolType:
        return BoolType(self.next_id())

    def int_type(self) -> IntType:
        return IntType(self.next_id())

    def str_type(self) -> StrType:
        return StrType(self.next_id())

    def void_type(self) -> VoidType:
        return VoidType(self.next_id())

    def variable(self) -> TypeVariable:
        return TypeVariable(self.next_id())

    def function(self, params, returns: Type) -> FuncType:
        return FuncType(self.next_id(), tuple(params), returns)

    def obj(self, properties) -> ObjType:
        return ObjType(self.next_id(), tuple((name, t) for name, t in properties))

    def err(self, expected: Type, actual: Type) -> ErrType:
        return ErrType(self.next_id(), expected, actual)


LETTERS = "abcdefghijklmnopqrstuvwxyz"

def type_repr(t: Type) -> str:
    """Render ``t``; variable letters are only stable within one call."""
    names: dict[int, str] = {}

    def var_name(var: TypeVariable) -> str:
        if var.id not in names:
            index = len(names)
            suffix = index // len(LETTERS) or ""
            names[var.id] = f"{LETTERS[index % len(LETTERS)]}{suffix}"
        return names[var.id]

    def render(t: Type) -> str:
        match t:
            case BoolType():
                return "bool"
            case IntType():
                return "int"
            case StrType():
                return "str"
            case VoidType():
                return "void"
            case TypeVariable():
                return var_name(t)
            case FuncType(params=params, returns=returns):
                return f"({', '.join(render(p) for p in params)}) => {render(returns)}"
            case ObjType(properties=()):
                return "{}"
            case ObjType(properties=properties):
                fields = ", ".join(f"{key}: {render(value)}" for key, value in properties)
                return f"{{ {fields} }}"
            case ErrType(expected=expected, actual=actual):
                return f"err: expected {render(expected)} and got {render(actual)}"
        assert False, f"Not implemented: {t}"

    return render(t)
