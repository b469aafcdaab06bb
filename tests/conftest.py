import pytest

from jstypes import TypeFactory, type_repr
from nodes import NodeKind
from parser import parse
from traversal import NodeCache, identifier_types, infer_program


@pytest.fixture
def types() -> TypeFactory:
    return TypeFactory()


@pytest.fixture
def check():
    """Parse and infer ``source``, returning the node cache."""
    def run(source: str, prelude: bool = True) -> NodeCache:
        return infer_program(parse(source), prelude=prelude)
    return run


@pytest.fixture
def ids(check):
    """Rendered type of every identifier, by name (last occurrence wins)."""
    def run(source: str, prelude: bool = True) -> dict[str, str]:
        found = identifier_types(check(source, prelude))
        return {name: type_repr(t) for name, t in found.items()}
    return run


@pytest.fixture
def kinds(check):
    """Rendered types of every cached node of one kind, in visitation order."""
    def run(source: str, kind: NodeKind) -> list[str]:
        return [type_repr(entry.type) for entry in check(source) if entry.node.kind == kind]
    return run
