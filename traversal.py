import logging
from dataclasses import dataclass, replace
from functools import reduce
from typing import Callable, Iterator, Mapping, TypeVar

from errors import UnsupportedNodeError
from infer import RULES, Api, Inferred, Rule, js_context
from jstypes import ErrType, Type, TypeFactory, VoidType, type_repr
from nodes import NODE_TYPES, Identifier, Node, NodeKind, Program, children
from scheme import Context
from subst import Substitution, apply

logger = logging.getLogger(__name__)

C = TypeVar("C")

@dataclass(frozen=True)
class CacheEntry:
    subst: Substitution
    type: Type
    node: Node


class NodeCache:
    """Inference results of one pass, in visitation order.

    Each entry is filed under the id of the type its rule returned. Several
    nodes can share an id (every use of a monomorphic variable does), so an
    id indexes a list of slots. A later substitution that binds that id
    rewrites those slots in place.
    """

    def __init__(self):
        self.slots: list[CacheEntry] = []
        self.by_id: dict[int, list[int]] = {}

    def __len__(self) -> int:
        return len(self.slots)

    def __iter__(self) -> Iterator[CacheEntry]:
        return iter(self.slots)

    def __contains__(self, id: int) -> bool:
        return id in self.by_id

    def __getitem__(self, id: int) -> CacheEntry:
        return self.slots[self.by_id[id][-1]]

    def get(self, id: int) -> CacheEntry | None:
        if id not in self.by_id:
            return None
        return self[id]

    def record(self, entry: CacheEntry) -> None:
        self.by_id.setdefault(entry.type.id, []).append(len(self.slots))
        self.slots.append(entry)

    def back_patch(self, s: Substitution) -> None:
        for id in s.keys():
            for index in self.by_id.get(id, ()):
                entry = self.slots[index]
                patched = apply(s, entry.type)
                if patched != entry.type:
                    logger.debug("%s: narrowed %s to %s", entry.node.loc, entry.node.kind, type_repr(patched))
                    self.slots[index] = replace(entry, type=patched)

    def patch(self, node: Node, original: Type, narrowed: Type) -> None:
        for index in self.by_id.get(original.id, ()):
            if self.slots[index].node is node:
                self.slots[index] = replace(self.slots[index], type=narrowed)

    def fold(self, reducer: Callable[[C, CacheEntry], C], initial: C) -> C:
        return reduce(reducer, self.slots, initial)


def explode(rules: Mapping[NodeKind | tuple[NodeKind, ...], Rule]) -> dict[NodeKind, Rule]:
    """Turn grouped registrations into one dispatch entry per node kind."""
    table: dict[NodeKind, Rule] = {}
    for key, rule in rules.items():
        for kind in key if isinstance(key, tuple) else (key,):
            if kind in table:
                raise ValueError(f"{kind} has more than one inference rule")
            table[NodeKind(kind)] = rule
    uncovered = [kind for kind in NodeKind if kind not in table and not NODE_TYPES[kind].fields]
    if uncovered:
        logger.debug("no inference rule for %s", ", ".join(uncovered))
    return table


def traverse(
    rules: Mapping[NodeKind | tuple[NodeKind, ...], Rule],
    root: Node,
    prelude: Callable[[TypeFactory], Context] | None = None,
    next_id: Callable[[], int] | None = None,
) -> NodeCache:
    dispatch = explode(rules)
    types = TypeFactory(next_id)
    cache = NodeCache()

    def visit(node: Node, context: Context) -> Inferred:
        rule = dispatch.get(node.kind)
        if rule is not None:
            logger.debug("%s: visiting %s", node.loc, node.kind)
            s, t = rule(node, context, api)
            cache.record(CacheEntry(s, t, node))
            cache.back_patch(s)
            return s, t
        if not node.fields:
            raise UnsupportedNodeError(node)
        result = Substitution(), types.void_type()
        for child in children(node):
            result = visit(child, context)
        return result

    api = Api(visit, types, cache.patch)
    visit(root, prelude(types) if prelude else Context())
    return cache

def traversal(rules, root: Node, next_id: Callable[[], int] | None = None):
    return traverse(rules, root, next_id=next_id).fold

def infer_program(program: Program, prelude: bool = True, next_id: Callable[[], int] | None = None) -> NodeCache:
    return traverse(RULES, program, js_context if prelude else None, next_id)


def describe(node: Node) -> str:
    if isinstance(node, Identifier):
        return node.name
    return node.kind.value

def identifier_types(cache: NodeCache) -> dict[str, Type]:
    """Latest type recorded for each identifier name."""
    def collect(found: dict[str, Type], entry: CacheEntry) -> dict[str, Type]:
        if isinstance(entry.node, Identifier):
            found[entry.node.name] = entry.type
        return found
    return cache.fold(collect, {})

def type_errors(cache: NodeCache) -> list[CacheEntry]:
    return [entry for entry in cache if isinstance(entry.type, ErrType)]

def render(cache: NodeCache, everything: bool = False) -> list[tuple[Node, str]]:
    entries = [
        entry for entry in cache
        if not isinstance(entry.type, VoidType)
        and (everything or isinstance(entry.node, Identifier) or isinstance(entry.type, ErrType))
    ]
    entries.sort(key=lambda e: (e.node.loc.line, e.node.loc.column))
    return [(entry.node, type_repr(entry.type)) for entry in entries]
