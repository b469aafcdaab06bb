from jstypes import FuncType, TypeVariable, type_repr
from scheme import (
    Context,
    Scheme,
    apply_context,
    free_vars_context,
    generalize,
    instantiate,
    monotype,
)
from subst import Substitution, free_vars


def test_generalize_quantifies_vars_not_free_in_context(types):
    a, b = types.variable(), types.variable()
    context = Context({"y": monotype(b)})
    scheme = generalize(context, types.function([a], b))
    assert scheme.vars == (a.id,)


def test_instantiate_gives_fresh_variables(types):
    a = types.variable()
    scheme = generalize(Context(), types.function([a], a))
    first, second = instantiate(scheme, types), instantiate(scheme, types)
    assert isinstance(first, FuncType)
    assert type_repr(first) == "(a) => a"
    assert first.params[0].id != a.id
    assert set(free_vars(first)).isdisjoint(free_vars(second))


def test_instantiate_copies_compound_values(types):
    a = types.variable()
    f = types.function([a], types.int_type())
    copy = instantiate(generalize(Context(), f), types)
    assert copy.id != f.id


def test_instantiate_keeps_free_variables(types):
    a = types.variable()
    assert instantiate(monotype(a), types) is a


def test_instantiate_copies_primitives(types):
    s = types.str_type()
    copy = instantiate(monotype(s), types)
    assert copy.id != s.id
    assert type_repr(copy) == "str"


def test_apply_context_skips_bound_vars(types):
    a, b = types.variable(), types.variable()
    context = Context({
        "f": Scheme((a.id,), types.function([a], b)),
    })
    s = Substitution({a.id: types.int_type(), b.id: types.str_type()})
    applied = apply_context(s, context).lookup("f")
    assert isinstance(applied.type.params[0], TypeVariable)
    assert type_repr(applied.type) == "(a) => str"


def test_free_vars_context_includes_return_slot(types):
    a, r = types.variable(), types.variable()
    context = Context({"x": monotype(a)}).with_returns(r)
    assert free_vars_context(context) == {a.id, r.id}


def test_context_is_persistent(types):
    base = Context({"x": monotype(types.int_type())})
    extended = base.extend({"y": monotype(types.str_type())})
    assert "y" in extended
    assert "y" not in base
    assert "x" not in extended.without("x")
    assert "x" in base
    assert base.lookup("missing") is None
