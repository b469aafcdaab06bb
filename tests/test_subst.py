import pytest

from jstypes import BoolType, ErrType, IntType, StrType, type_repr
from subst import Substitution, apply, compose, delete_bound_vars, free_vars, unify


def no_errors(s: Substitution) -> bool:
    return not any(isinstance(t, ErrType) for t in s.raw.values())


def test_apply_resolves_bound_variable(types):
    a, n = types.variable(), types.int_type()
    assert apply(Substitution({a.id: n}), a) is n


def test_apply_leaves_unbound_variable(types):
    a, b = types.variable(), types.variable()
    assert apply(Substitution({a.id: types.int_type()}), b) is b


def test_apply_rebuilds_function_keeping_id(types):
    a = types.variable()
    f = types.function([a], a)
    applied = apply(Substitution({a.id: types.str_type()}), f)
    assert applied.id == f.id
    assert type_repr(applied) == "(str) => str"


def test_apply_prefers_err_binding(types):
    n = types.int_type()
    err = types.err(n, types.str_type())
    assert apply(Substitution({n.id: err}), n) is err


def test_apply_follows_chains_without_looping(types):
    a, b = types.variable(), types.variable()
    s = Substitution({a.id: b, b.id: a})
    assert apply(s, a) in (a, b)


def test_compose_applies_second_substitution_first(types):
    a, b, n = types.variable(), types.variable(), types.int_type()
    s1 = Substitution({b.id: n})
    s2 = Substitution({a.id: b})
    s = compose(s1, s2)
    assert apply(s, a) is n
    assert apply(s, a) == apply(s1, apply(s2, a))


def test_apply_is_idempotent_after_compose(types):
    a, b, c = types.variable(), types.variable(), types.variable()
    f = types.function([a, b], c)
    s = compose(Substitution({b.id: types.int_type()}), Substitution({a.id: b, c.id: a}))
    once = apply(s, f)
    assert apply(s, once) == once


def test_delete_bound_vars(types):
    a, b = types.variable(), types.variable()
    s = Substitution({a.id: types.int_type(), b.id: types.str_type()})
    assert list(delete_bound_vars(s, [a.id]).keys()) == [b.id]


def test_free_vars_are_ordered_and_unique(types):
    a, b = types.variable(), types.variable()
    t = types.function([b, types.obj([("x", a)])], b)
    assert free_vars(t) == [b.id, a.id]


@pytest.mark.parametrize("make", [
    lambda t: t.int_type(),
    lambda t: t.void_type(),
    lambda t: t.function([t.variable()], t.bool_type()),
    lambda t: t.obj([("k", t.str_type())]),
])
def test_unify_with_fresh_variable_succeeds(types, make):
    other = make(types)
    fresh = types.variable()
    for s in (unify(fresh, other, types), unify(other, fresh, types)):
        assert no_errors(s)
        assert apply(s, fresh) == other


def test_unify_same_variable_is_empty(types):
    a = types.variable()
    assert len(unify(a, a, types)) == 0


def test_unify_matching_primitives_is_empty(types):
    assert len(unify(types.str_type(), types.str_type(), types)) == 0


def test_unify_value_with_itself_is_empty(types):
    err = types.err(types.str_type(), types.int_type())
    for t in (types.void_type(), err, types.function([], types.variable())):
        assert len(unify(t, t, types)) == 0


def test_unify_functions_binds_parameters_and_returns(types):
    a, b = types.variable(), types.variable()
    s = unify(
        types.function([a], b),
        types.function([types.int_type()], types.bool_type()),
        types,
    )
    assert isinstance(apply(s, a), IntType)
    assert isinstance(apply(s, b), BoolType)


def test_unify_arity_mismatch_is_err(types):
    shape = types.function([types.int_type()], types.variable())
    callee = types.function([types.int_type(), types.int_type()], types.int_type())
    s = unify(shape, callee, types)
    assert isinstance(s.get(shape.id), ErrType)


def test_unify_non_function_callee_is_err(types):
    shape = types.function([], types.variable())
    s = unify(shape, types.int_type(), types)
    err = s.get(shape.id)
    assert isinstance(err, ErrType)
    assert err.expected is shape


def test_unify_primitive_mismatch_charges_left_side(types):
    s, n = types.str_type(), types.int_type()
    assert isinstance(unify(s, n, types).get(s.id), ErrType)


def test_unify_occurs_check_yields_err(types):
    a = types.variable()
    s = unify(a, types.function([a], types.int_type()), types)
    assert isinstance(s.get(a.id), ErrType)


def test_unify_objects_with_same_keys(types):
    a = types.variable()
    s = unify(
        types.obj([("name", a), ("age", types.int_type())]),
        types.obj([("name", types.str_type()), ("age", types.int_type())]),
        types,
    )
    assert no_errors(s)
    assert isinstance(apply(s, a), StrType)


def test_unify_objects_with_different_keys_is_err(types):
    left = types.obj([("name", types.str_type())])
    s = unify(left, types.obj([("title", types.str_type())]), types)
    assert isinstance(s.get(left.id), ErrType)
