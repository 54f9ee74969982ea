import pytest

from isla.isla_interpreter import Evaluator
from isla.isla_library import StdLib, get_initial_env, default_types
from isla.isla_datatypes import IslaObject, IslaList, Reference, UnboundVariable, WrongArgument


@pytest.fixture
def ev():
    return Evaluator()

@pytest.fixture
def env(ev):
    return get_initial_env(ev)


def test_initial_env_has_builtins_and_types(env):
    assert set(["write", "describe", "count"]) <= set(env.ctx.keys())
    assert env.ctx.types["generic"] is IslaObject
    assert env.ctx.types["list"] is IslaList
    assert env.ret is None

def test_default_types_are_fresh_dicts():
    a = default_types()
    a["extra"] = IslaObject
    assert "extra" not in default_types()

def test_stdlib_function_names(ev):
    names = StdLib(ev).functions()
    assert sorted(names) == ["count", "describe", "write"]

def test_stdlib_without_evaluator():
    lib = StdLib()
    assert isinstance(lib.evaluator, Evaluator)


# --- write ---

def test_write_string_is_unquoted(ev, env):
    assert env.ctx["write"](env, "hello") == "hello"
    assert ev.side_effects[-1] == {"topics": ["stdout"], "message": "hello"}

def test_write_resolves_references(ev, env):
    env.ctx["x"] = 5
    env.ctx["y"] = Reference("x")
    assert env.ctx["write"](env, Reference("y")) == "5"

def test_write_list(ev, env):
    env.ctx["n"] = 2
    xs = IslaList([1, Reference("n")])
    assert env.ctx["write"](env, xs) == "[1, 2]"
    assert xs.items() == [1, Reference("n")]

def test_write_unbound_reference(env):
    with pytest.raises(UnboundVariable):
        env.ctx["write"](env, Reference("ghost"))


# --- describe / count ---

def test_describe(env):
    giraffe = IslaObject()
    giraffe.meta["type"] = "giraffe"
    env.ctx["g"] = giraffe
    assert env.ctx["describe"](env, Reference("g")) == "a giraffe"
    assert env.ctx["describe"](env, 3) == "a number"

def test_count_through_alias_does_not_copy(env):
    xs = IslaList([1, 2, 3])
    env.ctx["xs"] = xs
    env.ctx["ys"] = Reference("xs")
    assert env.ctx["count"](env, Reference("ys")) == 3

def test_count_rejects_numbers(env):
    with pytest.raises(WrongArgument):
        env.ctx["count"](env, 3)
