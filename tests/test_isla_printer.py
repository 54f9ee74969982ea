import pytest
from isla.isla_printer import Printer
from isla.isla_datatypes import IslaObject, IslaList, Reference


@pytest.fixture
def printer():
    return Printer(indent_width=2)


def _giraffe(**attrs):
    g = IslaObject(attrs)
    g.meta["type"] = "giraffe"
    return g


# Test cases: (id, object, expected_string)
FORMAT_TEST_CASES = [
    ("str", "hello", '"hello"'),
    ("int", 123, "123"),
    ("negative_int", -4, "-4"),
    ("bool_true", True, "true"),
    ("none", None, "nothing"),
    ("reference", Reference("x"), "<ref x>"),
    ("attribute_reference", Reference(("isla", "age")), "<ref isla age>"),
    ("empty_list", IslaList(), "[]"),
    ("list", IslaList([1, "a"]), '[1, "a"]'),
    ("nested_list", IslaList([IslaList([1])]), "[[1]]"),
    ("plain_object", IslaObject(), "a thing"),
    ("typed_object", _giraffe(), "a giraffe"),
    ("object_with_attrs", _giraffe(height=5, name="jim"), 'a giraffe with height = 5 and name = "jim"'),
    ("dict", {}, "{}"),
]

@pytest.mark.parametrize("test_id, obj, expected", FORMAT_TEST_CASES, ids=[c[0] for c in FORMAT_TEST_CASES])
def test_pformat(printer, test_id, obj, expected):
    assert printer.pformat(obj) == expected

def test_pformat_dict_is_indented(printer):
    assert printer.pformat({"a": 1}) == "{\n  a: 1\n}"

def test_pformat_function(printer):
    class Lib:
        def _write(self, env, param):
            return None
    assert printer.pformat(Lib()._write) == "<function write>"

@pytest.mark.parametrize("obj, expected", [
    (_giraffe(), "a giraffe"),
    (IslaList(), "a list"),
    ("x", "some text"),
    (1, "a number"),
    (False, "a truth value"),
    (None, "nothing"),
    (Reference("x"), "a reference to x"),
])
def test_describe(printer, obj, expected):
    assert printer.describe(obj) == expected

def test_describe_uses_an_before_vowels(printer):
    obj = IslaObject()
    obj.meta["type"] = "elephant"
    assert printer.describe(obj) == "an elephant"
