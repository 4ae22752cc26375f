"""
Builtin function and native method tests for PJScript
"""

import pytest
from conftest import run
from objects import Array, Builtin, Error, FALSE, Integer, NULL, String, TRUE
from stdlib import (
  array_slice, create_builtins, display_text, pj_len, pj_rest, string_split,
)


def error_message(value):
  assert isinstance(value, Error), f"expected an Error, got {value!r}"
  return value.message


class TestBuiltins:

  @pytest.mark.parametrize("source, expected", [
      ('len("")', 0),
      ('len("four")', 4),
      ('len("hello world")', 11),
      ("len([1, 2, 3])", 3),
      ("len([])", 0),
  ])
  def test_len(self, source, expected):
    assert run(source) == Integer(expected)

  def test_len_rejects_other_types(self):
    assert error_message(run("len(1)")) == "Unsupported argument to `len`, got: integer"

  def test_len_arity(self):
    assert error_message(run('len("one", "two")')) == "Invalid argument count `len` takes 1, got: 2"

  def test_first_last_rest(self):
    assert run("first([1, 2, 3])") == Integer(1)
    assert run("last([1, 2, 3])") == Integer(3)
    assert run("rest([1, 2, 3])").stringify() == "[2, 3]"

  @pytest.mark.parametrize("name", ["first", "last", "rest"])
  def test_empty_array_gives_null(self, name):
    assert run(f"{name}([])") is NULL

  def test_rest_does_not_mutate(self):
    assert run("a = [1, 2]; rest(a); a").stringify() == "[1, 2]"

  def test_first_requires_array(self):
    assert error_message(run("first(1)")) == "Argument 1 to `first` must be of type `array`, got: integer"

  def test_print(self, capsys):
    assert run('print("total:", 1 + 2, [1, "a"], true)') is NULL
    assert capsys.readouterr().out == 'total: 3 [1, "a"] true\n'

  def test_print_without_arguments(self, capsys):
    run("print()")
    assert capsys.readouterr().out == "\n"

  def test_builtin_table(self):
    builtins = create_builtins()
    assert set(builtins) == {"len", "first", "last", "rest", "print", "null"}
    assert builtins["null"] is NULL

  def test_builtins_called_directly(self):
    assert pj_len(Array([Integer(1)])) == Integer(1)
    assert pj_rest(Array([])) is NULL

  def test_display_text(self):
    assert display_text(String("x")) == "x"
    assert display_text(Array([String("x")])) == '["x"]'


class TestStringMethods:

  def test_length_property_and_method(self):
    assert run('"abc".length') == Integer(3)
    assert run('"abc".length()') == Integer(3)

  def test_split(self):
    assert run('"a,b,c".split(",")').stringify() == '["a", "b", "c"]'

  def test_split_on_whitespace(self):
    assert run('"  a b\tc ".split()').stringify() == '["a", "b", "c"]'

  def test_split_into_characters(self):
    assert run('"abc".split("")').stringify() == '["a", "b", "c"]'

  def test_split_type_check(self):
    assert error_message(string_split(String("a"), Integer(1))) == \
        "Argument 1 to `split` must be of type `string`, got: integer"

  def test_strip(self):
    assert run('"  pad  ".strip()') == String("pad")

  @pytest.mark.parametrize("text, expected", [("42", 42), ("-7", -7), ("007", 7)])
  def test_into_int(self, text, expected):
    assert run(f'"{text}".into_int()') == Integer(expected)

  @pytest.mark.parametrize("text", ["", "4 2", "abc", "1.5", "+1"])
  def test_into_int_rejects(self, text):
    assert error_message(run(f'"{text}".into_int()')).startswith("Cannot convert string to integer")

  def test_is_numeric(self):
    assert run('"123".is_numeric()') is TRUE
    assert run('"12a".is_numeric()') is FALSE

  def test_method_arity(self):
    assert error_message(run('"a".strip(1)')) == "Invalid argument count `strip` takes 0, got: 1"

  def test_unknown_method(self):
    assert error_message(run('"a".shout()')) == "Property does not exist: shout on string"

  def test_index_by_name_reads_property(self):
    assert run('"abc"["length"]') == Integer(3)

  def test_methods_on_integers_do_not_exist(self):
    assert error_message(run("5.length")) == "Property does not exist: length on integer"


class TestArrayMethods:

  def test_push_returns_null_and_mutates(self):
    assert run("a = []; a.push(1)") is NULL
    assert run("a = []; a.push(1); a.push(2); a").stringify() == "[1, 2]"

  def test_push_arity(self):
    assert error_message(run("[].push()")) == "Invalid argument count `push` takes 1, got: 0"

  def test_pop_and_dequeue(self):
    assert run("a = [1, 2, 3]; a.pop()") == Integer(3)
    assert run("a = [1, 2, 3]; a.dequeue()") == Integer(1)
    assert run("a = [1, 2, 3]; a.pop(); a.dequeue(); a").stringify() == "[2]"

  def test_pop_empty(self):
    assert run("[].pop()") is NULL
    assert run("[].dequeue()") is NULL

  def test_length(self):
    assert run("[1, 2].length") == Integer(2)
    assert run("[1, 2].length()") == Integer(2)

  def test_filter(self):
    assert run("[1, 2, 3].filter(f(x) { x == 2 })").stringify() == "[2]"

  def test_filter_requires_boolean_result(self):
    assert error_message(run("[1].filter(f(x) { x })")) == \
        "Function passed to `filter` must return a boolean, got: integer"

  def test_filter_requires_function(self):
    assert error_message(run("[1].filter(1)")) == \
        "Argument 1 to `filter` must be a function, got: integer"

  def test_map(self):
    assert run("[1, 2, 3].map(f(x) => x * 10)").stringify() == "[10, 20, 30]"

  def test_map_with_builtin(self):
    assert run('["a", "bb"].map(len)').stringify() == "[1, 2]"

  def test_map_propagates_errors(self):
    assert error_message(run("[1, true].map(f(x) => x + 1)")) == "Type mismatch: boolean + integer"

  def test_reduce(self):
    assert run("[1, 2, 3, 4].reduce(f(acc, x) => acc + x)") == Integer(10)

  def test_reduce_with_initial_value(self):
    assert run('[1, 2].reduce(f(acc, x) => acc + x, 10)') == Integer(13)
    assert run("[].reduce(f(acc, x) => acc + x, 0)") == Integer(0)

  def test_reduce_empty_without_initial(self):
    assert error_message(run("[].reduce(f(acc, x) => acc + x)")) == \
        "Cannot reduce an empty array without an initial value"

  def test_reduce_arity(self):
    assert error_message(run("[1].reduce()")) == "Invalid argument count `reduce` takes 1 or 2, got: 0"

  @pytest.mark.parametrize("call, expected", [
      ("slice()", "[1, 2, 3, 4, 5]"),
      ("slice(2)", "[3, 4, 5]"),
      ("slice(1, 3)", "[2, 3]"),
      ("slice(-2)", "[4, 5]"),
      ("slice(0, -1)", "[1, 2, 3, 4]"),
      ("slice(-10, 10)", "[1, 2, 3, 4, 5]"),
      ("slice(4, 2)", "[]"),
  ])
  def test_slice(self, call, expected):
    assert run(f"[1, 2, 3, 4, 5].{call}").stringify() == expected

  def test_slice_copies(self):
    original = Array([Integer(1), Integer(2)])
    copy = array_slice(original)
    copy.elements.append(Integer(3))
    assert len(original.elements) == 2

  def test_slice_type_check(self):
    assert error_message(run('[1].slice("a")')) == \
        "Argument 1 to `slice` must be of type `integer`, got: string"

  def test_method_read_is_bound_builtin(self):
    push = run("a = [1]; a.push")
    assert isinstance(push, Builtin)
    assert push.stringify() == "<builtin function push>"

  def test_bound_method_keeps_receiver(self):
    assert run("a = [1]; p = a.push; p(2); a").stringify() == "[1, 2]"

  def test_method_read_through_index(self):
    assert run('a = [3, 1]; a["pop"]()') == Integer(1)
