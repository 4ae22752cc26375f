"""
Evaluator tests for PJScript
"""

import pytest
from conftest import parse_program, run
from environment import Environment
from error_handling import PJInvariantError, PJParseError
from interpreter import (
  Evaluator, create_debug_interpreter, create_interpreter, eval_source,
  truncating_divide, values_equal,
)
from objects import (
  Array, Builtin, Error, FALSE, Function, Integer, NULL, Record, Return,
  String, TRUE,
)


def error_message(value):
  assert isinstance(value, Error), f"expected an Error, got {value!r}"
  return value.message


class TestArithmetic:

  @pytest.mark.parametrize("source, expected", [
      ("5", 5),
      ("-5", -5),
      ("5 + 5 * 3;", 20),
      ("(5 + 5) * 3", 30),
      ("2 ** 10", 1024),
      ("2 ** 3 ** 2", 64),
      ("7 / 2", 3),
      ("-7 / 2", -3),
      ("7 / -2", -3),
      ("7 % 3", 1),
      ("-7 % 3", -1),
      ("7 % -3", 1),
      ("50 / 2 * 2 + 10 - 5", 55),
  ])
  def test_integer_expressions(self, source, expected):
    assert run(source) == Integer(expected)

  def test_division_by_zero(self):
    assert error_message(run("1 / 0")) == "Division by zero: 1 / 0"

  def test_modulo_by_zero(self):
    assert error_message(run("1 % 0")) == "Modulo by zero: 1 % 0"

  def test_negative_exponent(self):
    assert error_message(run("2 ** -1")) == "Negative exponent: 2 ** -1"

  def test_truncating_divide(self):
    assert truncating_divide(-9, 4) == -2
    assert truncating_divide(9, -4) == -2
    assert truncating_divide(-9, -4) == 2

  @pytest.mark.parametrize("a, b", [(-7, 3), (7, -3), (-7, -3), (9, 4)])
  def test_division_and_remainder_agree(self, a, b):
    source = f"a = {a}; b = {b}; (a / b) * b + a % b"
    assert run(source) == Integer(a)


class TestBooleansAndComparison:

  @pytest.mark.parametrize("source, expected", [
      ("true", True),
      ("1 < 2", True),
      ("1 > 2", False),
      ("2 <= 2", True),
      ("3 >= 4", False),
      ("1 == 1", True),
      ("1 != 1", False),
      ("true == true", True),
      ("true != false", True),
      ("(1 < 2) == true", True),
      ('"a" < "b"', True),
      ('"abc" == "abc"', True),
      ('"abc" != "abd"', True),
      ("null == null", True),
      ("[1] == [1]", False),
      ("!true", False),
      ("!!5", True),
      ("!null", True),
      ("not 0", False),
      ("true and false", False),
      ("false or 1", True),
      ("null or null", False),
  ])
  def test_boolean_results(self, source, expected):
    assert run(source) is (TRUE if expected else FALSE)

  def test_identity_equality_for_arrays(self):
    assert run("a = [1]; b = a; a == b") is TRUE

  def test_values_equal(self):
    assert values_equal(NULL, NULL)
    assert not values_equal(Integer(1), String("1"))


class TestStrings:

  def test_concatenation(self):
    assert run('"Hello" + " " + "World"') == String("Hello World")

  def test_string_indexing(self):
    assert run('"abc"[1]') == String("b")

  def test_string_index_out_of_range(self):
    assert error_message(run('"abc"[3]')) == "index out of range: 3"

  def test_unknown_string_operator(self):
    assert error_message(run('"a" - "b"')) == "Unknown operator: string - string"


class TestErrors:

  def test_type_mismatch(self):
    assert error_message(run("5 + true;")) == "Type mismatch: integer + boolean"

  @pytest.mark.parametrize("source, message", [
      ("1 == true", "Type mismatch: integer == boolean"),
      ('"1" != 1', "Type mismatch: string != integer"),
      ("null == 0", "Type mismatch: null == integer"),
      ("[1] == {}", "Type mismatch: array == record"),
  ])
  def test_equality_on_mismatched_types(self, source, message):
    assert error_message(run(source)) == message

  def test_logical_operators_accept_mixed_types(self):
    assert run("1 and true") is TRUE
    assert run("null or \"x\"") is TRUE

  def test_unknown_operator(self):
    assert error_message(run("true + false")) == "Unknown operator: boolean + boolean"

  def test_unknown_prefix_operator(self):
    assert error_message(run("-true")) == "Unknown operator: -boolean"

  def test_error_stops_program(self):
    result = run("5; true + false; 5")
    assert error_message(result) == "Unknown operator: boolean + boolean"

  def test_error_propagates_out_of_blocks(self):
    source = """
    if (10 > 1) {
      if (10 > 1) {
        return true + false;
      }
      return 1;
    }
    """
    assert error_message(run(source)) == "Unknown operator: boolean + boolean"

  def test_error_propagates_through_operands(self):
    assert error_message(run("-(true + 1) * 2")) == "Type mismatch: boolean + integer"

  def test_error_propagates_through_arguments_and_elements(self):
    assert isinstance(run("len(x)"), Error)
    assert isinstance(run("[1, y, 3]"), Error)
    assert isinstance(run("{a: z}"), Error)

  def test_error_stops_argument_evaluation(self):
    source = """
    log = [];
    note = f(x) { log.push(x); x };
    g = f(a, b, c) { a };
    g(note(1), boom, note(3));
    log
    """
    program = parse_program(source)
    env = Environment()
    result = Evaluator().eval(program, env)
    assert error_message(result) == "Unknown identifier: boom"
    assert env.lookup("log").stringify() == "[1]"

  def test_unknown_identifier(self):
    assert error_message(run("foobar")) == "Unknown identifier: foobar"

  def test_calling_a_non_function(self):
    assert error_message(run("x = 5; x(1)")) == "not a function: integer"

  def test_error_in_while_condition(self):
    assert error_message(run("while (nope) { 1 }")) == "Unknown identifier: nope"

  def test_error_in_while_body(self):
    assert isinstance(run("i = 0; while (i < 3) { i = i + true }"), Error)

  def test_error_stringify(self):
    assert run("5 + true").stringify() == "RuntimeError: Type mismatch: integer + boolean"


class TestConditionalsAndReturn:

  @pytest.mark.parametrize("source, expected", [
      ("if (true) { 10 }", Integer(10)),
      ("if (false) { 10 }", NULL),
      ("if (1) { 10 }", Integer(10)),
      ("if (null) { 10 } else { 20 }", Integer(20)),
      ("if (1 > 2) { 10 } else { 20 }", Integer(20)),
      ("if (1 < 2) 10 else 20", Integer(10)),
  ])
  def test_if_expressions(self, source, expected):
    assert run(source) == expected

  @pytest.mark.parametrize("source", [
      "return 10;",
      "return 10; 9;",
      "return 2 * 5; 9;",
      "9; return 2 * 5; 9;",
      "if (10 > 1) { if (10 > 1) { return 10; } return 1; }",
  ])
  def test_return_halts_program(self, source):
    assert run(source) == Integer(10)

  def test_program_unwraps_return(self):
    assert not isinstance(run("return 1"), Return)


class TestFunctions:

  def test_function_value(self):
    fn = run("f(x) { x + 2; }")
    assert isinstance(fn, Function)
    assert fn.parameters == ("x",)
    assert fn.stringify() == "f(x) { (x + 2) }"

  @pytest.mark.parametrize("source, expected", [
      ("identity = f(x) { x; }; identity(5);", 5),
      ("identity = f(x) { return x; }; identity(5);", 5),
      ("double = f(x) { x * 2; }; double(5);", 10),
      ("add = f(x, y) { x + y; }; add(5, 5);", 10),
      ("add = f(x, y) { x + y; }; add(5 + 5, add(5, 5));", 20),
      ("f(x) { x; }(5)", 5),
      ("square = f(x) => x * x; square(7)", 49),
  ])
  def test_application(self, source, expected):
    assert run(source) == Integer(expected)

  def test_closures(self):
    source = """
    newAdder = f(x) { f(y) { x + y }; };
    addTwo = newAdder(2);
    addTwo(2);
    """
    assert run(source) == Integer(4)

  def test_recursion(self):
    source = """
    fib = f(n) { if (n < 2) { return n } fib(n - 1) + fib(n - 2) };
    fib(15)
    """
    assert run(source) == Integer(610)

  def test_deep_recursion(self):
    source = """
    count = f(n) { if (n == 0) { 0 } else { 1 + count(n - 1) } };
    count(500)
    """
    assert run(source) == Integer(500)

  def test_unbounded_recursion_is_an_error_value(self):
    result = eval_source("loop = f(n) { loop(n + 1) }; loop(0)")
    assert error_message(result) == "Maximum recursion depth exceeded"

  def test_missing_arguments_are_null(self):
    assert run("g = f(a, b) { b }; g(1)") is NULL

  def test_extra_arguments_are_ignored(self):
    assert run("g = f(a) { a }; g(1, 2, 3)") == Integer(1)

  def test_return_only_unwinds_one_call(self):
    source = """
    inner = f() { return 1; 99 };
    outer = f() { inner(); 2 };
    outer()
    """
    assert run(source) == Integer(2)

  def test_return_inside_while_leaves_function(self):
    source = """
    find = f(xs, target) {
      i = 0;
      while (i < len(xs)) {
        if (xs[i] == target) { return i }
        i = i + 1
      }
      -1
    };
    find([4, 5, 6], 6)
    """
    assert run(source) == Integer(2)

  def test_counter_closure_mutates_captured_frame(self):
    source = """
    makeCounter = f() { n = 0; f() { n = n + 1 } };
    c = makeCounter();
    c(); c();
    c()
    """
    assert run(source) == Integer(3)


class TestAssignment:

  def test_first_write_declares(self, env):
    assert run("x = 5; x", env=env) == Integer(5)
    assert env.bindings["x"] == Integer(5)

  def test_assignment_evaluates_to_value(self):
    assert run("a = b = 3; a + b") == Integer(6)

  def test_assignment_inside_function_updates_outer_binding(self, env):
    run("x = 1; bump = f() { x = x + 1 }; bump(); bump()", env=env)
    assert env.lookup("x") == Integer(3)

  def test_parameters_shadow_outer_names(self, env):
    run("x = 1; set = f(x) { x = 10 }; set(5)", env=env)
    assert env.lookup("x") == Integer(1)

  def test_array_slot_assignment(self):
    assert run("a = [1, 2, 3]; a[1] = 20; a").stringify() == "[1, 20, 3]"

  def test_array_slot_out_of_range(self):
    assert error_message(run("a = [1]; a[1] = 2")) == "index out of range: 1"

  def test_record_field_assignment(self):
    assert run('r = {a: 1}; r.b = 2; r["c"] = 3; r').stringify() == "{a: 1, b: 2, c: 3}"

  def test_illegal_assignment_target(self):
    assert error_message(run("1 = 2")) == "illegal assignment to type: 1"
    assert error_message(run("a + b = 2")) == "illegal assignment to type: (a + b)"

  def test_property_assignment_on_non_record(self):
    assert error_message(run("a = [1]; a.x = 2")) == "cannot assign property on type: array"

  def test_value_error_skips_assignment(self, env):
    result = run("x = 1; x = nope; x", env=env)
    assert isinstance(result, Error)
    assert env.lookup("x") == Integer(1)


class TestWhile:

  def test_while_loop(self):
    assert run("i = 0; while (i < 5) { i = i + 1 }; i") == Integer(5)

  def test_while_evaluates_to_null(self):
    assert run("i = 0; while (i < 2) { i = i + 1 }") is NULL

  def test_while_with_false_condition_never_runs(self):
    assert run("x = 1; while (false) { x = 2 }; x") == Integer(1)


class TestCollections:

  def test_array_literal(self):
    result = run("[1, 2 * 2, 3 + 3]")
    assert isinstance(result, Array)
    assert result.elements == [Integer(1), Integer(4), Integer(6)]

  @pytest.mark.parametrize("source, expected", [
      ("[1, 2, 3][0]", Integer(1)),
      ("[1, 2, 3][2]", Integer(3)),
      ("i = 0; [1][i]", Integer(1)),
      ("[1, 2, 3][1 + 1]", Integer(3)),
      ("a = [1, 2, 3]; a[0] + a[1] + a[2]", Integer(6)),
  ])
  def test_array_indexing(self, source, expected):
    assert run(source) == expected

  @pytest.mark.parametrize("source, index", [("[1, 2, 3][3]", 3), ("[1, 2, 3][-1]", -1)])
  def test_array_index_out_of_range(self, source, index):
    assert error_message(run(source)) == f"index out of range: {index}"

  def test_unsupported_index(self):
    assert error_message(run("5[0]")) == "index operator not supported: integer[integer]"

  def test_aliasing_push(self):
    assert run("a = [1, 2, 3]; b = a; b.push(4); a").stringify() == "[1, 2, 3, 4]"

  def test_record_literal(self):
    result = run('name = "pj"; {name, size: 2, "to" + "tal": 3}')
    assert isinstance(result, Record)
    assert result.stringify() == '{name: "pj", size: 2, total: 3}'

  def test_record_member_and_index_reads(self):
    assert run('r = {a: 1}; r.a + r["a"]') == Integer(2)

  def test_missing_record_field(self):
    assert error_message(run("r = {a: 1}; r.b")) == "Property does not exist: b on record"

  def test_record_key_must_be_string(self):
    assert error_message(run("{1: 2}")) == "Record key must be a string, got: integer"

  def test_record_function_field_call_does_not_pass_receiver(self):
    source = "r = {add: f(a, b) { a + b }}; r.add(1, 2)"
    assert run(source) == Integer(3)

  def test_record_builtin_field_call(self):
    assert run("r = {size: len}; r.size([1, 2])") == Integer(2)

  def test_record_non_function_field_call(self):
    assert error_message(run("r = {a: 1}; r.a()")) == "Property is not a function: a is integer"

  def test_nested_records(self):
    assert run("r = {inner: {v: 7}}; r.inner.v") == Integer(7)


class TestEvaluatorState:

  def test_frames_start_with_root(self, evaluator, env):
    run("x = 1", evaluator=evaluator, env=env)
    assert evaluator.frames == [env]

  def test_each_call_creates_a_frame(self, evaluator, env):
    run("id = f(x) { x }; id(1); id(2)", evaluator=evaluator, env=env)
    assert len(evaluator.frames) == 3
    assert all(frame.parent is env for frame in evaluator.frames[1:])
    assert [frame.bindings["x"] for frame in evaluator.frames[1:]] == [Integer(1), Integer(2)]

  def test_debug_prints_node_classes(self, capsys):
    evaluator = create_debug_interpreter()
    run("1 + 2", evaluator=evaluator)
    out = capsys.readouterr().out
    assert "Evaluating: Program" in out
    assert "Evaluating: InfixExpression" in out
    assert "Evaluating: IntegerLiteral" in out

  def test_create_interpreter(self):
    assert create_interpreter().debug is False
    assert create_debug_interpreter().debug is True

  def test_apply_function_directly(self, evaluator):
    fn = run("f(a, b) { a * b }", evaluator=evaluator)
    assert evaluator.apply_function(fn, [Integer(6), Integer(7)]) == Integer(42)

  def test_apply_builtin_directly(self, evaluator):
    assert evaluator.apply_function(evaluator.builtins["len"], [String("abc")]) == Integer(3)

  def test_null_is_a_builtin_name(self):
    assert run("null") is NULL

  def test_builtin_value(self):
    value = run("len")
    assert isinstance(value, Builtin)
    assert value.stringify() == "<builtin function len>"

  def test_storing_a_control_value_raises(self, env):
    with pytest.raises(PJInvariantError):
      env.define("x", Return(Integer(1)))
    with pytest.raises(PJInvariantError):
      env.assign("x", Error("boom"))


class TestEvalSource:

  def test_eval_source(self):
    assert eval_source("1 + 1") == Integer(2)

  def test_eval_source_keeps_env(self, env):
    eval_source("x = 2", env=env)
    assert eval_source("x * 3", env=env) == Integer(6)

  def test_eval_source_raises_on_parse_errors(self):
    with pytest.raises(PJParseError) as excinfo:
      eval_source("x = ;")
    assert excinfo.value.errors == ["no prefix parse function for semicolon found"]
    assert "line 1, column 5" in excinfo.value.report
