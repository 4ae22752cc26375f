"""
PJScript Interpreter
Tree-walking evaluator. Runtime failures are Error values, and every
composite evaluation checks its sub-results and returns Error and Return
wrappers upward before doing anything else.
"""

import sys
from typing import Callable, Dict, List, Optional, Sequence, Union

from environment import Environment, check_storable
from error_handling import PJParseError, format_diagnostics
from nodes import (
  Node, Program, BlockStatement, ExpressionStatement, ReturnStatement,
  WhileStatement, Identifier, IntegerLiteral, StringLiteral, BooleanLiteral,
  PrefixExpression, InfixExpression, IfExpression, FunctionLiteral,
  ArrowFunctionLiteral, CallExpression, ArrayLiteral, IndexExpression,
  MemberExpression, AssignExpression, RecordLiteral,
)
from objects import (
  PJObject, Integer, String, Boolean, Null, Array, Record, Function, Builtin,
  Return, Error, NULL, to_boolean, is_truthy, is_error, type_name,
)
from parsing import Parser
from stdlib import ARRAY_METHODS, PROPERTIES, STRING_METHODS, create_builtins
from utilities import (
  ANY, CALLABLE, make_error, operation_error, type_mismatch_error,
  unknown_operator_error, validate_function_args,
)


# ============================================================================
# OPERATORS
# ============================================================================

def values_equal(left: PJObject, right: PJObject) -> bool:
  """== for same-typed values other than integers and strings"""
  if type(left) is not type(right):
    return False
  if isinstance(left, Null):
    return True
  if isinstance(left, (Integer, String, Boolean)):
    return left.value == right.value
  return left is right


def truncating_divide(dividend: int, divisor: int) -> int:
  quotient = abs(dividend) // abs(divisor)
  return -quotient if (dividend < 0) != (divisor < 0) else quotient


def eval_prefix_expression(operator: str, right: PJObject) -> PJObject:
  if operator in ("!", "not"):
    return to_boolean(not is_truthy(right))
  if operator == "-" and isinstance(right, Integer):
    return Integer(-right.value)
  return unknown_operator_error(operator, right)


def eval_integer_infix_expression(operator: str, left: Integer, right: Integer) -> PJObject:
  a, b = left.value, right.value
  if operator == "+":
    return Integer(a + b)
  if operator == "-":
    return Integer(a - b)
  if operator == "*":
    return Integer(a * b)
  if operator == "/":
    if b == 0:
      return operation_error("Division by zero", left, operator, right)
    return Integer(truncating_divide(a, b))
  if operator == "%":
    if b == 0:
      return operation_error("Modulo by zero", left, operator, right)
    return Integer(a - b * truncating_divide(a, b))
  if operator == "**":
    if b < 0:
      return operation_error("Negative exponent", left, operator, right)
    return Integer(a ** b)
  if operator == "<":
    return to_boolean(a < b)
  if operator == ">":
    return to_boolean(a > b)
  if operator == "<=":
    return to_boolean(a <= b)
  if operator == ">=":
    return to_boolean(a >= b)
  if operator == "==":
    return to_boolean(a == b)
  if operator == "!=":
    return to_boolean(a != b)
  return unknown_operator_error(operator, left, right)


STRING_COMPARISONS: Dict[str, Callable[[str, str], bool]] = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a < b,
    ">": lambda a, b: a > b,
    "<=": lambda a, b: a <= b,
    ">=": lambda a, b: a >= b,
}


def eval_string_infix_expression(operator: str, left: String, right: String) -> PJObject:
  if operator == "+":
    return String(left.value + right.value)
  if operator in STRING_COMPARISONS:
    return to_boolean(STRING_COMPARISONS[operator](left.value, right.value))
  return unknown_operator_error(operator, left, right)


def eval_infix_expression(operator: str, left: PJObject, right: PJObject) -> PJObject:
  if operator == "and":
    return to_boolean(is_truthy(left) and is_truthy(right))
  if operator == "or":
    return to_boolean(is_truthy(left) or is_truthy(right))
  if type_name(left) != type_name(right):
    return type_mismatch_error(left, operator, right)
  if isinstance(left, Integer) and isinstance(right, Integer):
    return eval_integer_infix_expression(operator, left, right)
  if isinstance(left, String) and isinstance(right, String):
    return eval_string_infix_expression(operator, left, right)
  if operator == "==":
    return to_boolean(values_equal(left, right))
  if operator == "!=":
    return to_boolean(not values_equal(left, right))
  return unknown_operator_error(operator, left, right)


def property_missing(name: str, obj: PJObject) -> Error:
  return make_error("Property does not exist", name, "on", type_name(obj))


# Python frames per nested PJScript call is roughly 16
RECURSION_LIMIT = 20000


# ============================================================================
# EVALUATOR
# ============================================================================

class Evaluator:
  """
  Evaluates AST nodes against environment frames.

  `frames` lists every frame the evaluator has seen, in creation order:
  the first root frame passed to eval, then one frame per function call.
  """

  def __init__(self, debug: bool = False):
    self.debug = debug
    if sys.getrecursionlimit() < RECURSION_LIMIT:
      sys.setrecursionlimit(RECURSION_LIMIT)
    self.builtins = create_builtins()
    self.frames: List[Environment] = []
    self.methods: Dict[str, Dict[str, Callable[..., PJObject]]] = {
        'string': dict(STRING_METHODS),
        'array': {
            **ARRAY_METHODS,
            'filter': self.array_filter,
            'map': self.array_map,
            'reduce': self.array_reduce,
        },
    }
    self._dispatch: Dict[type, Callable[[Node, Environment], PJObject]] = {
        Program: self.eval_program,
        BlockStatement: self.eval_block_statement,
        ExpressionStatement: lambda node, env: self.eval(node.expression, env),
        ReturnStatement: self.eval_return_statement,
        WhileStatement: self.eval_while_statement,
        Identifier: self.eval_identifier,
        IntegerLiteral: lambda node, env: Integer(node.value),
        StringLiteral: lambda node, env: String(node.value),
        BooleanLiteral: lambda node, env: to_boolean(node.value),
        PrefixExpression: self.eval_prefix,
        InfixExpression: self.eval_infix,
        IfExpression: self.eval_if_expression,
        FunctionLiteral: self.eval_function_literal,
        ArrowFunctionLiteral: self.eval_function_literal,
        CallExpression: self.eval_call_expression,
        ArrayLiteral: self.eval_array_literal,
        IndexExpression: self.eval_index,
        MemberExpression: self.eval_member_expression,
        AssignExpression: self.eval_assign_expression,
        RecordLiteral: self.eval_record_literal,
    }

  def eval(self, node: Node, env: Environment) -> PJObject:
    """Evaluate node in env; the result may be an Error or Return wrapper"""
    if not self.frames:
      self.frames.append(env)
    if self.debug:
      print(f"Evaluating: {type(node).__name__}")

    handler = self._dispatch.get(type(node))
    if handler is None:
      return make_error("Unsupported node", type(node).__name__)
    return handler(node, env)

  # ==========================================================================
  # STATEMENTS
  # ==========================================================================

  def eval_program(self, node: Program, env: Environment) -> PJObject:
    result = NULL
    for statement in node.statements:
      result = self.eval(statement, env)
      if isinstance(result, Return):
        return result.value
      if is_error(result):
        return result
    return result

  def eval_block_statement(self, node: BlockStatement, env: Environment) -> PJObject:
    result = NULL
    for statement in node.statements:
      result = self.eval(statement, env)
      if result.is_control:
        return result
    return result

  def eval_return_statement(self, node: ReturnStatement, env: Environment) -> PJObject:
    value = self.eval(node.value, env)
    if value.is_control:
      return value
    return Return(value)

  def eval_while_statement(self, node: WhileStatement, env: Environment) -> PJObject:
    while True:
      condition = self.eval(node.condition, env)
      if condition.is_control:
        return condition
      if not is_truthy(condition):
        return NULL
      result = self.eval(node.body, env)
      if result.is_control:
        return result

  # ==========================================================================
  # EXPRESSIONS
  # ==========================================================================

  def eval_identifier(self, node: Identifier, env: Environment) -> PJObject:
    value = env.lookup(node.value)
    if value is not None:
      return value
    builtin = self.builtins.get(node.value)
    if builtin is not None:
      return builtin
    return make_error("Unknown identifier", node.value)

  def eval_prefix(self, node: PrefixExpression, env: Environment) -> PJObject:
    right = self.eval(node.right, env)
    if right.is_control:
      return right
    return eval_prefix_expression(node.operator, right)

  def eval_infix(self, node: InfixExpression, env: Environment) -> PJObject:
    left = self.eval(node.left, env)
    if left.is_control:
      return left
    right = self.eval(node.right, env)
    if right.is_control:
      return right
    return eval_infix_expression(node.operator, left, right)

  def eval_if_expression(self, node: IfExpression, env: Environment) -> PJObject:
    condition = self.eval(node.condition, env)
    if condition.is_control:
      return condition
    if is_truthy(condition):
      return self.eval(node.consequence, env)
    if node.alternative is not None:
      return self.eval(node.alternative, env)
    return NULL

  def eval_function_literal(self, node: Union[FunctionLiteral, ArrowFunctionLiteral],
                            env: Environment) -> PJObject:
    return Function(node.parameter_names(), node.body, env)

  def eval_expressions(self, expressions: Sequence[Node],
                       env: Environment) -> Union[List[PJObject], PJObject]:
    """Evaluate left to right; returns the first control value instead of a list"""
    result = []
    for expression in expressions:
      value = self.eval(expression, env)
      if value.is_control:
        return value
      result.append(value)
    return result

  def eval_call_expression(self, node: CallExpression, env: Environment) -> PJObject:
    function = self.eval(node.function, env)
    if function.is_control:
      return function
    args = self.eval_expressions(node.arguments, env)
    if not isinstance(args, list):
      return args
    return self.apply_function(function, args)

  def eval_array_literal(self, node: ArrayLiteral, env: Environment) -> PJObject:
    elements = self.eval_expressions(node.elements, env)
    if not isinstance(elements, list):
      return elements
    return Array(elements)

  def eval_record_literal(self, node: RecordLiteral, env: Environment) -> PJObject:
    record = Record()
    for key_node, value_node in node.pairs:
      if isinstance(key_node, Identifier):
        name = key_node.value
      else:
        key = self.eval(key_node, env)
        if key.is_control:
          return key
        if not isinstance(key, String):
          return make_error("Record key must be a string, got", type_name(key))
        name = key.value

      if value_node is None:
        if not isinstance(key_node, Identifier):
          return make_error("Illegal record shorthand", key_node.stringify())
        value_node = key_node
      value = self.eval(value_node, env)
      if value.is_control:
        return value

      check_storable(value, f"record field {name}")
      record.fields[name] = value
    return record

  def eval_index(self, node: IndexExpression, env: Environment) -> PJObject:
    left = self.eval(node.left, env)
    if left.is_control:
      return left
    index = self.eval(node.index, env)
    if index.is_control:
      return index
    return self.eval_index_expression(left, index)

  def eval_index_expression(self, left: PJObject, index: PJObject) -> PJObject:
    if isinstance(left, Array) and isinstance(index, Integer):
      if index.value < 0 or index.value > len(left.elements) - 1:
        return make_error("index out of range", index.value)
      return left.elements[index.value]
    if isinstance(left, String) and isinstance(index, Integer):
      if index.value < 0 or index.value > len(left.value) - 1:
        return make_error("index out of range", index.value)
      return String(left.value[index.value])
    if isinstance(left, (Record, Array, String)) and isinstance(index, String):
      return self.read_property(left, index.value)
    return make_error("index operator not supported",
                      f"{type_name(left)}[{type_name(index)}]")

  def read_property(self, obj: PJObject, name: str) -> PJObject:
    """Record field, readable property, or native method bound to obj"""
    if isinstance(obj, Record):
      value = obj.fields.get(name)
      return value if value is not None else property_missing(name, obj)

    reader = PROPERTIES.get(type_name(obj), {}).get(name)
    if reader is not None:
      return reader(obj)
    method = self.methods.get(type_name(obj), {}).get(name)
    if method is not None:
      return Builtin(name, method, receiver=obj)
    return property_missing(name, obj)

  def eval_member_expression(self, node: MemberExpression, env: Environment) -> PJObject:
    obj = self.eval(node.object, env)
    if obj.is_control:
      return obj

    prop = node.property
    if isinstance(prop, Identifier):
      return self.read_property(obj, prop.value)
    if not (isinstance(prop, CallExpression) and isinstance(prop.function, Identifier)):
      return make_error("Illegal member access", prop.stringify())

    name = prop.function.value
    args = self.eval_expressions(prop.arguments, env)
    if not isinstance(args, list):
      return args

    if isinstance(obj, Record):
      field = obj.fields.get(name)
      if field is None:
        return property_missing(name, obj)
      if not isinstance(field, (Function, Builtin)):
        return make_error("Property is not a function", name, "is", type_name(field))
      return self.apply_function(field, args)

    method = self.methods.get(type_name(obj), {}).get(name)
    if method is None:
      return property_missing(name, obj)
    return method(obj, *args)

  # ==========================================================================
  # ASSIGNMENT
  # ==========================================================================

  def eval_assign_expression(self, node: AssignExpression, env: Environment) -> PJObject:
    value = self.eval(node.value, env)
    if value.is_control:
      return value

    target = node.target
    if isinstance(target, Identifier):
      return env.assign(target.value, value)
    if isinstance(target, IndexExpression):
      return self.assign_index(target, value, env)
    if isinstance(target, MemberExpression) and isinstance(target.property, Identifier):
      return self.assign_member(target, value, env)
    return make_error("illegal assignment to type", target.stringify())

  def assign_index(self, target: IndexExpression, value: PJObject, env: Environment) -> PJObject:
    container = self.eval(target.left, env)
    if container.is_control:
      return container
    index = self.eval(target.index, env)
    if index.is_control:
      return index

    if isinstance(container, Array) and isinstance(index, Integer):
      if index.value < 0 or index.value > len(container.elements) - 1:
        return make_error("index out of range", index.value)
      check_storable(value, "array slot")
      container.elements[index.value] = value
      return value
    if isinstance(index, String):
      return self.set_field(container, index.value, value)
    return make_error("index operator not supported",
                      f"{type_name(container)}[{type_name(index)}]")

  def assign_member(self, target: MemberExpression, value: PJObject, env: Environment) -> PJObject:
    container = self.eval(target.object, env)
    if container.is_control:
      return container
    return self.set_field(container, target.property.value, value)

  def set_field(self, container: PJObject, name: str, value: PJObject) -> PJObject:
    if not isinstance(container, Record):
      return make_error("cannot assign property on type", type_name(container))
    check_storable(value, f"record field {name}")
    container.fields[name] = value
    return value

  # ==========================================================================
  # APPLICATION
  # ==========================================================================

  def apply_function(self, function: PJObject, args: List[PJObject]) -> PJObject:
    """Call a Function or Builtin; missing parameters are bound to null"""
    if isinstance(function, Function):
      frame = Environment(function.env)
      self.frames.append(frame)
      for i, name in enumerate(function.parameters):
        frame.define(name, args[i] if i < len(args) else NULL)
      try:
        result = self.eval(function.body, frame)
      except RecursionError:
        return make_error("Maximum recursion depth exceeded")
      if isinstance(result, Return):
        return result.value
      return result
    if isinstance(function, Builtin):
      return function.call(args)
    return make_error("not a function", type_name(function))

  # ==========================================================================
  # HIGHER-ORDER ARRAY METHODS
  # ==========================================================================

  def array_filter(self, receiver: Array, *args: PJObject) -> PJObject:
    error = validate_function_args("filter", args, [CALLABLE])
    if error is not None:
      return error
    predicate = args[0]
    kept = []
    for element in list(receiver.elements):
      answer = self.apply_function(predicate, [element])
      if is_error(answer):
        return answer
      if not isinstance(answer, Boolean):
        return make_error("Function passed to `filter` must return a boolean, got",
                          type_name(answer))
      if answer.value:
        kept.append(element)
    return Array(kept)

  def array_map(self, receiver: Array, *args: PJObject) -> PJObject:
    error = validate_function_args("map", args, [CALLABLE])
    if error is not None:
      return error
    mapped = []
    for element in list(receiver.elements):
      result = self.apply_function(args[0], [element])
      if is_error(result):
        return result
      mapped.append(result)
    return Array(mapped)

  def array_reduce(self, receiver: Array, *args: PJObject) -> PJObject:
    error = validate_function_args("reduce", args, [CALLABLE, ANY], optional=1)
    if error is not None:
      return error
    reducer = args[0]
    elements = list(receiver.elements)
    if len(args) == 2:
      accumulator = args[1]
    elif elements:
      accumulator = elements.pop(0)
    else:
      return make_error("Cannot reduce an empty array without an initial value")

    for element in elements:
      accumulator = self.apply_function(reducer, [accumulator, element])
      if is_error(accumulator):
        return accumulator
    return accumulator


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_interpreter(debug: bool = False) -> Evaluator:
  """Factory function returning an evaluator"""
  return Evaluator(debug=debug)


def create_debug_interpreter() -> Evaluator:
  """Factory function returning an evaluator that traces every node"""
  return create_interpreter(debug=True)


def eval_source(
  source: str,
  env: Optional[Environment] = None,
  evaluator: Optional[Evaluator] = None
) -> PJObject:
  """
  Parse and evaluate source text.

  Raises PJParseError when the parser reports errors; runtime failures come
  back as Error values.
  """
  parser = Parser(source)
  program = parser.parse_program()
  if parser.errors():
    raise PJParseError(parser.errors(), format_diagnostics(source, parser.diagnostics()))
  if evaluator is None:
    evaluator = create_interpreter()
  return evaluator.eval(program, env if env is not None else Environment())
