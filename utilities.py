"""
Utilities module for the PJScript interpreter
Builders for runtime Error values and argument validation shared by the
builtins, the native methods and the evaluator
"""

from typing import List, Optional, Sequence, Union

from objects import Error, PJObject, is_callable, type_name


# Pseudo type names accepted by validate_function_args
ANY = "any"
CALLABLE = "callable"


# ==================== ERROR BUILDERS ====================

def make_error(problem: str, *details: object) -> Error:
  """
  Build an Error value of the shape "<problem>: <details>"

  Args:
    problem: What went wrong
    details: Operand types, operators or counts, joined by spaces

  Returns:
    Error value

  Examples:
    make_error("Unknown identifier", "foo") -> Error("Unknown identifier: foo")
  """
  if not details:
    return Error(problem)
  return Error(f"{problem}: {' '.join(str(detail) for detail in details)}")


def arity_error(func_name: str, expected: Union[int, str], got: int) -> Error:
  """
  Generate arity mismatch error

  Args:
    func_name: Function or method name
    expected: Expected number of arguments (or a description such as "1 or 2")
    got: Actual number of arguments

  Returns:
    Error value with formatted message
  """
  return make_error(f"Invalid argument count `{func_name}` takes {expected}, got", got)


def argument_type_error(
  func_name: str,
  position: int,
  expected: str,
  actual: PJObject
) -> Error:
  """
  Generate argument type error

  Args:
    func_name: Function or method name
    position: 1-based argument position
    expected: Description of the expected type
    actual: The value that was passed

  Returns:
    Error value with formatted message
  """
  return make_error(
    f"Argument {position} to `{func_name}` must be {expected}, got",
    type_name(actual)
  )


def type_mismatch_error(left: PJObject, operator: str, right: PJObject) -> Error:
  """Binary operator applied to values of different types"""
  return make_error("Type mismatch", type_name(left), operator, type_name(right))


def unknown_operator_error(operator: str, left: PJObject, right: Optional[PJObject] = None) -> Error:
  """
  Operator not defined for its operand(s)

  Examples:
    unknown_operator_error("-", TRUE) -> "Unknown operator: -boolean"
    unknown_operator_error("+", TRUE, FALSE) -> "Unknown operator: boolean + boolean"
  """
  if right is None:
    return make_error("Unknown operator", f"{operator}{type_name(left)}")
  return make_error("Unknown operator", type_name(left), operator, type_name(right))


def operation_error(problem: str, left: PJObject, operator: str, right: PJObject) -> Error:
  """
  Operator defined for the types but not for these particular values

  Examples:
    operation_error("Division by zero", Integer(1), "/", Integer(0))
      -> "Division by zero: 1 / 0"
  """
  return make_error(problem, left.stringify(), operator, right.stringify())


# ==================== VALIDATION UTILITIES ====================

def matches_type(value: PJObject, expected: str) -> bool:
  if expected == ANY:
    return True
  if expected == CALLABLE:
    return is_callable(value)
  return type_name(value) == expected


def validate_arity(
  func_name: str,
  args: Sequence[PJObject],
  minimum: int,
  maximum: Optional[int] = None
) -> Optional[Error]:
  """
  Check the argument count lies in [minimum, maximum]

  Args:
    func_name: Function name for error messages
    args: Evaluated arguments
    minimum: Fewest arguments accepted
    maximum: Most arguments accepted, defaults to minimum

  Returns:
    Error value when the count is out of range, else None
  """
  if maximum is None:
    maximum = minimum
  if minimum <= len(args) <= maximum:
    return None
  if minimum == maximum:
    expected = str(minimum)
  elif maximum == minimum + 1:
    expected = f"{minimum} or {maximum}"
  else:
    expected = f"{minimum} to {maximum}"
  return arity_error(func_name, expected, len(args))


def validate_function_args(
  func_name: str,
  args: Sequence[PJObject],
  expected_types: List[str],
  optional: int = 0
) -> Optional[Error]:
  """
  Validate function arguments match expected types

  Args:
    func_name: Function name for error messages
    args: List of argument values
    expected_types: Expected type names, one per parameter
    optional: How many trailing parameters may be omitted

  Returns:
    Error value if validation fails, else None
  """
  error = validate_arity(func_name, args, len(expected_types) - optional, len(expected_types))
  if error is not None:
    return error

  for i, (arg, expected) in enumerate(zip(args, expected_types)):
    if not matches_type(arg, expected):
      description = "a function" if expected == CALLABLE else f"of type `{expected}`"
      return argument_type_error(func_name, i + 1, description, arg)
  return None
