"""
PJScript Standard Library
Builtin functions and the first-order native methods of strings and arrays.
Higher-order methods (filter, map, reduce) need the evaluator and live in
interpreter.py.
"""

import re
from typing import Callable, Dict

from objects import (
  PJObject, Integer, String, Array, Builtin, NULL, to_boolean, type_name
)
from utilities import ANY, make_error, validate_function_args


INTEGER_PATTERN = re.compile(r"-?[0-9]+")


# ============================================================================
# BUILTIN FUNCTIONS
# ============================================================================

def pj_len(*args: PJObject) -> PJObject:
  """Length of a string or array"""
  error = validate_function_args("len", args, [ANY])
  if error is not None:
    return error
  value = args[0]
  if isinstance(value, String):
    return Integer(len(value.value))
  if isinstance(value, Array):
    return Integer(len(value.elements))
  return make_error("Unsupported argument to `len`, got", type_name(value))


def pj_first(*args: PJObject) -> PJObject:
  """First element of an array, null when empty"""
  error = validate_function_args("first", args, ["array"])
  if error is not None:
    return error
  elements = args[0].elements
  return elements[0] if elements else NULL


def pj_last(*args: PJObject) -> PJObject:
  """Last element of an array, null when empty"""
  error = validate_function_args("last", args, ["array"])
  if error is not None:
    return error
  elements = args[0].elements
  return elements[-1] if elements else NULL


def pj_rest(*args: PJObject) -> PJObject:
  """New array of everything but the first element, null when empty"""
  error = validate_function_args("rest", args, ["array"])
  if error is not None:
    return error
  elements = args[0].elements
  if not elements:
    return NULL
  return Array(list(elements[1:]))


def display_text(value: PJObject) -> str:
  """Text print writes for a value: strings unquoted, everything else stringified"""
  if isinstance(value, String):
    return value.value
  return value.stringify()


def pj_print(*args: PJObject) -> PJObject:
  """Print the arguments separated by spaces"""
  print(" ".join(display_text(arg) for arg in args))
  return NULL


def create_builtins() -> Dict[str, PJObject]:
  """Fresh builtin table consulted after the frame chain"""
  return {
      'len': Builtin("len", pj_len),
      'first': Builtin("first", pj_first),
      'last': Builtin("last", pj_last),
      'rest': Builtin("rest", pj_rest),
      'print': Builtin("print", pj_print),
      'null': NULL,
  }


# ============================================================================
# STRING METHODS (receiver first)
# ============================================================================

def string_length(receiver: String, *args: PJObject) -> PJObject:
  error = validate_function_args("length", args, [])
  if error is not None:
    return error
  return Integer(len(receiver.value))


def string_split(receiver: String, *args: PJObject) -> PJObject:
  """Split on a separator; on whitespace without one, into characters when it is empty"""
  error = validate_function_args("split", args, ["string"], optional=1)
  if error is not None:
    return error
  if not args:
    parts = receiver.value.split()
  elif args[0].value == "":
    parts = list(receiver.value)
  else:
    parts = receiver.value.split(args[0].value)
  return Array([String(part) for part in parts])


def string_strip(receiver: String, *args: PJObject) -> PJObject:
  error = validate_function_args("strip", args, [])
  if error is not None:
    return error
  return String(receiver.value.strip())


def string_into_int(receiver: String, *args: PJObject) -> PJObject:
  error = validate_function_args("into_int", args, [])
  if error is not None:
    return error
  if not INTEGER_PATTERN.fullmatch(receiver.value):
    return make_error("Cannot convert string to integer", receiver.stringify())
  return Integer(int(receiver.value))


def string_is_numeric(receiver: String, *args: PJObject) -> PJObject:
  error = validate_function_args("is_numeric", args, [])
  if error is not None:
    return error
  return to_boolean(INTEGER_PATTERN.fullmatch(receiver.value) is not None)


STRING_METHODS: Dict[str, Callable[..., PJObject]] = {
    'length': string_length,
    'split': string_split,
    'strip': string_strip,
    'into_int': string_into_int,
    'is_numeric': string_is_numeric,
}


# ============================================================================
# ARRAY METHODS (receiver first)
# ============================================================================

def array_length(receiver: Array, *args: PJObject) -> PJObject:
  error = validate_function_args("length", args, [])
  if error is not None:
    return error
  return Integer(len(receiver.elements))


def array_push(receiver: Array, *args: PJObject) -> PJObject:
  """Append in place; every alias of the array sees the new element"""
  error = validate_function_args("push", args, [ANY])
  if error is not None:
    return error
  receiver.elements.append(args[0])
  return NULL


def array_pop(receiver: Array, *args: PJObject) -> PJObject:
  error = validate_function_args("pop", args, [])
  if error is not None:
    return error
  if not receiver.elements:
    return NULL
  return receiver.elements.pop()


def array_dequeue(receiver: Array, *args: PJObject) -> PJObject:
  error = validate_function_args("dequeue", args, [])
  if error is not None:
    return error
  if not receiver.elements:
    return NULL
  return receiver.elements.pop(0)


def array_slice(receiver: Array, *args: PJObject) -> PJObject:
  """
  New array of elements [start, end)

  Negative indices count from the end; both bounds are clamped to the array.
  """
  error = validate_function_args("slice", args, ["integer", "integer"], optional=2)
  if error is not None:
    return error

  size = len(receiver.elements)
  start = args[0].value if len(args) > 0 else 0
  end = args[1].value if len(args) > 1 else size
  if start < 0:
    start = max(0, size + start)
  if end < 0:
    end = max(0, size + end)
  start = min(size, start)
  end = min(size, end)
  if start >= end:
    return Array([])
  return Array(receiver.elements[start:end])


ARRAY_METHODS: Dict[str, Callable[..., PJObject]] = {
    'length': array_length,
    'push': array_push,
    'pop': array_pop,
    'dequeue': array_dequeue,
    'slice': array_slice,
}


# Readable (non-call) properties
PROPERTIES: Dict[str, Dict[str, Callable[[PJObject], PJObject]]] = {
    'string': {'length': lambda receiver: Integer(len(receiver.value))},
    'array': {'length': lambda receiver: Integer(len(receiver.elements))},
}
