"""
PJScript Runtime Values
Tagged value variants produced by the evaluator. Return and Error are
control wrappers: they travel up through eval but are never stored.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from nodes import BlockStatement, Node, quote_string


class PJObject:
  """Base class for every runtime value"""
  type_name = "object"
  is_control = False

  def stringify(self) -> str:
    raise NotImplementedError(type(self).__name__)

  def __str__(self) -> str:
    return self.stringify()


# ============================================================================
# SCALARS
# ============================================================================

@dataclass(frozen=True)
class Integer(PJObject):
  value: int
  type_name = "integer"

  def stringify(self) -> str:
    return str(self.value)


@dataclass(frozen=True)
class String(PJObject):
  value: str
  type_name = "string"

  def stringify(self) -> str:
    return quote_string(self.value)


@dataclass(frozen=True)
class Boolean(PJObject):
  value: bool
  type_name = "boolean"

  def stringify(self) -> str:
    return "true" if self.value else "false"


class Null(PJObject):
  type_name = "null"

  def stringify(self) -> str:
    return "null"

  def __repr__(self) -> str:
    return "NULL"


TRUE = Boolean(True)
FALSE = Boolean(False)
NULL = Null()


# ============================================================================
# CONTAINERS (mutable, compared by identity)
# ============================================================================

@dataclass(eq=False)
class Array(PJObject):
  elements: List[PJObject] = field(default_factory=list)
  type_name = "array"

  def stringify(self) -> str:
    return "[" + ", ".join(elem.stringify() for elem in self.elements) + "]"


@dataclass(eq=False)
class Record(PJObject):
  """String-keyed fields in insertion order"""
  fields: Dict[str, PJObject] = field(default_factory=dict)
  type_name = "record"

  def stringify(self) -> str:
    parts = [f"{key}: {value.stringify()}" for key, value in self.fields.items()]
    return "{" + ", ".join(parts) + "}"


# ============================================================================
# CALLABLES
# ============================================================================

@dataclass(eq=False)
class Function(PJObject):
  """User function: parameter names, body and the frame it was defined in"""
  parameters: Tuple[str, ...]
  body: Node
  env: Any
  type_name = "function"

  def stringify(self) -> str:
    params = ", ".join(self.parameters)
    if isinstance(self.body, BlockStatement):
      return f"f({params}) {self.body.stringify()}"
    return f"(f({params}) => {self.body.stringify()})"


@dataclass(eq=False)
class Builtin(PJObject):
  """Host function; a native method carries the receiver it was read from"""
  name: str
  fn: Callable[..., PJObject]
  receiver: Optional[PJObject] = None
  type_name = "builtin"

  def call(self, args: List[PJObject]) -> PJObject:
    if self.receiver is not None:
      return self.fn(self.receiver, *args)
    return self.fn(*args)

  def stringify(self) -> str:
    return f"<builtin function {self.name}>"


# ============================================================================
# CONTROL WRAPPERS
# ============================================================================

@dataclass(frozen=True)
class Return(PJObject):
  value: PJObject
  type_name = "return"
  is_control = True

  def stringify(self) -> str:
    return self.value.stringify()


@dataclass(frozen=True)
class Error(PJObject):
  message: str
  type_name = "error"
  is_control = True

  def stringify(self) -> str:
    return f"RuntimeError: {self.message}"


# ============================================================================
# HELPERS
# ============================================================================

def to_boolean(value: bool) -> Boolean:
  """Map a host bool onto the shared TRUE/FALSE values"""
  return TRUE if value else FALSE


def is_truthy(obj: PJObject) -> bool:
  """null is false, a boolean is itself, everything else is true"""
  if isinstance(obj, Null):
    return False
  if isinstance(obj, Boolean):
    return obj.value
  return True


def is_error(obj: Any) -> bool:
  return isinstance(obj, Error)


def is_callable(obj: Any) -> bool:
  return isinstance(obj, (Function, Builtin))


def type_name(obj: Any) -> str:
  return getattr(obj, 'type_name', type(obj).__name__)
