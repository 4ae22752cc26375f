"""
PJScript Environment
Lexically scoped frames: a mutable mapping of names to values plus an
optional parent frame
"""

from types import MappingProxyType
from typing import Any, Mapping, Optional

from error_handling import PJInvariantError


class Environment:
  """One frame of the scope chain; closures share frames by reference"""

  def __init__(self, parent: Optional['Environment'] = None):
    self._bindings = {}
    self._parent = parent

  @property
  def bindings(self) -> Mapping[str, Any]:
    """Read-only view of this frame's own bindings"""
    return MappingProxyType(self._bindings)

  @property
  def parent(self) -> Optional['Environment']:
    return self._parent

  def lookup(self, name: str) -> Optional[Any]:
    """Look up name in this frame, then outward through the parents"""
    frame = self
    while frame is not None:
      if name in frame._bindings:
        return frame._bindings[name]
      frame = frame._parent
    return None

  def define(self, name: str, value: Any) -> Any:
    """Bind name in this frame only"""
    check_storable(value, name)
    self._bindings[name] = value
    return value

  def assign(self, name: str, value: Any) -> Any:
    """Rebind name in the nearest frame that owns it, else define it here"""
    check_storable(value, name)
    self._owner(name)._bindings[name] = value
    return value

  def _owner(self, name: str) -> 'Environment':
    frame = self
    while frame is not None:
      if name in frame._bindings:
        return frame
      frame = frame._parent
    return self

  def depth(self) -> int:
    """Number of parents above this frame"""
    count = 0
    frame = self._parent
    while frame is not None:
      count += 1
      frame = frame._parent
    return count

  def __repr__(self) -> str:
    names = ", ".join(self._bindings)
    return f"<Environment depth={self.depth()} [{names}]>"


def check_storable(value: Any, where: str) -> None:
  """Raise if a Return or Error wrapper is about to be stored"""
  if getattr(value, 'is_control', False):
    raise PJInvariantError(
      f"control value {value.type_name} cannot be stored in {where}"
    )
