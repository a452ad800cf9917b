"""

# The Active-Operations Set

Tracks every Blocking Operation currently outstanding for one Coordinator. Membership of this set is the only signal used to decide whether new work may run.

All operations are synchronous & never suspend so, under cooperative scheduling, each one is atomic w/ respect to every other Task on the Event Loop.

"""
from __future__ import annotations
import asyncio, itertools
from dataclasses import dataclass, field, KW_ONLY
from collections.abc import Callable, Iterator
from loguru import logger

__all__ = [
  'handle_t',
  'ActiveOperations',
]

handle_t = int
"""TypeHint: A Token representing one in-flight Blocking Operation"""

@dataclass
class _ActiveCtx:
  counter: Iterator[int] = field(default_factory=lambda: itertools.count(1))
  """Source of Handles; never rewound so a stale `end` can't hit a newer Handle"""

@dataclass
class ActiveOperations:
  """The Set of in-flight Blocking Operations"""

  handles: dict[handle_t, asyncio.Future | None] = field(default_factory=dict)
  """Outstanding Handles mapped to the Task executing them (if attached); holds a strong reference to the Task."""
  _: KW_ONLY
  on_idle: Callable[[], None] | None = None
  """Called whenever `end` transitions the set from non-empty to empty"""
  _ctx: _ActiveCtx = field(default_factory=_ActiveCtx)

  def __len__(self) -> int: return len(self.handles)
  def __contains__(self, handle: handle_t) -> bool: return handle in self.handles

  @property
  def empty(self) -> bool:
    """Is nothing currently blocking (ie. Quiescence)"""
    return len(self.handles) <= 0

  def begin(self, task: asyncio.Future | None = None) -> handle_t:
    """Register a new Blocking Operation returning its Handle"""
    handle = next(self._ctx.counter)
    self.handles[handle] = task
    logger.trace(f"Blocking Operation {handle} began; {len(self.handles)} outstanding")
    return handle

  def attach(self, handle: handle_t, task: asyncio.Future) -> None:
    """Attach the Task executing a Blocking Operation to its Handle"""
    if handle not in self.handles: raise KeyError(f"Handle {handle} is not outstanding")
    self.handles[handle] = task

  def end(self, handle: handle_t) -> bool:
    """Remove a Handle; idempotent. Returns True if this call emptied the set."""
    if handle not in self.handles: return False
    del self.handles[handle]
    logger.trace(f"Blocking Operation {handle} ended; {len(self.handles)} outstanding")
    if len(self.handles) > 0: return False
    if self.on_idle is not None: self.on_idle()
    return True

  def clear(self) -> int:
    """Drop every Handle without firing `on_idle`; returns how many were dropped"""
    dropped = len(self.handles)
    self.handles.clear()
    return dropped
