"""

# Gates

A Gate is a concurrency primitive used to manage access between a pool of resources and a pool of workers.

The `BlockingGate` holds a Coordinator's input gate closed for the body of an `async with` block: while the block runs, Blockable calls are deferred & Blockable Responses are withheld, exactly as if a Blocking Operation were outstanding.

```python
async with coordinator.gate():
  value = await read_config()
  await write_config(value | overrides)
```

"""
from __future__ import annotations
import asyncio
from typing import Protocol, Any, runtime_checkable
from abc import abstractmethod
from dataclasses import dataclass, field, KW_ONLY
from .active import ActiveOperations, handle_t
from .metrics import GateStats

@runtime_checkable
class Gate(Protocol):
  """A Gate to manage concurrent access to some singular or pool of resources"""

  async def __aenter__(self) -> Gate:
    """Acquire the Gate"""
    await self.acquire()
    return self

  async def __aexit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
    """Release the Gate"""
    await self.release()

  @abstractmethod
  async def acquire(self) -> None: ...

  @abstractmethod
  async def release(self) -> None: ...

@dataclass
class _BlockingGateCtx:
  handle: handle_t | None = None
  """The Handle held while the Gate is acquired"""

@dataclass
class BlockingGate(Gate):
  """Registers a Blocking Operation for as long as the Gate is held"""

  active: ActiveOperations
  """The Active Set of the Coordinator this Gate belongs to"""
  _: KW_ONLY
  stats: GateStats | None = None
  """The Coordinator's Counters, if they should account for this Gate"""
  _ctx: _BlockingGateCtx = field(default_factory=_BlockingGateCtx)

  @property
  def held(self) -> bool: return self._ctx.handle is not None

  async def acquire(self) -> None:
    if self._ctx.handle is not None: raise RuntimeError("BlockingGate is already held")
    self._ctx.handle = self.active.begin(asyncio.current_task())
    if self.stats is not None: self.stats.blocking_started += 1

  async def release(self) -> None:
    if self._ctx.handle is None: raise RuntimeError("BlockingGate is not held")
    handle, self._ctx.handle = self._ctx.handle, None
    if handle not in self.active: return # Dropped by a reset
    if self.stats is not None: self.stats.blocking_settled += 1
    self.active.end(handle)
