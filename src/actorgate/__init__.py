"""

# actorgate

Input & output gates for `asyncio` Actors: make an Actor's read-then-write state transitions appear atomic to its callers w/o explicit locks.

```python
from actorgate import simplified_concurrency

blockable, blockable_response, blocking, *_ = simplified_concurrency()
```

"""
from __future__ import annotations
from collections.abc import Awaitable, Callable
from typing import Any, NamedTuple

### Library Imports
from .errors import GateError, WrapError, ConfigError
from .config import GateConfig, SETTLE_TICKS
from .active import ActiveOperations, handle_t
from .barrier import settle
from .queues import TaskKind, DeferredTask, DeferralQueues
from .gates import Gate, BlockingGate
from .metrics import GateStats, render_duration, atimeit
from .coordinator import GateCoordinator
from .fetch import HttpMethod, FetchResponse, gated_fetch
from .wrappers import decoratable, op_t
###

class GateKit(NamedTuple):
  """The bound operations of a single Coordinator; unpack the ones you need"""
  blockable: Callable[[op_t], op_t]
  blockable_response: Callable[[op_t], op_t]
  blocking: Callable[[op_t], op_t]
  block_while: Callable[[Callable[[], Awaitable[Any]]], Awaitable[Any]]
  defer_response: Callable[[Awaitable[Any]], Awaitable[Any]]
  gate: Callable[[], BlockingGate]
  reset: Callable[[], None]
  coordinator: GateCoordinator

def simplified_concurrency(config: GateConfig | None = None) -> GateKit:
  """Construct an isolated Coordinator & return its operations"""
  coordinator = GateCoordinator(config)
  return GateKit(
    blockable=coordinator.blockable,
    blockable_response=coordinator.blockable_response,
    blocking=coordinator.blocking,
    block_while=coordinator.block_while,
    defer_response=coordinator.defer_response,
    gate=coordinator.gate,
    reset=coordinator.reset,
    coordinator=coordinator,
  )
