"""

# The Gate Coordinator

Serializes access to an Actor's state w/o explicit locks by sorting its asynchronous operations into three kinds:

- **Blocking** (ex. storage reads & writes): while any are outstanding, everything else coordinated by the same instance waits.
- **Blockable** (ex. request handlers): never start while something is blocking; they're captured & started later, in order.
- **Blockable Response** (ex. outbound network calls): start immediately but their outcome isn't delivered while something is blocking.

A Blockable Operation's own outcome also passes through the output gate, so one that reads then writes state doesn't resolve for its caller until those writes settle. To outside callers the read-modify-write appears atomic.

```python
coordinator = GateCoordinator()

class Counter:
  def __init__(self, storage: Storage): self.storage = storage

  @coordinator.blockable
  async def increment(self) -> int:
    value = await self.storage.get('counter') # Blocking
    self.storage.put('counter', value + 1) # Blocking; not awaited
    return value + 1 # Withheld until the put settles
```

Once the Active Set empties, the Drain Engine waits out a Settlement Barrier & then delivers deferred responses before starting deferred invocations, re-checking quiescence after every step.

"""
from __future__ import annotations
import asyncio, functools
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, KW_ONLY
from typing import Any, TypeVar
from loguru import logger

from .active import ActiveOperations, handle_t
from .barrier import settle
from .config import GateConfig
from .gates import BlockingGate
from .metrics import GateStats, atimeit, render_duration
from .queues import DeferralQueues, DeferredTask, TaskKind
from .wrappers import decoratable, invoke, log_trapper, op_t, start_eager

__all__ = [
  'GateCoordinator',
]

T = TypeVar("T")

def _label(op: Any) -> str:
  return getattr(op, '__qualname__', None) or type(op).__name__

def _resolve(placeholder: asyncio.Future, value: Any) -> None:
  if not placeholder.done(): placeholder.set_result(value)

def _reject(placeholder: asyncio.Future, error: BaseException) -> None:
  if not placeholder.done(): placeholder.set_exception(error)

def _forward(placeholder: asyncio.Future, task: asyncio.Future) -> None:
  """Copy the outcome of a Task onto the placeholder its caller holds"""
  if placeholder.done(): return
  if task.cancelled(): placeholder.cancel()
  elif task.exception() is not None: placeholder.set_exception(task.exception())
  else: placeholder.set_result(task.result())

@dataclass
class _CoordinatorCtx:
  drainer: asyncio.Task | None = None
  """The running Drain Engine (if any); there is never more than one"""
  inflight: set[asyncio.Task] = field(default_factory=set)
  """Strong references to the Gated Tasks we started; released on completion"""

@dataclass
class GateCoordinator:
  """Coordinates the input & output gates of a single Actor"""

  config: GateConfig | None = None
  """The Coordinator Configuration; defaults are sourced from the environment"""
  _: KW_ONLY
  active: ActiveOperations = field(default_factory=ActiveOperations)
  """The in-flight Blocking Operations"""
  queues: DeferralQueues = field(default_factory=DeferralQueues)
  """Deferred Responses & Invocations"""
  stats: GateStats = field(default_factory=GateStats)
  """Running Counters"""
  _ctx: _CoordinatorCtx = field(default_factory=_CoordinatorCtx)

  def __post_init__(self):
    self.config = GateConfig.from_env() if self.config is None else GateConfig.merge(self.config)
    self.active.on_idle = self._on_idle

  @property
  def name(self) -> str: return self.config['name']

  @property
  def draining(self) -> bool:
    """Is the Drain Engine currently running"""
    return self._ctx.drainer is not None and not self._ctx.drainer.done()

  ### Wrapping Operations ###

  def blocking(self, op: op_t) -> op_t:
    """Wrap (or decorate) an Operation which blocks; ex. a storage read or write.

    Each call starts the Operation immediately & holds the gates closed until it settles. The caller gets back the Operation's result (or exception) unchanged.
    """
    return decoratable(op, self._call_blocking)

  def blockable(self, op: op_t) -> op_t:
    """Wrap (or decorate) an Operation which is blockable; ex. a request handler.

    Calls made while nothing is blocking start immediately, otherwise they are queued & started, in order, once everything blocking has settled. Either way the outcome is withheld from the caller while anything is blocking.
    """
    return decoratable(op, self._call_blockable)

  def blockable_response(self, op: op_t) -> op_t:
    """Wrap (or decorate) an Operation whose response is blockable; ex. an outbound HTTP request.

    Calls always start immediately; only delivery of the outcome is withheld while anything is blocking.
    """
    return decoratable(op, self._call_blockable_response)

  def block_while(self, callback: Callable[[], Awaitable[T]]) -> asyncio.Task[T]:
    """Block while waiting on the (zero argument) callback's outcome"""
    return self._call_blocking(callback, (), {})

  def defer_response(self, aw: Awaitable[T]) -> asyncio.Task[T]:
    """Withhold an already running awaitable's outcome while anything is blocking"""
    return self._track(start_eager(self._output_gate(aw, _label(aw)), name=f"{self.name}:response"))

  def gate(self) -> BlockingGate:
    """A Gate holding everything closed for the body of an `async with` block"""
    return BlockingGate(self.active, stats=self.stats)

  def reset(self) -> None:
    """Clear the Active Set & both Queues; intended to isolate tests from one another"""
    if self._ctx.drainer is not None and not self._ctx.drainer.done(): self._ctx.drainer.cancel()
    self._ctx.drainer = None
    dropped = self.active.clear()
    discarded = self.queues.clear()
    if dropped or discarded: logger.warning(f"[{self.name}] Reset dropped {dropped} blocking operations & discarded {discarded} deferred tasks")
    self._ctx.inflight.clear()
    self.stats.clear()

  ### Call Handling ###

  def _track(self, task: asyncio.Task[T]) -> asyncio.Task[T]:
    if not task.done():
      self._ctx.inflight.add(task)
      task.add_done_callback(self._ctx.inflight.discard)
    return task

  def _call_blocking(self, op: op_t, args: tuple, kwargs: dict) -> asyncio.Task:
    handle = self.active.begin()
    self.stats.blocking_started += 1
    try:
      task = start_eager(invoke(op, args, kwargs), name=f"{self.name}:blocking:{_label(op)}")
    except BaseException:
      self._settle_blocking(handle)
      raise
    self.active.attach(handle, task)
    # Must run ahead of the caller's own wakeup
    task.add_done_callback(functools.partial(self._settle_blocking, handle))
    return task

  def _settle_blocking(self, handle: handle_t, task: asyncio.Future | None = None) -> None:
    if task is not None and not task.cancelled() and task.exception() is not None:
      logger.warning(f"[{self.name}] Blocking Operation {task.get_name()} failed: {task.exception()!r}")
    if handle not in self.active: return
    self.stats.blocking_settled += 1
    self.active.end(handle)

  def _call_blockable(self, op: op_t, args: tuple, kwargs: dict) -> asyncio.Future:
    if self.active.empty: return self._call_blockable_response(op, args, kwargs)

    placeholder = asyncio.get_running_loop().create_future()
    def _resume() -> None:
      task = self._call_blockable_response(op, args, kwargs)
      task.add_done_callback(functools.partial(_forward, placeholder))
    self.stats.invocations_deferred += 1
    self.queues.enqueue_invocation(DeferredTask(TaskKind.INVOCATION, _resume, label=_label(op), placeholder=placeholder))
    return placeholder

  def _call_blockable_response(self, op: op_t, args: tuple, kwargs: dict) -> asyncio.Task:
    label = _label(op)
    return self._track(start_eager(self._output_gate(invoke(op, args, kwargs), label), name=f"{self.name}:blockable:{label}"))

  async def _output_gate(self, aw: Awaitable[T], label: str) -> T:
    """Await the outcome, then withhold it if anything is blocking"""
    try:
      result = await aw
    except Exception as err:
      if self.active.empty: raise
      deliver = functools.partial(_reject, error=err)
    else:
      if self.active.empty: return result
      deliver = functools.partial(_resolve, value=result)
    return await self._withhold(deliver, label)

  def _withhold(self, deliver: Callable[[asyncio.Future], None], label: str) -> asyncio.Future:
    placeholder = asyncio.get_running_loop().create_future()
    self.stats.responses_deferred += 1
    self.queues.enqueue_response(DeferredTask(TaskKind.RESPONSE, functools.partial(deliver, placeholder), label=label, placeholder=placeholder))
    return placeholder

  ### The Drain Engine ###

  def _on_idle(self) -> None:
    """The Active Set just emptied"""
    if self.queues.empty or self.draining: return
    logger.trace(f"[{self.name}] Active Set emptied w/ {len(self.queues)} deferred tasks; scheduling a drain")
    self._ctx.drainer = asyncio.get_running_loop().create_task(self._drain(), name=f"{self.name}:drain")

  @log_trapper
  async def _drain(self) -> None:
    self.stats.drain_passes += 1
    self.stats.last_drain_ns, drained = await atimeit(self._drain_pass())
    logger.trace(f"[{self.name}] Drain pass ran {drained} tasks in {render_duration(self.stats.last_drain_ns)}")

  async def _drain_pass(self) -> int:
    """Run deferred Tasks until blocked again or both Queues are empty; returns how many ran"""
    drained = 0
    while True:
      await settle(self.config['settle_ticks'])
      if not self.active.empty:
        logger.debug(f"[{self.name}] Blocked again after draining {drained} tasks; {len(self.queues)} remain deferred")
        return drained
      task = self.queues.dequeue()
      if task is None:
        logger.debug(f"[{self.name}] Drained {drained} tasks")
        return drained
      if task.abandoned:
        logger.trace(f"[{self.name}] Skipping abandoned {task}")
        continue
      logger.trace(f"[{self.name}] Draining {task}")
      task.run()
      drained += 1
      self.stats.drained += 1
