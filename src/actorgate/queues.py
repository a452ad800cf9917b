"""

# The Deferral Queues

Two ordered queues of Deferred Tasks:

- `responses`: outcomes (a value or an exception) computed while something was blocking & not yet delivered to their caller.
- `invocations`: calls to Blockable Operations captured while something was blocking & not yet started.

Both are strict FIFO. Across queues, responses always drain before invocations so already completed work reaches its callers before new work is admitted.

Neither queue is bounded; sustained contention grows them without limit.

"""
from __future__ import annotations
import asyncio, enum
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field, KW_ONLY
from loguru import logger

__all__ = [
  'TaskKind',
  'DeferredTask',
  'DeferralQueues',
]

class TaskKind(enum.Enum):
  """What a Deferred Task resumes"""
  RESPONSE = "response"
  """Delivers a previously computed outcome to its caller"""
  INVOCATION = "invocation"
  """Starts a previously captured call"""

@dataclass(frozen=True)
class DeferredTask:
  """A zero argument unit of deferred work"""

  kind: TaskKind
  """What the Task resumes"""
  run: Callable[[], None]
  """The Thunk; must not raise"""
  _: KW_ONLY
  label: str = "anonymous"
  """A human readable name for the Operation; only used for logging"""
  placeholder: asyncio.Future | None = None
  """The Future the original caller is awaiting"""

  @property
  def abandoned(self) -> bool:
    """Has the caller stopped waiting on the outcome"""
    return self.placeholder is not None and self.placeholder.cancelled()

  def discard(self) -> None:
    """Release the caller without ever running the Task"""
    if self.placeholder is not None and not self.placeholder.done(): self.placeholder.cancel()

  def __str__(self) -> str: return f"{self.kind.value}:{self.label}"

@dataclass
class DeferralQueues:
  """The pair of Deferral Queues & the priority rule between them"""

  responses: deque[DeferredTask] = field(default_factory=deque)
  """Deferred Responses, oldest first"""
  invocations: deque[DeferredTask] = field(default_factory=deque)
  """Deferred Invocations, oldest first"""

  def __len__(self) -> int: return len(self.responses) + len(self.invocations)

  @property
  def empty(self) -> bool: return len(self) <= 0

  @property
  def pending(self) -> dict[TaskKind, int]:
    return { TaskKind.RESPONSE: len(self.responses), TaskKind.INVOCATION: len(self.invocations) }

  def enqueue_response(self, task: DeferredTask) -> None:
    if task.kind is not TaskKind.RESPONSE: raise ValueError(f"Expected a {TaskKind.RESPONSE.value} task; got {task.kind.value}")
    self.responses.append(task)
    logger.trace(f"Deferred {task}; {len(self.responses)} responses pending")

  def enqueue_invocation(self, task: DeferredTask) -> None:
    if task.kind is not TaskKind.INVOCATION: raise ValueError(f"Expected a {TaskKind.INVOCATION.value} task; got {task.kind.value}")
    self.invocations.append(task)
    logger.trace(f"Deferred {task}; {len(self.invocations)} invocations pending")

  def dequeue_response(self) -> DeferredTask | None:
    return self.responses.popleft() if self.responses else None

  def dequeue_invocation(self) -> DeferredTask | None:
    return self.invocations.popleft() if self.invocations else None

  def dequeue(self) -> DeferredTask | None:
    """Pop the oldest Response, else the oldest Invocation, else None"""
    task = self.dequeue_response()
    return task if task is not None else self.dequeue_invocation()

  def clear(self) -> int:
    """Discard every queued Task, cancelling their placeholders; returns how many were discarded"""
    discarded = 0
    for queue in (self.responses, self.invocations):
      while queue:
        queue.popleft().discard()
        discarded += 1
    return discarded
