"""

# Wrapper Construction

The mechanical half of the Gates: turning "how a gated call is handled" into a wrapper that can be applied to a free function, a method, a `staticmethod` or a `classmethod`, either directly or as a decorator.

```python
class Storage:
  @coordinator.blocking
  async def get(self, key: str) -> int: ...

get_value = coordinator.blocking(storage_backend.get)
```

"""
from __future__ import annotations
import asyncio, functools, inspect
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any, TypeVar
from loguru import logger
from .errors import WrapError

__all__ = [
  'op_t', 'call_t',
  'decoratable',
  'invoke',
  'start_eager',
  'log_trapper',
]

T = TypeVar("T")
op_t = Callable[..., Awaitable[Any]]
"""TypeHint: An Asynchronous Operation; any callable returning an awaitable"""
call_t = Callable[[op_t, tuple, dict], Awaitable[Any]]
"""TypeHint: Handles one gated call given (operation, args, kwargs)"""

def decoratable(target: Any, call: call_t) -> Any:
  """Wrap `target` so every call is routed through `call`; raises a WrapError immediately if `target` can't be wrapped"""
  if isinstance(target, (staticmethod, classmethod)):
    return type(target)(decoratable(target.__func__, call))
  if not callable(target): raise WrapError(target, "Gates can only be applied to callables")

  @functools.wraps(target)
  def _gated(*args, **kwargs) -> Awaitable[Any]:
    return call(target, args, kwargs)

  # Always returns an awaitable
  return inspect.markcoroutinefunction(_gated)

async def invoke(op: op_t, args: tuple, kwargs: dict) -> Any:
  """Call the Operation & await its outcome"""
  aw = op(*args, **kwargs)
  if not inspect.isawaitable(aw): raise WrapError(op, f"'{getattr(op, '__qualname__', op)}' returned {type(aw).__name__}; expected an awaitable")
  return await aw

def start_eager(coro: Coroutine[Any, Any, T], *, name: str | None = None) -> asyncio.Task[T]:
  """Start a Task that runs synchronously up to its first suspension point"""
  try: loop = asyncio.get_running_loop()
  except RuntimeError:
    coro.close()
    raise
  return asyncio.Task(coro, loop=loop, name=name, eager_start=True)

def log_trapper(coro: Callable[..., Coroutine]) -> Callable[..., Coroutine]:
  """Log (then re-raise) any Exception escaping the Coroutine"""
  @functools.wraps(coro)
  async def _log_trap(*args, **kwargs) -> Any:
    try:
      return await coro(*args, **kwargs)
    except Exception:
      logger.opt(exception=True).debug(f"Trapped an Exception raised from {coro.__name__}")
      raise
  return _log_trap
