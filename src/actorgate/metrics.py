import time
from dataclasses import dataclass, fields
from typing import Any, Coroutine, TypeVar

T = TypeVar("T")

_time_unit_cutoff: dict[str, int] = { "ns": 1, "us": int(1e3), "ms": int(1e6), "s": int(1e9), "m": int(60e9), "h": int(3600e9) }
_time_unit_to_order: dict[str, int] = { u: order for order, u in enumerate(_time_unit_cutoff.keys(), 1) }
_time_units_by_order: dict[int, str] = { order: u for u, order in _time_unit_to_order.items() }
def render_duration(ns: int) -> str:
  """Pretty Print a time in Nanoseconds"""
  _dur = abs(ns)
  if _dur == 0: return "0ns"
  if _dur < _time_unit_cutoff["us"]: _order = _time_unit_to_order["ns"]
  elif _dur < _time_unit_cutoff["ms"]: _order = _time_unit_to_order["us"]
  elif _dur < _time_unit_cutoff["s"]: _order = _time_unit_to_order["ms"]
  elif _dur < _time_unit_cutoff["m"]: _order = _time_unit_to_order["s"]
  elif _dur < _time_unit_cutoff["h"]: _order = _time_unit_to_order["m"]
  else: _order = _time_unit_to_order["h"]
  _render = ""
  # Walk down from the largest unit
  for lvl in range(_order, 0, -1):
    unit = _time_units_by_order[lvl]
    quot, _dur = divmod(_dur, _time_unit_cutoff[unit])
    if quot == 0: continue
    _render += f"{int(quot)}{unit} "
  return ("- " + _render if ns < 0 else _render).strip()

async def atimeit(coro: Coroutine[Any, Any, T]) -> tuple[int, T]:
  """Time a coroutine and return the time (in ns) and result.
  
  Pass the Coroutine ready to go; call the coroutine function but don't await it.

  #### Example

  ```python
  duration_ns, result = await atimeit(counter.increment())
  ```
  """
  start = time.monotonic_ns()
  result = await coro
  end = time.monotonic_ns()
  return (end - start, result)

@dataclass
class GateStats:
  """Running Counters for a single Coordinator"""

  blocking_started: int = 0
  """Blocking Operations registered in the Active Set"""
  blocking_settled: int = 0
  """Blocking Operations removed from the Active Set"""
  invocations_deferred: int = 0
  """Blockable Calls captured onto the Invocation Queue"""
  responses_deferred: int = 0
  """Outcomes withheld onto the Response Queue"""
  drained: int = 0
  """Deferred Tasks run by the Drain Engine"""
  drain_passes: int = 0
  """How many times the Drain Engine went from Idle to Draining"""
  last_drain_ns: int = 0
  """How long the most recent drain pass took"""

  def snapshot(self) -> dict[str, int]:
    return { f.name: getattr(self, f.name) for f in fields(self) }

  def clear(self) -> None:
    for f in fields(self): setattr(self, f.name, 0)
