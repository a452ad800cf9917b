"""

# The Settlement Barrier

Under cooperative scheduling a just-finished Blocking Operation can wake a chain of continuations that immediately register new Blocking Operations. Checking the Active Set right away would observe a transient "empty"; instead we yield to the Event Loop a fixed number of times so those continuations get a chance to run first.

This is a heuristic: a continuation chain deeper than the configured tick count can still slip past it.

"""
from __future__ import annotations
import asyncio
from .config import SETTLE_TICKS

async def settle(ticks: int = SETTLE_TICKS) -> None:
  """Yield control back to the Event Loop `ticks` times"""
  if ticks < 1: raise ValueError(f"ticks must be at least 1; got {ticks}")
  for _ in range(ticks): await asyncio.sleep(0)
