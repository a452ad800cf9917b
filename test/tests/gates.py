"""

Test the BlockingGate

"""
from __future__ import annotations
import asyncio
from actorgate.testing import TestResult, TestCode

__all__ = [
  'test_BlockingGate_protocol',
  'test_BlockingGate_defers_blockable',
  'test_BlockingGate_releases_on_error',
]

async def test_BlockingGate_protocol(*args, **kwargs) -> TestResult:
  from actorgate import ActiveOperations, BlockingGate, Gate
  try:
    active = ActiveOperations()
    gate = BlockingGate(active)
    assert isinstance(gate, Gate), "A BlockingGate should satisfy the Gate Protocol"
    assert not gate.held, "A new Gate shouldn't be held"

    async with gate as held:
      assert held is gate, "Entering the Gate should return the Gate"
      assert gate.held and len(active) == 1, "Holding the Gate should register exactly one blocking operation"
      assert list(active.handles.values()) == [asyncio.current_task()], "The handle should be attached to the Task holding the Gate"
      try:
        await gate.acquire()
        assert False, "Acquiring a held Gate should raise a RuntimeError"
      except RuntimeError: pass
    assert not gate.held and active.empty, "Leaving the Gate should release its blocking operation"

    try:
      await gate.release()
      assert False, "Releasing a Gate that isn't held should raise a RuntimeError"
    except RuntimeError: pass
  except AssertionError as e: return TestResult(TestCode.FAIL, str(e))

  return TestResult(TestCode.PASS)

async def test_BlockingGate_defers_blockable(*args, **kwargs) -> TestResult:
  from actorgate import GateCoordinator
  coordinator = GateCoordinator({ 'name': 'gate-defers' })
  order: list[str] = []

  @coordinator.blockable
  async def handler(name: str) -> str:
    order.append(name)
    return name

  try:
    async with coordinator.gate():
      first = handler('first')
      second = handler('second')
      await asyncio.sleep(0.01)
      order.append('released')
    assert await asyncio.gather(first, second) == ['first', 'second']
    assert order == ['released', 'first', 'second'], f"Deferred calls should run in order after the Gate is released; got {order}"
    assert coordinator.stats.blocking_started == 1 and coordinator.stats.blocking_settled == 1, f"The Gate should be counted as one blocking operation; got {coordinator.stats.snapshot()}"
  except AssertionError as e: return TestResult(TestCode.FAIL, str(e))

  return TestResult(TestCode.PASS)

async def test_BlockingGate_releases_on_error(*args, **kwargs) -> TestResult:
  from actorgate import GateCoordinator
  coordinator = GateCoordinator({ 'name': 'gate-error' })
  try:
    try:
      async with coordinator.gate():
        raise LookupError("boom")
    except LookupError: pass
    assert coordinator.active.empty, "An exception inside the Gate should still release it"
  except AssertionError as e: return TestResult(TestCode.FAIL, str(e))

  return TestResult(TestCode.PASS)
