from __future__ import annotations
import os, sys, asyncio
from typing import TypedDict
from loguru import logger

from actorgate.testing import test_registry, TestCode, TestError, TestResult

group_test_results_t = tuple[tuple[TestError, ...], dict[TestCode, dict[str, TestResult]]]
async def run_test_group(name: str) -> group_test_results_t:
  logger.info(f"Running Test Group {name}")
  group_tests = test_registry.get_group_tests(name)
  test_order: tuple[str, ...] = tuple(sorted(group_tests.keys()))
  _test_results: list[TestResult | Exception] = await asyncio.gather(*[group_tests[name] for name in test_order], return_exceptions=True)
  test_errors: list[TestError] = []
  test_results: dict[TestCode, dict[str, TestResult]] = { TestCode.PASS: {}, TestCode.FAIL: {}, TestCode.SKIP: {} }

  for _name, result in zip(test_order, _test_results):
    if isinstance(result, Exception): test_errors.append(TestError(_name, result))
    elif not isinstance(result, TestResult): raise TypeError(f"Expected '{name}::{_name}' to return TestResult or Exception, got {type(result).__name__}")
    else: test_results[result.code][_name] = result

  return (test_errors, test_results)

async def cmd_run_tests(
  groups: list[str] | None = None,
) -> int:
  logger.info("Running Test Suite")

  group_names: tuple[str, ...] = tuple(sorted(g for g in test_registry.groups if groups is None or g in groups))
  if len(group_names) < 1: raise CLIError("No Test Groups Registered")
  for group_name in group_names:
    test_names = list(sorted(test_registry.tests[group_name].keys()))
    logger.info(f"Test Group '{group_name}' has {len(test_names)} Tests Registered: {', '.join(test_names)}")
  group_test_results: list[group_test_results_t] = await asyncio.gather(*[run_test_group(name) for name in group_names])

  _error, _failed = False, False
  for group_name, (test_errors, test_results) in zip(group_names, group_test_results):
    if len(test_errors) > 0: _error = True
    if len(test_results[TestCode.FAIL]) > 0: _failed = True
    for error in test_errors: logger.opt(exception=error.error).critical(f"'{group_name}::{error.name}' encountered an Error: {error.error}")
    for test_name, test_result in test_results[TestCode.PASS].items(): logger.success(f"'{group_name}::{test_name}': {test_result}")
    for test_name, test_result in test_results[TestCode.FAIL].items(): logger.warning(f"'{group_name}::{test_name}': {test_result}")
    for test_name, test_result in test_results[TestCode.SKIP].items(): logger.info(f"'{group_name}::{test_name}': {test_result}")

  if _error: logger.critical("!!! TEST SUITE COMPLETED WITH RUNTIME ERRORS !!!")
  elif _failed: logger.error("Test Suite Completed with Failures")
  else: logger.success("Tests Completed Successfully")
  return 1 if (_error or _failed) else 0

def cmd_list_tests() -> int:
  for group_name in sorted(test_registry.groups):
    for test_name in sorted(test_registry.tests[group_name].keys()): print(f"{group_name}::{test_name}")
  return 0

def main(args: tuple[str, ...], kwargs: CLI_KWARGS) -> int:
  logger.trace(f"Starting main function with arguments: {args}\nKeywords: {kwargs}")
  if len(args) < 1: raise CLIError("No subcommand provided")
  subcmd = args[0]
  if subcmd == 'run':
    groups = list(args[1:]) if len(args) > 1 else None
    return asyncio.run(cmd_run_tests(groups=groups))
  elif subcmd == 'list': return cmd_list_tests()
  else:
    raise CLIError(f"Unknown subcommand '{subcmd}'")

class CLIError(RuntimeError): pass

def setup_logging(log_level: str = os.environ.get('LOG_LEVEL', 'INFO')):
  logger.remove()
  logger.add(sys.stderr, level=log_level, enqueue=True, colorize=True)
  logger.trace(f'Log level set to {log_level}')

def finalize_logging():
  logger.complete()

class CLI_KWARGS(TypedDict):
  log: str
  """The Log Level"""

def parse_argv(argv: list[str], env: dict[str, str]) -> tuple[tuple[str, ...], CLI_KWARGS]:
  args = []
  kwargs = {
    "log": env.get('LOG_LEVEL', 'INFO'),
  }
  for idx, arg in enumerate(argv):
    if arg == '--':
      logger.trace(f"Found end of arguments at index {idx}")
      args.extend(argv[idx+1:])
      break
    elif arg.startswith('--'):
      logger.trace(f"Found keyword argument: {arg}")
      if '=' in arg: key, value = arg[2:].split('=', 1)
      else: key, value = arg[2:], True
      kwargs[key] = value
    else:
      logger.trace(f"Found positional argument: {arg}")
      args.append(arg)
  return tuple(args), kwargs

if __name__ == '__main__':
  setup_logging()
  _rc = 255
  try:
    args, kwargs = parse_argv(sys.argv[1:], os.environ)
    logger.trace(f"Arguments: {args}\nKeywords: {kwargs}")
    setup_logging(kwargs['log']) # Reconfigure logging
    _rc = main(args, kwargs)
  except CLIError as e:
    logger.error(str(e))
    _rc = 2
  except Exception:
    logger.opt(exception=True).critical('Unhandled exception')
    _rc = 3
  finally:
    finalize_logging()
    sys.stdout.flush()
    sys.stderr.flush()
  sys.exit(_rc)
