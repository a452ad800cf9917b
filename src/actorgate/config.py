"""

# Coordinator Configuration

Configuration is a plain `TypedDict`; use `GateConfig.validate` before trusting one & `GateConfig.from_env` to source one from the environment.

| Key            | Env Var                  | Default     |
|----------------|--------------------------|-------------|
| `settle_ticks` | `ACTORGATE_SETTLE_TICKS` | `10`        |
| `name`         | `ACTORGATE_NAME`         | `actorgate` |

"""
from __future__ import annotations
import os
from collections.abc import Mapping
from typing import TypedDict
from loguru import logger
from .errors import ConfigError

SETTLE_TICKS = 10
"""How many times the Settlement Barrier yields to the Event Loop by default"""
DEFAULT_NAME = "actorgate"

class GateConfig(TypedDict):
  settle_ticks: int
  """How many times the Settlement Barrier yields to the Event Loop before trusting the Active Set is empty"""
  name: str
  """A Label for the Coordinator used in Log Lines & Task Names"""

  @staticmethod
  def validate(cfg: GateConfig):
    if not isinstance(cfg, dict): raise ConfigError("Configuration must be a dictionary")
    if 'settle_ticks' not in cfg: raise ConfigError("Configuration must contain a 'settle_ticks' key")
    if isinstance(cfg['settle_ticks'], bool) or not isinstance(cfg['settle_ticks'], int): raise ConfigError("'settle_ticks' must be an integer")
    if cfg['settle_ticks'] < 1: raise ConfigError(f"'settle_ticks' must be at least 1; got {cfg['settle_ticks']}")
    if 'name' not in cfg: raise ConfigError("Configuration must contain a 'name' key")
    if not isinstance(cfg['name'], str) or cfg['name'].strip() == '': raise ConfigError("'name' must be a non-empty string")

  @staticmethod
  def default() -> GateConfig:
    return { 'settle_ticks': SETTLE_TICKS, 'name': DEFAULT_NAME }

  @staticmethod
  def from_env(env: Mapping[str, str] = os.environ) -> GateConfig:
    """Source the Configuration from the Environment, falling back to the defaults"""
    cfg = GateConfig.default()
    if 'ACTORGATE_SETTLE_TICKS' in env:
      try: cfg['settle_ticks'] = int(env['ACTORGATE_SETTLE_TICKS'])
      except ValueError: raise ConfigError(f"ACTORGATE_SETTLE_TICKS must be an integer; got '{env['ACTORGATE_SETTLE_TICKS']}'") from None
    if 'ACTORGATE_NAME' in env: cfg['name'] = env['ACTORGATE_NAME']
    GateConfig.validate(cfg)
    logger.trace(f"Loaded Gate Configuration: {cfg}")
    return cfg

  @staticmethod
  def merge(cfg: GateConfig | None, **overrides) -> GateConfig:
    """Overlay a partial Configuration onto the defaults & validate the result"""
    merged = GateConfig.default() | (cfg or {}) | overrides
    GateConfig.validate(merged)
    return merged
