"""Errors raised by the Gate Coordinator itself (never by the operations it wraps)"""
from __future__ import annotations

class GateError(RuntimeError):
  """Base class for Errors raised by the Coordinator"""

class WrapError(GateError, TypeError):
  """Something that isn't an Asynchronous Operation was handed to a Gate"""
  def __init__(self, target: object, msg: str):
    self.target = target
    self.msg = msg

  def __str__(self) -> str:
    return f"{type(self.target).__name__}: {self.msg}"

class ConfigError(GateError, ValueError):
  """The Coordinator's Configuration is invalid"""
