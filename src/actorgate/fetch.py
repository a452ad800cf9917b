"""

# Gated Fetch

An HTTP request whose response is Blockable: the request goes out immediately but the response isn't handed back while the Actor has Blocking Operations outstanding.

```python
async with aiohttp.ClientSession() as session:
  fetch = gated_fetch(coordinator, session)
  rsp = await fetch(HttpMethod.POST, "https://api.example.com/notify", json={'id': 42})
  if not rsp.ok: ...
```

"""
from __future__ import annotations
import enum
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING
import aiohttp
import orjson
from yarl import URL
from loguru import logger

if TYPE_CHECKING:
  from .coordinator import GateCoordinator

__all__ = [
  'HttpMethod',
  'FetchResponse',
  'gated_fetch',
]

class HttpMethod(enum.Enum):
  """https://developer.mozilla.org/en-US/docs/Web/HTTP/Methods"""
  GET = "GET"
  HEAD = "HEAD"
  POST = "POST"
  PUT = "PUT"
  DELETE = "DELETE"
  CONNECT = "CONNECT"
  OPTIONS = "OPTIONS"
  TRACE = "TRACE"
  PATCH = "PATCH"

@dataclass(frozen=True)
class FetchResponse:
  """A fully read HTTP Response"""

  method: HttpMethod
  url: URL
  status: int
  headers: Mapping[str, str] = field(default_factory=dict)
  body: bytes = b''

  @property
  def ok(self) -> bool: return 200 <= self.status < 300

  def text(self, encoding: str = 'utf-8') -> str: return self.body.decode(encoding)

  def json(self) -> Any: return orjson.loads(self.body)

fetch_t = Callable[..., Awaitable[FetchResponse]]
"""TypeHint: fetch(method, url, **request_kwargs) -> FetchResponse"""

def gated_fetch(coordinator: GateCoordinator, session: aiohttp.ClientSession) -> fetch_t:
  """Build a fetch function, bound to the session, whose responses pass through the Coordinator's output gate.

  Keyword arguments are passed through to `aiohttp.ClientSession.request`; `json=` payloads are encoded w/ orjson.
  """
  async def fetch(method: HttpMethod | str, url: URL | str, **kwargs) -> FetchResponse:
    _method = method if isinstance(method, HttpMethod) else HttpMethod(method.upper())
    if 'json' in kwargs:
      kwargs['data'] = orjson.dumps(kwargs.pop('json'))
      kwargs['headers'] = { 'Content-Type': 'application/json' } | dict(kwargs.get('headers') or {})
    logger.trace(f"[{coordinator.name}] {_method.value} {url}")
    # Read the whole body now so the connection is released even while delivery is withheld
    async with session.request(_method.value, url, **kwargs) as rsp:
      body = await rsp.read()
      return FetchResponse(
        method=_method,
        url=rsp.url,
        status=rsp.status,
        headers=dict(rsp.headers),
        body=body,
      )
  return coordinator.blockable_response(fetch)
