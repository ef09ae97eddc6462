from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Protocol

import httpx

from apiperf.config import TargetConfig
from apiperf.metrics import ErrorKind, RequestOutcome


@dataclass(frozen=True, slots=True)
class RequestSpec:
    url: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout_sec: float = 10.0
    json: Any = None
    expected_status: int | None = None

    @classmethod
    def from_target(cls, target: TargetConfig, path: str = "") -> RequestSpec:
        url = target.base_url.rstrip("/") + "/" + path.lstrip("/") if path else target.base_url
        return cls(
            url=url,
            method=target.method,
            headers=target.headers,
            timeout_sec=target.timeout_sec,
        )

    def accepts(self, response: httpx.Response) -> bool:
        if self.expected_status is None:
            return response.is_success
        return response.status_code == self.expected_status


RequestFactory = Callable[[int], RequestSpec]


def fixed_request(spec: RequestSpec) -> RequestFactory:
    return lambda _index: spec


class RequestExecutor(Protocol):
    async def execute(self, spec: RequestSpec) -> RequestOutcome:
        ...


@dataclass(frozen=True, slots=True)
class HttpRequestExecutor:
    """Issues exactly one HTTP request per call and never raises.

    Transport failures come back as unsuccessful outcomes carrying the
    unmeasured latency sentinel. Retrying is left to the caller.
    """

    client: httpx.AsyncClient

    async def execute(self, spec: RequestSpec) -> RequestOutcome:
        start = time.perf_counter()
        try:
            resp = await self.client.request(
                spec.method,
                spec.url,
                headers=dict(spec.headers),
                json=spec.json,
                timeout=spec.timeout_sec,
            )
        except httpx.TimeoutException:
            return RequestOutcome.failed(ErrorKind.TIMEOUT)
        except httpx.ConnectError:
            return RequestOutcome.failed(ErrorKind.CONNECT)
        except httpx.ReadError:
            return RequestOutcome.failed(ErrorKind.READ)
        except httpx.ProtocolError:
            return RequestOutcome.failed(ErrorKind.PROTOCOL)
        except (httpx.HTTPError, httpx.InvalidURL):
            return RequestOutcome.failed(ErrorKind.OTHER)
        latency_ms = round((time.perf_counter() - start) * 1000.0)
        success = spec.accepts(resp)
        return RequestOutcome(
            success=success,
            latency_ms=latency_ms,
            status_code=resp.status_code,
            error_kind=None if success else ErrorKind.UNEXPECTED_STATUS,
        )
