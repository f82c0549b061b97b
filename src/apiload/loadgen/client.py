from __future__ import annotations

import time
from typing import Mapping

import httpx

from apiload.errors import BackendAcquisitionError
from apiload.metrics import ErrorInfo, ErrorType, Outcome


class HttpRequester:
    def __init__(
        self,
        timeout_sec: float = 10.0,
        headers: Mapping[str, str] | None = None,
        max_connections: int = 100,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_sec = timeout_sec
        self.headers = dict(headers or {})
        self.limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_connections,
        )
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def open(self) -> None:
        try:
            self._client = httpx.AsyncClient(
                headers=self.headers,
                timeout=self.timeout_sec,
                limits=self.limits,
                follow_redirects=True,
                transport=self._transport,
            )
        except (OSError, ValueError) as exc:
            msg = f"Could not create HTTP client: {exc}"
            raise BackendAcquisitionError(msg) from exc

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def attempt(self, target: str) -> Outcome:
        if self._client is None:
            msg = "HttpRequester.open() must be awaited before attempt()"
            raise RuntimeError(msg)
        start_mono = time.perf_counter()
        try:
            resp = await self._client.get(target)
        except httpx.TimeoutException as exc:
            return _transport_failure(start_mono, exc, ErrorType.TIMEOUT)
        except httpx.ConnectError as exc:
            return _transport_failure(start_mono, exc, ErrorType.CONNECT)
        except httpx.ReadError as exc:
            return _transport_failure(start_mono, exc, ErrorType.READ)
        except httpx.HTTPError as exc:
            return _transport_failure(start_mono, exc, ErrorType.OTHER)
        elapsed = _elapsed_ms(start_mono)
        if resp.is_success:
            return Outcome(success=True, status_code=resp.status_code, response_time_ms=elapsed)
        return Outcome(
            success=False,
            status_code=resp.status_code,
            response_time_ms=elapsed,
            error=ErrorInfo(
                message=f"Request failed with status code {resp.status_code}",
                code=ErrorType.HTTP_STATUS.value,
            ),
        )


def _transport_failure(start_mono: float, exc: Exception, err: ErrorType) -> Outcome:
    return Outcome(
        success=False,
        status_code=0,
        response_time_ms=_elapsed_ms(start_mono),
        error=ErrorInfo(message=str(exc) or type(exc).__name__, code=err.value),
    )


def _elapsed_ms(start_mono: float) -> int:
    return max(0, round((time.perf_counter() - start_mono) * 1000.0))
