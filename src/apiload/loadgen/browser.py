from __future__ import annotations

import logging
import time
from typing import Mapping

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from apiload.errors import BackendAcquisitionError
from apiload.metrics import ErrorInfo, ErrorType, Outcome

logger = logging.getLogger(__name__)

LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


class BrowserRequester:
    """Navigates a headless Chromium page to each target.

    One browser is launched per run; every attempt gets its own browser
    context, closed again whatever the attempt's result.
    """

    def __init__(
        self,
        timeout_ms: float = 10000,
        headless: bool = True,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.timeout_ms = timeout_ms
        self.headless = headless
        self.headers = dict(headers or {})
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    async def open(self) -> None:
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                args=LAUNCH_ARGS,
            )
        except (PlaywrightError, OSError) as exc:
            await self.close()
            msg = f"Could not launch browser: {exc}"
            raise BackendAcquisitionError(msg) from exc

    async def close(self) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def attempt(self, target: str) -> Outcome:
        if self._browser is None:
            msg = "BrowserRequester.open() must be awaited before attempt()"
            raise RuntimeError(msg)
        start_mono = time.perf_counter()
        context: BrowserContext | None = None
        try:
            context = await self._browser.new_context(extra_http_headers=self.headers)
            page = await context.new_page()
            response = await page.goto(target, wait_until="networkidle", timeout=self.timeout_ms)
        except PlaywrightTimeoutError as exc:
            return _navigation_failure(start_mono, exc, ErrorType.TIMEOUT)
        except PlaywrightError as exc:
            return _navigation_failure(start_mono, exc, ErrorType.NAVIGATION)
        finally:
            if context is not None:
                await _close_context(context)
        elapsed = _elapsed_ms(start_mono)
        status = response.status if response is not None else 0
        if 200 <= status < 300:
            return Outcome(success=True, status_code=status, response_time_ms=elapsed)
        return Outcome(
            success=False,
            status_code=status,
            response_time_ms=elapsed,
            error=ErrorInfo(
                message=f"Navigation returned status code {status}",
                code=ErrorType.HTTP_STATUS.value,
            ),
        )


async def _close_context(context: BrowserContext) -> None:
    try:
        await context.close()
    except PlaywrightError as exc:
        logger.debug("Browser context close failed: %s", exc)


def _navigation_failure(start_mono: float, exc: Exception, err: ErrorType) -> Outcome:
    return Outcome(
        success=False,
        status_code=0,
        response_time_ms=_elapsed_ms(start_mono),
        error=ErrorInfo(message=str(exc) or type(exc).__name__, code=err.value),
    )


def _elapsed_ms(start_mono: float) -> int:
    return max(0, round((time.perf_counter() - start_mono) * 1000.0))
