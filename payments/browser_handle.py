"""Scoped, reference-counted browser for hosted checkout pages."""

from __future__ import annotations
from tracking import t

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Tuple

from playwright.async_api import Browser, async_playwright

Launcher = Callable[[bool], Awaitable[Tuple[Any, Browser]]]

logger = logging.getLogger(__name__)


async def launch_chromium(headless: bool) -> Tuple[Any, Browser]:
    """Start Playwright and a Chromium instance; returns both for teardown."""
    t('payments.browser_handle.launch_chromium')
    playwright = await async_playwright().start()
    try:
        browser = await playwright.chromium.launch(headless=headless)
    except Exception:
        await playwright.stop()
        raise
    return playwright, browser


class CheckoutBrowserHandle:
    """Lazily launched browser shared by concurrent checkouts of one owner.

    The browser starts on the first :meth:`acquire` and is torn down when the
    last holder calls :meth:`release`, or when :meth:`close` is called.
    """

    def __init__(self, *, headless: bool = False, launcher: Optional[Launcher] = None) -> None:
        t('payments.browser_handle.CheckoutBrowserHandle.__init__')
        self._headless = headless
        self._launcher = launcher or launch_chromium
        self._lock = asyncio.Lock()
        self._refs = 0
        self._playwright: Any = None
        self._browser: Optional[Browser] = None

    @property
    def ref_count(self) -> int:
        return self._refs

    @property
    def is_open(self) -> bool:
        return self._browser is not None

    async def acquire(self) -> Browser:
        t('payments.browser_handle.CheckoutBrowserHandle.acquire')
        async with self._lock:
            if self._browser is None:
                logger.info("Launching checkout browser (headless=%s)", self._headless)
                self._playwright, self._browser = await self._launcher(self._headless)
            self._refs += 1
            return self._browser

    async def release(self) -> None:
        t('payments.browser_handle.CheckoutBrowserHandle.release')
        async with self._lock:
            if self._refs == 0:
                return
            self._refs -= 1
            if self._refs == 0:
                await self._teardown_locked()

    async def close(self) -> None:
        """Tear the browser down regardless of outstanding holders."""
        t('payments.browser_handle.CheckoutBrowserHandle.close')
        async with self._lock:
            self._refs = 0
            await self._teardown_locked()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[Browser]:
        t('payments.browser_handle.CheckoutBrowserHandle.session')
        browser = await self.acquire()
        try:
            yield browser
        finally:
            await self.release()

    async def _teardown_locked(self) -> None:
        t('payments.browser_handle.CheckoutBrowserHandle._teardown_locked')
        browser, playwright = self._browser, self._playwright
        self._browser = None
        self._playwright = None
        if browser is not None:
            try:
                await browser.close()
            except Exception:
                logger.exception("Error closing checkout browser")
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception:
                logger.exception("Error stopping Playwright")
        if browser is not None:
            logger.info("Checkout browser torn down")
