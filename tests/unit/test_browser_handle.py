from tracking import t

import pytest

from payments.browser_handle import CheckoutBrowserHandle


class Recorder:
    def __init__(self):
        t('tests.unit.test_browser_handle.Recorder.__init__')
        self.launches = 0
        self.browser_closed = 0
        self.playwright_stopped = 0

    async def launcher(self, headless):
        self.launches += 1
        recorder = self

        class _Browser:
            async def close(self):
                recorder.browser_closed += 1

        class _Playwright:
            async def stop(self):
                recorder.playwright_stopped += 1

        return _Playwright(), _Browser()


@pytest.mark.asyncio
async def test_browser_is_launched_lazily_and_shared():
    recorder = Recorder()
    handle = CheckoutBrowserHandle(launcher=recorder.launcher)

    assert recorder.launches == 0
    first = await handle.acquire()
    second = await handle.acquire()

    assert first is second
    assert recorder.launches == 1
    assert handle.ref_count == 2


@pytest.mark.asyncio
async def test_last_release_tears_down():
    recorder = Recorder()
    handle = CheckoutBrowserHandle(launcher=recorder.launcher)
    await handle.acquire()
    await handle.acquire()

    await handle.release()
    assert handle.is_open
    await handle.release()

    assert not handle.is_open
    assert recorder.browser_closed == 1
    assert recorder.playwright_stopped == 1

    await handle.release()
    assert handle.ref_count == 0


@pytest.mark.asyncio
async def test_close_ignores_outstanding_holders_and_relaunches_later():
    recorder = Recorder()
    handle = CheckoutBrowserHandle(launcher=recorder.launcher)
    async with handle.session():
        await handle.close()
        assert handle.ref_count == 0

    await handle.acquire()
    assert recorder.launches == 2
