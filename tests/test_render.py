import asyncio

import pytest

from conftest import ARTICLE_HTML, PRODUCT_HTML, FakeRenderer
from product_scout.classifier.content import ContentClassifier
from product_scout.render.browser import BrowserSession
from product_scout.render.executor import PatternOnlyExecutor, RenderExecutor


def make_executor(renderer, concurrency: int = 2, timeout: float = 1.0) -> RenderExecutor:
    return RenderExecutor(renderer, ContentClassifier(), concurrency=concurrency, timeout=timeout)


@pytest.mark.asyncio()
async def test_classify_many_mixed_batch():
    renderer = FakeRenderer(
        {"https://s.example/a": PRODUCT_HTML, "https://s.example/b": ARTICLE_HTML},
        broken={"https://s.example/c"},
    )
    verdicts = await make_executor(renderer).classify_many(
        ["https://s.example/a", "https://s.example/b", "https://s.example/c"]
    )
    assert verdicts == {
        "https://s.example/a": True,
        "https://s.example/b": False,
        "https://s.example/c": False,
    }


@pytest.mark.asyncio()
async def test_hung_render_is_negative():
    class HangingRenderer:
        async def render(self, url: str) -> str:
            await asyncio.sleep(30)
            return PRODUCT_HTML

    executor = make_executor(HangingRenderer(), timeout=0.1)
    assert await executor.is_product("https://s.example/slow") is False


@pytest.mark.asyncio()
async def test_render_concurrency_is_bounded():
    state = {"active": 0, "peak": 0}

    class CountingRenderer:
        async def render(self, url: str) -> str:
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
            await asyncio.sleep(0.05)
            state["active"] -= 1
            return ARTICLE_HTML

    executor = make_executor(CountingRenderer(), concurrency=2)
    await executor.classify_many([f"https://s.example/{i}" for i in range(6)])
    assert state["peak"] == 2


@pytest.mark.asyncio()
async def test_empty_batch_skips_renderer():
    renderer = FakeRenderer({})
    assert await make_executor(renderer).classify_many([]) == {}
    assert renderer.calls == []


@pytest.mark.asyncio()
async def test_pattern_only_executor():
    assert await PatternOnlyExecutor().classify_many(["https://s.example/a"]) == {"https://s.example/a": False}


@pytest.mark.parametrize(
    "resource_type,url,blocked",
    [
        ("image", "https://s.example/a.png", True),
        ("font", "https://s.example/f.woff2", True),
        ("stylesheet", "https://s.example/site.css", True),
        ("script", "https://www.googletagmanager.com/gtm.js", True),
        ("xhr", "https://s.example/analytics/collect", True),
        ("document", "https://s.example/product/1", False),
        ("script", "https://s.example/app.js", False),
    ],
)
def test_browser_blocks_subresources(make_config, resource_type, url, blocked):
    session = BrowserSession(make_config())
    assert session.should_block(resource_type, url) is blocked


@pytest.mark.asyncio()
async def test_browser_close_without_launch(make_config):
    async with BrowserSession(make_config()) as session:
        assert not session.started
    assert not session.started


class FakePage:
    def __init__(self, behaviour: str) -> None:
        self.behaviour = behaviour
        self.routes = []

    async def route(self, pattern, handler) -> None:
        self.routes.append(pattern)

    async def goto(self, url, wait_until=None, timeout=None) -> None:
        if self.behaviour == "error":
            raise RuntimeError("net::ERR_CONNECTION_RESET")
        if self.behaviour == "hang":
            await asyncio.sleep(30)

    async def content(self) -> str:
        return PRODUCT_HTML


class FakeContext:
    def __init__(self, behaviour: str) -> None:
        self.page = FakePage(behaviour)
        self.closed = False

    async def new_page(self) -> FakePage:
        return self.page

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self, behaviour: str = "ok") -> None:
        self.behaviour = behaviour
        self.contexts = []
        self.closed = False

    async def new_context(self, **kwargs) -> FakeContext:
        context = FakeContext(self.behaviour)
        self.contexts.append(context)
        return context

    async def close(self) -> None:
        self.closed = True


def session_with(make_config, browser: FakeBrowser) -> BrowserSession:
    session = BrowserSession(make_config())
    session._browser = browser
    return session


@pytest.mark.asyncio()
async def test_render_closes_context_after_success(make_config):
    browser = FakeBrowser()
    session = session_with(make_config, browser)
    assert await session.render("https://s.example/p") == PRODUCT_HTML
    (context,) = browser.contexts
    assert context.closed
    assert context.page.routes == ["**/*"]


@pytest.mark.asyncio()
async def test_render_closes_context_after_navigation_error(make_config):
    browser = FakeBrowser("error")
    session = session_with(make_config, browser)
    with pytest.raises(RuntimeError):
        await session.render("https://s.example/p")
    assert browser.contexts[0].closed


@pytest.mark.asyncio()
async def test_render_closes_context_when_timed_out(make_config):
    browser = FakeBrowser("hang")
    session = session_with(make_config, browser)
    executor = make_executor(session, timeout=0.1)
    assert await executor.is_product("https://s.example/p") is False
    assert browser.contexts[0].closed
    await session.close()
    assert browser.closed


@pytest.mark.asyncio()
async def test_failed_launch_stops_playwright(make_config, monkeypatch):
    stopped = []

    class Chromium:
        async def launch(self, **kwargs):
            raise RuntimeError("Executable doesn't exist")

    class FakePlaywright:
        chromium = Chromium()

        async def stop(self) -> None:
            stopped.append(True)

    class Starter:
        async def start(self) -> FakePlaywright:
            return FakePlaywright()

    monkeypatch.setattr("product_scout.render.browser.async_playwright", lambda: Starter())
    session = BrowserSession(make_config())
    with pytest.raises(RuntimeError, match="Executable"):
        await session.render("https://s.example/p")
    assert stopped == [True]
    assert not session.started
    assert session._playwright is None
