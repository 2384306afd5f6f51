"""Pytest configuration and shared fixtures."""

import io
from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from PIL import Image
from playwright.async_api import Browser, Page

from sitecheck.executor.automated_browser import AutomatedBrowser
from sitecheck.executor.http_tests import HttpTester
from sitecheck.models.config import SiteCheckConfig


LOADED_HTML = "<html><head><title>Example Page</title></head><body><h1>Hello world</h1></body></html>"


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def config() -> SiteCheckConfig:
    """Create a test configuration with short waits."""
    return SiteCheckConfig(
        wait_timeout_seconds=1,
        http_timeout_seconds=1,
        interaction_retries=2,
        wildcards={"$host": "example.com"},
    )


@pytest.fixture
def temp_config_file(config: SiteCheckConfig, tmp_path: Path) -> Path:
    """Create a temporary config file."""
    config_file = tmp_path / "sitecheck.json"
    config.save(config_file)
    return config_file


# ============================================================================
# HTTP Fixtures
# ============================================================================


def default_routes(request: httpx.Request) -> httpx.Response:
    """Small fake site served through httpx.MockTransport."""
    path = request.url.path
    if request.url.host == "unreachable.test":
        raise httpx.ConnectError("Name or service not known", request=request)
    if path == "/":
        return httpx.Response(200, text="<html><body>Home page for example.com</body></html>")
    if path == "/hello":
        return httpx.Response(200, text="hello world")
    if path == "/form" and request.method == "POST":
        return httpx.Response(200, text=f"received {request.content.decode()}")
    if path == "/private":
        return httpx.Response(403, text="Forbidden")
    return httpx.Response(404, text="Not Found")


@pytest.fixture
def http_routes() -> Callable[[httpx.Request], httpx.Response]:
    """Request handler used by the mock transport. Override per test when needed."""
    return default_routes


@pytest.fixture
def mock_transport(http_routes) -> httpx.MockTransport:
    return httpx.MockTransport(http_routes)


@pytest.fixture
def http_tester(config: SiteCheckConfig, mock_transport: httpx.MockTransport) -> HttpTester:
    """Create an HttpTester backed by the mock transport."""
    return HttpTester(config, client=httpx.AsyncClient(transport=mock_transport))


# ============================================================================
# Playwright Mock Fixtures
# ============================================================================


@pytest.fixture
def page_events() -> dict[str, list]:
    """Listeners registered through page.on(), keyed by event name."""
    return {}


@pytest.fixture
def mock_page(page_events: dict[str, list]) -> AsyncMock:
    """Create a mock Playwright page."""
    page = AsyncMock(spec=Page)
    page.url = "https://example.com/"
    page.title = AsyncMock(return_value="Example Page")
    page.evaluate = AsyncMock(return_value=LOADED_HTML)
    page.goto = AsyncMock()
    page.wait_for_function = AsyncMock()
    page.wait_for_selector = AsyncMock(return_value=AsyncMock())
    page.query_selector = AsyncMock(return_value=None)
    page.wait_for_timeout = AsyncMock()
    page.screenshot = AsyncMock()
    page.set_viewport_size = AsyncMock()
    page.bring_to_front = AsyncMock()
    page.on = Mock(side_effect=lambda event, callback: page_events.setdefault(event, []).append(callback))
    page.locator = Mock(return_value=AsyncMock())
    page.context = Mock()
    page.context.pages = [page]
    return page


@pytest.fixture
def mock_browser() -> AsyncMock:
    """Create a mock Playwright browser."""
    browser = AsyncMock(spec=Browser)
    browser.new_context = AsyncMock()
    return browser


@pytest.fixture
def emit_console(page_events: dict[str, list]) -> Callable[[str, str], None]:
    """Fire a console message on every registered listener."""

    def _emit(level: str, text: str) -> None:
        message = Mock(type=level, text=text)
        for callback in page_events.get("console", []):
            callback(message)

    return _emit


@pytest.fixture
def browser(config: SiteCheckConfig, http_tester: HttpTester, mock_page: AsyncMock) -> AutomatedBrowser:
    """Create an AutomatedBrowser attached to the mock page."""
    automated = AutomatedBrowser(config, http_tester=http_tester)
    automated.attach_page(mock_page)
    return automated


def navigate(page: AsyncMock, redirects: dict[str, str] | None = None, on_load: Callable | None = None) -> None:
    """Make page.goto update page.url, following the given redirect map."""
    redirects = redirects or {}

    async def _goto(url, **kwargs):
        page.url = redirects.get(url, url)
        if on_load is not None:
            on_load(url)

    page.goto.side_effect = _goto


# ============================================================================
# Image Helpers
# ============================================================================


def make_image(size: tuple[int, int] = (20, 20), color=(255, 255, 255, 255),
               square: tuple[int, int, int] | None = None) -> Image.Image:
    """Solid image, optionally with a red square at (x, y) of the given side."""
    image = Image.new("RGBA", size, color)
    if square is not None:
        x, y, side = square
        for i in range(x, x + side):
            for j in range(y, y + side):
                image.putpixel((i, j), (255, 0, 0, 255))
    return image


def png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def snapshot_dir(tmp_path: Path) -> Path:
    """Create a temporary snapshot directory."""
    snapshots = tmp_path / "snapshots"
    snapshots.mkdir()
    return snapshots


@pytest.fixture
def navigate_page() -> Callable:
    """Fixture that provides the navigate helper."""
    return navigate


@pytest.fixture
def image_factory() -> Callable:
    """Fixture that provides the make_image helper."""
    return make_image


@pytest.fixture
def to_png() -> Callable:
    """Fixture that provides the png_bytes helper."""
    return png_bytes
