"""Browser launch helpers — turns a BrowserConfig into Playwright objects."""

from __future__ import annotations

from playwright.async_api import Browser, BrowserContext, Playwright

from sitecheck.models.config import BrowserConfig


def build_launch_args(config: BrowserConfig) -> list[str]:
    args = [f"--lang={config.language}"]
    if config.disable_gpu:
        args.append("--disable-gpu")
    return args


async def launch_browser(playwright: Playwright, config: BrowserConfig) -> Browser:
    """Launch the configured browser engine."""
    browser_type = getattr(playwright, config.browser)
    launch_kwargs: dict = {"headless": config.headless}
    if config.browser == "chromium":
        launch_kwargs["args"] = build_launch_args(config)
    if config.default_download_path:
        launch_kwargs["downloads_path"] = config.default_download_path
    return await browser_type.launch(**launch_kwargs)


async def create_context(browser: Browser, config: BrowserConfig) -> BrowserContext:
    """Create a browser context using the configured language, viewport and TLS policy.

    Downloads are accepted without prompting so files land in the launch
    ``downloads_path`` when one is configured.
    """
    return await browser.new_context(
        viewport={"width": config.viewport.width, "height": config.viewport.height},
        locale=config.language,
        extra_http_headers={"Accept-Language": config.language},
        ignore_https_errors=config.accept_insecure_certs,
        accept_downloads=True,
    )
