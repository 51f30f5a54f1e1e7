"""Headless browser channel for pages that only render with JavaScript."""

import logging

from stockwatch.errors import FetchError, FetchTimeout

logger = logging.getLogger(__name__)


def fetch_with_browser(url: str, user_agent: str, timeout: float = 60.0, settle_ms: int = 2000) -> str:
    """
    Render a product page with Playwright and return its HTML.

    Uses Firefox (less likely to be blocked by Akamai-style bot detection than
    Chromium). Waits settle_ms after load for late stock widgets.
    """
    try:
        from playwright.sync_api import Error as PlaywrightError
        from playwright.sync_api import TimeoutError as PlaywrightTimeout
        from playwright.sync_api import sync_playwright
    except ImportError as e:
        logger.warning("Playwright not installed. Run: pip install playwright && playwright install firefox")
        raise FetchError("playwright is not installed") from e

    try:
        with sync_playwright() as p:
            browser = p.firefox.launch(headless=True)
            try:
                context = browser.new_context(
                    user_agent=user_agent,
                    viewport={"width": 1366, "height": 768},
                )
                page = context.new_page()
                page.goto(url, wait_until="domcontentloaded", timeout=timeout * 1000)
                page.wait_for_timeout(settle_ms)
                return page.content()
            finally:
                browser.close()
    except PlaywrightTimeout as e:
        raise FetchTimeout(f"browser timed out after {timeout:.0f}s") from e
    except PlaywrightError as e:
        raise FetchError(f"browser error: {e}") from e
