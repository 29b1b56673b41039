"""Chromium session (Playwright sync API): one browser, one context, one page."""
import logging
from typing import Optional

from playwright.sync_api import sync_playwright, Browser, Page, Playwright

import config
from errors import SessionNotInitialized


class BrowserSession:
    def __init__(self, headless: bool = config.HEADLESS):
        self.headless = headless
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise SessionNotInitialized()
        return self._page

    def start(self) -> Page:
        logging.info("🚀 Launching browser (headless=%s)", self.headless)
        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(
            headless=self.headless,
            args=["--disable-blink-features=AutomationControlled"],
        )
        context = self._browser.new_context(
            user_agent=config.USER_AGENT,
            locale=config.LOCALE, timezone_id=config.TIMEZONE,
            extra_http_headers={"Accept-Language": config.ACCEPT_LANGUAGE},
            viewport={"width": 1920, "height": 1080},
        )
        context.set_default_navigation_timeout(config.NAV_TIMEOUT_MS)
        context.set_default_timeout(20_000)
        try:
            context.add_cookies([{"name": "CONSENT", "value": config.CONSENT_VALUE,
                                  "domain": ".youtube.com", "path": "/"}])
        except Exception as e:
            logging.debug("Could not set consent cookie: %s", e)
        self._page = context.new_page()
        return self._page

    def close(self):
        page, browser, playwright = self._page, self._browser, self._playwright
        self._page = self._browser = self._playwright = None
        try:
            if page is not None:
                page.close()
        except Exception:
            logging.debug("Page close failed")
        try:
            if browser is not None:
                browser.close()
        finally:
            if playwright is not None:
                playwright.stop()

    def __enter__(self) -> "BrowserSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
