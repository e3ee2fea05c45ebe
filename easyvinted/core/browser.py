"""
Playwright Browser Session

单浏览器、单页面的会话管理：
- 启动 Chromium 并固定视口、语言与 User-Agent
- 所有发布步骤都通过同一个 page 操作
- close() 可重复调用，不抛异常
"""

from __future__ import annotations

import os
from typing import Any

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from easyvinted.core.error_handler import LaunchFailure, NavigationFailed
from easyvinted.core.logger import get_logger


class BrowserSession:
    """浏览器会话句柄。"""

    def __init__(self, config: dict[str, Any] | None = None, headless: bool | None = None):
        if config is None:
            from easyvinted.core.config import get_config

            config = get_config().browser

        self.logger = get_logger()
        self.config = config
        self.headless = bool(self.config.get("headless", True)) if headless is None else headless
        self.timeout = int(self.config.get("navigation_timeout", 30))
        self.slow_mo = int(self.config.get("slow_mo", 100))
        self.locale = str(self.config.get("locale", "fr-FR"))
        self.user_agent = str(self.config.get("user_agent", "") or "").strip()

        viewport_cfg = self.config.get("viewport", {"width": 1280, "height": 720})
        self.viewport = {
            "width": int(viewport_cfg.get("width", 1280)),
            "height": int(viewport_cfg.get("height", 720)),
        }

        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def is_open(self) -> bool:
        return self._page is not None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise LaunchFailure("Browser session is not open")
        return self._page

    async def open(self) -> "BrowserSession":
        if self._page is not None:
            return self

        try:
            self._playwright = await async_playwright().start()

            launch_kwargs: dict[str, Any] = {"headless": self.headless, "slow_mo": self.slow_mo}
            executable_path = os.getenv("PLAYWRIGHT_EXECUTABLE_PATH", "").strip()
            if executable_path:
                launch_kwargs["executable_path"] = executable_path

            self._browser = await self._playwright.chromium.launch(**launch_kwargs)

            context_kwargs: dict[str, Any] = {"viewport": self.viewport, "locale": self.locale}
            if self.user_agent:
                context_kwargs["user_agent"] = self.user_agent
            self._context = await self._browser.new_context(**context_kwargs)
            self._context.set_default_navigation_timeout(self.timeout * 1000)

            self._page = await self._context.new_page()
        except Exception as exc:
            self.logger.error(f"Browser launch failed: {exc}")
            await self.close()
            raise LaunchFailure(f"Browser launch failed: {exc}") from exc

        self.logger.info(f"Browser opened (headless={self.headless}, locale={self.locale})")
        return self

    async def close(self) -> None:
        page, context, browser, playwright = self._page, self._context, self._browser, self._playwright
        self._page = self._context = self._browser = self._playwright = None

        for name, resource, method in (
            ("page", page, "close"),
            ("context", context, "close"),
            ("browser", browser, "close"),
            ("playwright", playwright, "stop"),
        ):
            if resource is None:
                continue
            try:
                await getattr(resource, method)()
            except Exception as exc:
                self.logger.debug(f"Ignoring error while closing {name}: {exc}")

        if browser is not None:
            self.logger.info("Browser closed")

    async def goto(self, url: str, wait_until: str = "networkidle") -> None:
        try:
            await self.page.goto(url, wait_until=wait_until, timeout=self.timeout * 1000)
        except LaunchFailure:
            raise
        except Exception as exc:
            raise NavigationFailed(f"Navigation to {url} failed: {exc}", {"url": url}) from exc

    async def get_cookies(self) -> list[dict[str, Any]]:
        if self._context is None:
            return []
        return await self._context.cookies()

    async def add_cookies(self, cookies: list[dict[str, Any]]) -> None:
        if self._context is None:
            raise LaunchFailure("Browser session is not open")
        if cookies:
            await self._context.add_cookies(cookies)

    async def __aenter__(self) -> "BrowserSession":
        return await self.open()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.close()
        return False

