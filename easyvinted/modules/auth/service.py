"""
登录服务
Authentication Flow

Unknown -> Checking -> Authenticated / Unauthenticated -> LoggingIn -> Authenticated / Failed

登录态只通过访问站点首页、查找用户菜单节点判断，本地不计算过期时间。
"""

from __future__ import annotations

import asyncio
import weakref
from typing import Any

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from easyvinted.core.browser import BrowserSession
from easyvinted.core.error_handler import AuthenticationFailed, NavigationFailed
from easyvinted.core.logger import get_logger
from easyvinted.modules.listing.models import Credentials
from easyvinted.modules.listing.selectors import VintedSelectors
from easyvinted.modules.session.models import Session
from easyvinted.modules.session.store import SessionStore

# 每个事件循环同一时间只允许一个登录流程，避免并发覆盖会话文件
_LOGIN_LOCKS: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock]" = weakref.WeakKeyDictionary()

LOGIN_FORM_TIMEOUT_MS = 10000


def _login_lock() -> asyncio.Lock:
    loop = asyncio.get_running_loop()
    lock = _LOGIN_LOCKS.get(loop)
    if lock is None:
        lock = _LOGIN_LOCKS[loop] = asyncio.Lock()
    return lock


class AuthService:
    """
    登录服务

    负责恢复会话、检测登录态、账号密码登录并保存会话
    """

    def __init__(
        self,
        store: SessionStore | None = None,
        config: dict[str, Any] | None = None,
        selectors: VintedSelectors | None = None,
    ):
        if config is None:
            from easyvinted.core.config import get_config

            config = get_config().vinted

        self.logger = get_logger()
        self.store = store or SessionStore(config.get("session_path"))
        self.selectors = selectors or VintedSelectors()
        self.base_url = str(config.get("base_url", "https://www.vinted.fr")).rstrip("/")
        self.login_url = f"{self.base_url}{config.get('login_path', '/member/login')}"
        self.auth_marker = str(config.get("auth_marker") or self.selectors.AUTH_MARKER)

    async def restore_session(self, browser: BrowserSession) -> Session | None:
        """把已保存的 Cookie 注入浏览器上下文"""
        session = self.store.load()
        if session is None or not await self._inject(browser, session):
            return None
        return session

    async def _inject(self, browser: BrowserSession, session: Session) -> bool:
        """浏览器拒绝的 Cookie 按无会话处理"""
        try:
            await browser.add_cookies(session.cookies)
        except PlaywrightError as e:
            self.logger.warning(f"Stored session rejected by the browser, login will be required: {e}")
            return False
        return True

    async def check_authenticated(self, browser: BrowserSession) -> bool:
        """访问首页检测登录标记；任何异常都视为未登录"""
        self.logger.info("Checking authentication status...")
        try:
            await browser.goto(self.base_url)
            logged_in = await self.marker_present(browser.page)
        except (NavigationFailed, PlaywrightError) as e:
            self.logger.warning(f"Authentication check failed, assuming logged out: {e}")
            return False

        if logged_in:
            self.logger.info("Already authenticated")
        else:
            self.logger.info("Not authenticated")
        return logged_in

    async def login(self, browser: BrowserSession, credentials: Credentials) -> None:
        """
        账号密码登录，成功后立即保存会话

        Raises:
            AuthenticationFailed: 提交后仍未出现登录标记
        """
        self.logger.info(f"Logging in as {credentials.email}...")
        password = credentials.plain_password
        page = browser.page
        s = self.selectors

        try:
            await browser.goto(self.login_url)
            await page.wait_for_selector(s.LOGIN_EMAIL, timeout=LOGIN_FORM_TIMEOUT_MS)
            await page.fill(s.LOGIN_EMAIL, credentials.email)
            await page.fill(s.LOGIN_PASSWORD, password)
            await page.click(s.LOGIN_SUBMIT)
            await page.wait_for_load_state("networkidle", timeout=browser.timeout * 1000)
        except (NavigationFailed, PlaywrightError) as e:
            raise AuthenticationFailed(f"Login flow failed: {e}", {"email": credentials.email}) from e

        try:
            logged_in = await self.marker_present(page)
        except PlaywrightError as e:
            self.logger.debug(f"Marker check after login failed: {e}")
            logged_in = False

        if not logged_in:
            raise AuthenticationFailed(
                "Login failed - please check credentials", {"email": credentials.email}
            )

        self.logger.success("Successfully logged in")
        cookies = await browser.get_cookies()
        self.store.save(Session(cookies=cookies))

    async def login_once(
        self, browser: BrowserSession, credentials: Credentials, known: Session | None = None
    ) -> bool:
        """
        串行登录

        等锁期间若其他发布已写入更新的会话，先复用它再决定是否登录。

        Returns:
            是否实际执行了登录
        """
        async with _login_lock():
            latest = self.store.load()
            if latest is not None and (known is None or latest.saved_at > known.saved_at):
                self.logger.info("A newer session was saved meanwhile, reusing it")
                if await self._inject(browser, latest) and await self.check_authenticated(browser):
                    return False

            await self.login(browser, credentials)
            return True

    async def ensure_authenticated(self, browser: BrowserSession, credentials: Credentials) -> bool:
        """
        恢复会话并在需要时登录

        Returns:
            是否执行了登录
        """
        known = await self.restore_session(browser)
        if await self.check_authenticated(browser):
            return False
        return await self.login_once(browser, credentials, known=known)

    async def marker_present(self, page: Page) -> bool:
        return await page.locator(self.auth_marker).count() > 0
