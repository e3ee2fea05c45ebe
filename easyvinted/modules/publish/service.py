"""
发布编排服务
Publish Orchestrator

打开浏览器 -> 确认登录 -> 进入发布页 -> 传图 -> 填表 -> 提交 -> 读取商品链接

任何阶段失败都先清理临时图片，再返回失败的 PublishResult，异常不会抛给调用方。
浏览器由调用方关闭，同一个 BrowserSession 可以连续发布多个商品。
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional

from playwright.async_api import Error as PlaywrightError

from easyvinted.core.browser import BrowserSession
from easyvinted.core.error_handler import PublisherError, SubmissionFailed
from easyvinted.core.logger import get_logger
from easyvinted.modules.auth.service import AuthService
from easyvinted.modules.listing.form import ListingFormFiller
from easyvinted.modules.listing.models import Credentials, ListingDraft, PublishResult
from easyvinted.modules.listing.selectors import VintedSelectors
from easyvinted.modules.listing.state import PublishStage, can_transition
from easyvinted.modules.media.models import EphemeralPhoto
from easyvinted.modules.media.service import PhotoTransferPipeline


@dataclass
class PublishAttempt:
    """单次发布的运行状态"""
    draft: ListingDraft
    credentials: Credentials
    stage: str = PublishStage.INIT
    target: str = PublishStage.INIT
    history: List[str] = field(default_factory=lambda: [PublishStage.INIT])
    photos: List[EphemeralPhoto] = field(default_factory=list)
    missing_fields: List[str] = field(default_factory=list)
    listing_url: Optional[str] = None
    logged_in: bool = False


class PublishOrchestrator:
    """
    发布编排

    按固定顺序推进状态机，失败时记录所在阶段
    """

    def __init__(
        self,
        browser: BrowserSession,
        auth: AuthService | None = None,
        photos: PhotoTransferPipeline | None = None,
        form: ListingFormFiller | None = None,
        config: dict[str, Any] | None = None,
        site_config: dict[str, Any] | None = None,
    ):
        if config is None or site_config is None:
            from easyvinted.core.config import get_config

            app_config = get_config()
            config = config if config is not None else app_config.publish
            site_config = site_config if site_config is not None else app_config.vinted

        self.logger = get_logger()
        self.browser = browser
        self.auth = auth or AuthService(config=site_config)
        self.photos = photos or PhotoTransferPipeline()
        self.form = form or ListingFormFiller()
        self.selectors = VintedSelectors()

        base_url = str(site_config.get("base_url", "https://www.vinted.fr")).rstrip("/")
        self.new_item_url = f"{base_url}{site_config.get('new_item_path', '/items/new')}"
        self.listing_url_re = re.compile(site_config.get("listing_url_regex", r"/items/\d+"))

        self.submit_timeout = float(config.get("submit_timeout", 30))
        self.page_settle_seconds = float(config.get("page_settle_seconds", 2.0))
        self.post_submit_seconds = float(config.get("post_submit_seconds", 2.0))

        self.last_attempt: PublishAttempt | None = None

    async def publish(self, draft: ListingDraft, credentials: Credentials) -> PublishResult:
        """
        发布单个商品

        Args:
            draft: 商品信息
            credentials: 平台账号

        Returns:
            发布结果（成功时带商品链接，失败时带阶段与原因）
        """
        attempt = PublishAttempt(draft=draft, credentials=credentials)
        self.last_attempt = attempt
        with self.logger.for_draft(draft.id):
            return await self._run(attempt)

    async def _run(self, attempt: PublishAttempt) -> PublishResult:
        draft = attempt.draft
        self.logger.info(f"Publishing: {draft.title}")

        steps: List[tuple[str, Callable[[PublishAttempt], Awaitable[None]]]] = [
            (PublishStage.BROWSER_OPEN, self._step_open_browser),
            (PublishStage.AUTH_CHECKED, self._step_authenticate),
            (PublishStage.ON_CREATION_PAGE, self._step_navigate_to_creation_page),
            (PublishStage.PHOTOS_TRANSFERRED, self._step_transfer_photos),
            (PublishStage.FORM_FILLED, self._step_fill_form),
            (PublishStage.SUBMITTED, self._step_submit),
            (PublishStage.URL_CAPTURED, self._step_capture_url),
        ]

        error: Exception | None = None
        async with self.photos.scope() as photos:
            attempt.photos = photos
            try:
                for target, step in steps:
                    attempt.target = target
                    await step(attempt)
                    self._transition(attempt, attempt.target)
            except PublisherError as e:
                error = e
            except Exception as e:
                self.logger.error(f"Unexpected {type(e).__name__} while entering '{attempt.target}'")
                error = e

        if error is None:
            self._transition(attempt, PublishStage.DONE)
            self.logger.success(f"Listing published: {attempt.listing_url}")
            return PublishResult.ok(
                attempt.listing_url, draft_id=draft.id, missing_fields=tuple(attempt.missing_fields)
            )

        failed_stage = attempt.target
        self._transition(attempt, PublishStage.FAILED)
        self.logger.error(f"Failed to publish '{draft.title}' at {failed_stage}: {error}")
        return PublishResult.failed(
            error, stage=failed_stage, draft_id=draft.id, missing_fields=tuple(attempt.missing_fields)
        )

    def _transition(self, attempt: PublishAttempt, target: str) -> None:
        if attempt.stage == target:
            return
        if not can_transition(attempt.stage, target):
            raise PublisherError(f"Invalid publish transition: {attempt.stage} -> {target}")
        self.logger.debug(f"Publish stage: {attempt.stage} -> {target}")
        attempt.stage = target
        attempt.history.append(target)

    async def _step_open_browser(self, attempt: PublishAttempt) -> None:
        await self.browser.open()

    async def _step_authenticate(self, attempt: PublishAttempt) -> None:
        known = await self.auth.restore_session(self.browser)
        if await self.auth.check_authenticated(self.browser):
            return

        self._transition(attempt, PublishStage.AUTH_CHECKED)
        attempt.target = PublishStage.LOGGING_IN
        attempt.logged_in = await self.auth.login_once(self.browser, attempt.credentials, known=known)

    async def _step_navigate_to_creation_page(self, attempt: PublishAttempt) -> None:
        self.logger.info("Navigating to new item page...")
        await self.browser.goto(self.new_item_url)
        if self.page_settle_seconds > 0:
            await asyncio.sleep(self.page_settle_seconds)

    async def _step_transfer_photos(self, attempt: PublishAttempt) -> None:
        await self.photos.download_all(attempt.draft.photos, into=attempt.photos)
        await self.photos.upload(self.browser.page, attempt.photos)

    async def _step_fill_form(self, attempt: PublishAttempt) -> None:
        try:
            attempt.missing_fields = await self.form.fill(self.browser.page, attempt.draft)
        except PublisherError as e:
            attempt.missing_fields = list(e.details.get("missing_fields", []))
            raise

    async def _step_submit(self, attempt: PublishAttempt) -> None:
        self.logger.info("Submitting listing...")
        try:
            await self.browser.page.locator(self.selectors.SUBMIT_BUTTON).last.click()
        except PlaywrightError as e:
            raise SubmissionFailed(f"Submit button could not be clicked: {e}") from e

    async def _step_capture_url(self, attempt: PublishAttempt) -> None:
        page = self.browser.page
        try:
            await page.wait_for_url(self._is_listing_url, timeout=self.submit_timeout * 1000)
        except PlaywrightError as e:
            raise SubmissionFailed(
                f"Listing page did not appear within {self.submit_timeout:.0f}s after submit",
                {"url": page.url},
            ) from e

        attempt.listing_url = page.url
        self.logger.info(f"Listing submitted: {attempt.listing_url}")
        if self.post_submit_seconds > 0:
            await asyncio.sleep(self.post_submit_seconds)

    def _is_listing_url(self, url: str) -> bool:
        return bool(self.listing_url_re.search(url))


async def publish_listing(
    draft: ListingDraft,
    credentials: Credentials,
    headless: bool | None = None,
) -> PublishResult:
    """独立的一次发布：自行打开并关闭浏览器"""
    browser = BrowserSession(headless=headless)
    try:
        return await PublishOrchestrator(browser).publish(draft, credentials)
    finally:
        await browser.close()
