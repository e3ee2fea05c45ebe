"""
字段定位器
Resilient Field Locator

按顺序尝试字段的定位策略：第一个可见元素执行动作后立即返回；
全部未命中时只记录警告，由调用方继续下一个字段。
"""

from __future__ import annotations

import asyncio
from typing import Any, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page

from easyvinted.core.logger import get_logger
from easyvinted.modules.listing.selectors import FieldAction, FieldLocatorSpec


class FieldLocator:
    """多选择器容错的表单字段操作"""

    def __init__(self, config: dict[str, Any] | None = None):
        if config is None:
            from easyvinted.core.config import get_config

            config = get_config().locator

        self.logger = get_logger()
        self.config = config
        self.visibility_timeout_ms = int(self.config.get("visibility_timeout_ms", 2000))
        self.settle_delay = float(self.config.get("settle_delay", 0.5))

    async def fill(self, page: Page, selectors: Sequence[str], value: str, field: str = "field") -> bool:
        return await self.apply(page, FieldLocatorSpec.of(field, *selectors), value)

    async def select(
        self,
        page: Page,
        selectors: Sequence[str],
        value: str,
        field: str = "field",
        by_label: bool = False,
    ) -> bool:
        action = FieldAction.SELECT_LABEL if by_label else FieldAction.SELECT
        return await self.apply(page, FieldLocatorSpec.of(field, *selectors, action=action), value)

    async def apply(self, page: Page, spec: FieldLocatorSpec, value: str) -> bool:
        """
        对字段执行第一个可用策略

        Returns:
            是否有策略命中
        """
        for strategy in spec.strategies:
            element = page.locator(strategy.selector).first
            if not await self._is_visible(element):
                self.logger.debug(f"[{spec.name}] not visible: {strategy.selector}")
                continue
            if not await self._perform(element, strategy.action, value, spec.name, strategy.selector):
                continue

            self.logger.debug(f"[{spec.name}] set via {strategy.selector}")
            if self.settle_delay > 0:
                await asyncio.sleep(self.settle_delay)
            return True

        self.logger.warning(f"Field '{spec.name}' not found, skipped (tried: {', '.join(spec.selectors)})")
        return False

    async def _is_visible(self, element: Locator) -> bool:
        try:
            await element.wait_for(state="visible", timeout=self.visibility_timeout_ms)
            return True
        except PlaywrightError:
            return False

    async def _perform(self, element: Locator, action: FieldAction, value: str, field: str, selector: str) -> bool:
        try:
            if action is FieldAction.FILL:
                await element.fill(value)
            elif action is FieldAction.SELECT:
                await element.select_option(value)
            else:
                await element.select_option(label=value)
            return True
        except PlaywrightError as e:
            self.logger.debug(f"[{field}] {action.value} failed on {selector}: {e}")
            return False
