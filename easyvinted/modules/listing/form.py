"""
发布表单填写
Listing Form Filler

字段顺序固定：分类选择会刷新子分类列表，所以子分类必须在分类之后并等待页面稳定。
"""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional

from playwright.async_api import Page

from easyvinted.core.error_handler import FormFillFailed
from easyvinted.core.logger import get_logger
from easyvinted.modules.listing.locator import FieldLocator
from easyvinted.modules.listing.models import ListingDraft
from easyvinted.modules.listing.selectors import FieldLocatorSpec, VintedSelectors


class ListingFormFiller:
    """
    发布表单填写

    除成色外所有字段未命中时跳过并记录；成色缺失按 strict_condition 处理。
    """

    def __init__(
        self,
        locator: FieldLocator | None = None,
        config: dict[str, Any] | None = None,
        selectors: VintedSelectors | None = None,
    ):
        if config is None:
            from easyvinted.core.config import get_config

            config = get_config().publish

        self.logger = get_logger()
        self.locator = locator or FieldLocator()
        self.selectors = selectors or VintedSelectors()
        self.category_settle_seconds = float(config.get("category_settle_seconds", 1.0))
        self.strict_condition = bool(config.get("strict_condition", True))

    async def fill(self, page: Page, draft: ListingDraft) -> List[str]:
        """
        填写整张表单

        Args:
            page: 发布页
            draft: 商品信息

        Returns:
            被跳过的字段名（按填写顺序）

        Raises:
            FormFillFailed: strict_condition 开启且成色字段无法定位
        """
        s = self.selectors
        missing: List[str] = []

        self.logger.info("Filling listing form...")

        await self._fill_optional(page, s.TITLE, draft.title, missing)
        await self._fill_optional(page, s.DESCRIPTION, draft.description, missing)
        await self._fill_optional(page, s.BRAND, draft.brand, missing)
        await self._fill_optional(page, s.CATEGORY, draft.category, missing)

        if draft.subcategory:
            await self._settle()
            await self._fill_optional(page, s.SUBCATEGORY, draft.subcategory, missing)
        if draft.item_type:
            await self._settle()
            await self._fill_optional(page, s.ITEM_TYPE, draft.item_type, missing)

        await self._fill_optional(page, s.SIZE, draft.size, missing)

        if not await self.locator.apply(page, s.CONDITION, draft.condition.value):
            if self.strict_condition:
                raise FormFillFailed(
                    "Mandatory field 'condition' could not be located",
                    {"field": "condition", "selectors": list(s.CONDITION.selectors), "missing_fields": missing},
                )
            missing.append(s.CONDITION.name)

        await self._fill_optional(page, s.COLOR, draft.color, missing)
        await self._fill_optional(page, s.MATERIAL, draft.material, missing)
        await self._fill_optional(page, s.PRICE, draft.formatted_price, missing)

        if missing:
            self.logger.warning(f"Form filled with skipped fields: {', '.join(missing)}")
        else:
            self.logger.success("Form filled")
        return missing

    async def _fill_optional(
        self, page: Page, spec: FieldLocatorSpec, value: Optional[str], missing: List[str]
    ) -> None:
        if not value:
            return
        if not await self.locator.apply(page, spec, value):
            missing.append(spec.name)

    async def _settle(self) -> None:
        if self.category_settle_seconds > 0:
            await asyncio.sleep(self.category_settle_seconds)
