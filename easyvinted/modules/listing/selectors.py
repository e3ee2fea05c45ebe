"""
页面元素选择器
Vinted Selectors

每个逻辑字段对应一组按顺序尝试的定位策略。站点改版时只需修改这里。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class FieldAction(str, Enum):
    """定位成功后执行的动作"""
    FILL = "fill"
    SELECT = "select"
    SELECT_LABEL = "select_label"


@dataclass(frozen=True)
class LocatorStrategy:
    """一个CSS选择器及其动作"""
    selector: str
    action: FieldAction = FieldAction.FILL


@dataclass(frozen=True)
class FieldLocatorSpec:
    """逻辑字段 -> 有序定位策略"""
    name: str
    strategies: Tuple[LocatorStrategy, ...]

    @classmethod
    def of(cls, name: str, *selectors: str, action: FieldAction = FieldAction.FILL) -> "FieldLocatorSpec":
        return cls(name=name, strategies=tuple(LocatorStrategy(s, action) for s in selectors))

    @property
    def selectors(self) -> Tuple[str, ...]:
        return tuple(s.selector for s in self.strategies)


class VintedSelectors:
    """Vinted 页面元素选择器"""

    # 登录态
    AUTH_MARKER = '[data-testid="user-menu"]'

    # 登录页
    LOGIN_EMAIL = 'input[name="login"]'
    LOGIN_PASSWORD = 'input[name="password"]'
    LOGIN_SUBMIT = 'button[type="submit"]'

    # 图片上传
    FILE_INPUTS = (
        'input[type="file"][accept*="image"]',
        'input[type="file"]',
    )

    # 发布按钮（页面上最后一个 submit）
    SUBMIT_BUTTON = 'button[type="submit"]'

    TITLE = FieldLocatorSpec.of(
        "title",
        'input[name="title"]',
        'input[id*="title"]',
        'input[placeholder*="Titre"]',
    )
    DESCRIPTION = FieldLocatorSpec.of(
        "description",
        'textarea[name="description"]',
        'textarea[id*="description"]',
        'textarea[placeholder*="Description"]',
    )
    BRAND = FieldLocatorSpec.of(
        "brand",
        'input[name="brand"]',
        'input[id*="brand"]',
        'input[placeholder*="Marque"]',
    )
    CATEGORY = FieldLocatorSpec.of(
        "category",
        'select[name="catalog_id"]',
        'select[id*="catalog"]',
        'select[name="category"]',
        '[data-testid="category-select"]',
        action=FieldAction.SELECT_LABEL,
    )
    SUBCATEGORY = FieldLocatorSpec.of(
        "subcategory",
        'select[name="category_id"]',
        'select[id*="subcategory"]',
        '[data-testid="subcategory-select"]',
        action=FieldAction.SELECT_LABEL,
    )
    ITEM_TYPE = FieldLocatorSpec.of(
        "item_type",
        'select[name="item_type"]',
        'select[id*="item_type"]',
        '[data-testid="item-type-select"]',
        action=FieldAction.SELECT_LABEL,
    )
    SIZE = FieldLocatorSpec(
        name="size",
        strategies=(
            LocatorStrategy('input[name="size"]'),
            LocatorStrategy('select[name="size"]', FieldAction.SELECT),
            LocatorStrategy('input[id*="size"]'),
        ),
    )
    CONDITION = FieldLocatorSpec.of(
        "condition",
        'select[name="status"]',
        'select[id*="status"]',
        'select[name="item_status"]',
        action=FieldAction.SELECT,
    )
    COLOR = FieldLocatorSpec(
        name="color",
        strategies=(
            LocatorStrategy('input[name="color"]'),
            LocatorStrategy('select[name="color"]', FieldAction.SELECT),
            LocatorStrategy('input[id*="color"]'),
        ),
    )
    MATERIAL = FieldLocatorSpec(
        name="material",
        strategies=(
            LocatorStrategy('input[name="material"]'),
            LocatorStrategy('select[name="material"]', FieldAction.SELECT),
            LocatorStrategy('input[id*="material"]'),
        ),
    )
    PRICE = FieldLocatorSpec.of(
        "price",
        'input[name="price"]',
        'input[id*="price"]',
        'input[type="number"]',
    )
