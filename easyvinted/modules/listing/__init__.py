"""
商品表单模块
Listing Module

商品数据模型、页面选择器与表单填写
"""

from .form import ListingFormFiller
from .locator import FieldLocator
from .models import Condition, Credentials, ListingDraft, PublishResult
from .selectors import FieldAction, FieldLocatorSpec, LocatorStrategy, VintedSelectors
from .state import PublishStage

__all__ = [
    "Condition",
    "Credentials",
    "FieldAction",
    "FieldLocator",
    "FieldLocatorSpec",
    "ListingDraft",
    "ListingFormFiller",
    "LocatorStrategy",
    "PublishResult",
    "PublishStage",
    "VintedSelectors",
]
