"""
商品数据模型
Listing Models

定义发布流程的输入（ListingDraft、Credentials）与输出（PublishResult）
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from easyvinted.core.crypto import ensure_decrypted

_CENT = Decimal("0.01")


class Condition(str, Enum):
    """商品成色代码"""
    NEW_WITH_TAGS = "new_with_tags"
    NEW_WITHOUT_TAGS = "new_without_tags"
    VERY_GOOD = "very_good"
    GOOD = "good"
    SATISFACTORY = "satisfactory"

    @classmethod
    def parse(cls, value: Any) -> "Condition":
        if isinstance(value, cls):
            return value
        code = str(value or "").strip().lower()
        aliases = {
            "new_with_tag": cls.NEW_WITH_TAGS,
            "new_without_tag": cls.NEW_WITHOUT_TAGS,
        }
        if code in aliases:
            return aliases[code]
        try:
            return cls(code)
        except ValueError:
            valid = [c.value for c in cls]
            raise ValueError(f"condition must be one of {valid}, got {value!r}") from None


def to_price(value: Any) -> Decimal:
    """转为两位小数的价格（四舍五入）"""
    try:
        price = Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise ValueError(f"price is not a number: {value!r}") from None
    if not price.is_finite() or price <= 0:
        raise ValueError(f"price must be positive, got {value!r}")
    return price


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class ListingDraft:
    """一次发布的商品信息（只读）"""
    title: str
    price: Decimal
    condition: Condition
    photos: Tuple[str, ...] = ()
    description: Optional[str] = None
    brand: Optional[str] = None
    size: Optional[str] = None
    color: Optional[str] = None
    material: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    item_type: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self):
        title = str(self.title or "").strip()
        if not title:
            raise ValueError("title is required")
        object.__setattr__(self, "title", title)
        object.__setattr__(self, "price", to_price(self.price))
        object.__setattr__(self, "condition", Condition.parse(self.condition))

        photos = self.photos
        if isinstance(photos, str):
            photos = [photos]
        object.__setattr__(self, "photos", tuple(str(p).strip() for p in photos or () if str(p).strip()))

        for name in ("description", "brand", "size", "color", "material",
                     "category", "subcategory", "item_type", "id"):
            object.__setattr__(self, name, _optional_text(getattr(self, name)))

    @property
    def formatted_price(self) -> str:
        return f"{self.price:.2f}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ListingDraft":
        """从文章记录创建（兼容 main_category / item_category 字段名）"""
        return cls(
            id=data.get("id"),
            title=data.get("title", ""),
            description=data.get("description"),
            brand=data.get("brand"),
            size=data.get("size"),
            condition=data.get("condition", ""),
            color=data.get("color"),
            material=data.get("material"),
            category=data.get("category", data.get("main_category")),
            subcategory=data.get("subcategory"),
            item_type=data.get("item_type", data.get("item_category")),
            price=data.get("price"),
            photos=data.get("photos") or (),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "brand": self.brand,
            "size": self.size,
            "condition": self.condition.value,
            "color": self.color,
            "material": self.material,
            "category": self.category,
            "subcategory": self.subcategory,
            "item_type": self.item_type,
            "price": self.formatted_price,
            "photos": list(self.photos),
        }


@dataclass(frozen=True)
class Credentials:
    """平台登录凭据；密码可为密文（见 core.crypto）"""
    email: str
    password: str = field(repr=False)

    def __post_init__(self):
        if not str(self.email or "").strip() or not self.password:
            raise ValueError("email and password are required")

    @property
    def plain_password(self) -> str:
        return ensure_decrypted(self.password)


@dataclass
class PublishResult:
    """发布结果"""
    success: bool
    listing_url: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    stage: Optional[str] = None
    draft_id: Optional[str] = None
    missing_fields: Tuple[str, ...] = ()
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def ok(cls, listing_url: str, draft_id: Optional[str] = None,
           missing_fields: Tuple[str, ...] = ()) -> "PublishResult":
        return cls(success=True, listing_url=listing_url, draft_id=draft_id,
                   missing_fields=tuple(missing_fields))

    @classmethod
    def failed(cls, error: BaseException, stage: str, draft_id: Optional[str] = None,
               missing_fields: Tuple[str, ...] = ()) -> "PublishResult":
        return cls(
            success=False,
            error=str(error) or error.__class__.__name__,
            error_type=error.__class__.__name__,
            stage=stage,
            draft_id=draft_id,
            missing_fields=tuple(missing_fields),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "listing_url": self.listing_url,
            "error": self.error,
            "error_type": self.error_type,
            "stage": self.stage,
            "draft_id": self.draft_id,
            "missing_fields": list(self.missing_fields),
            "timestamp": self.timestamp.isoformat(),
        }
