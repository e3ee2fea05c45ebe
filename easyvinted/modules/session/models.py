"""
会话数据模型
Session Models
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List


def _is_cookie(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and isinstance(value.get("name"), str)
        and bool(value["name"])
        and isinstance(value.get("value"), str)
    )


@dataclass
class Session:
    """浏览器 Cookie 集合及保存时间"""
    cookies: List[Dict[str, Any]]
    saved_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cookies": self.cookies,
            "saved_at": self.saved_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Session":
        if not isinstance(data, dict):
            raise ValueError("session root must be an object")
        cookies = data.get("cookies")
        if not isinstance(cookies, list):
            raise ValueError("'cookies' must be a list of objects")
        if not all(_is_cookie(c) for c in cookies):
            raise ValueError("every cookie needs a string 'name' and 'value'")

        saved_at_raw = data.get("saved_at")
        if not saved_at_raw:
            saved_at = datetime.fromtimestamp(0)
        elif isinstance(saved_at_raw, str):
            saved_at = datetime.fromisoformat(saved_at_raw)
        else:
            raise ValueError(f"'saved_at' must be an ISO timestamp, got {saved_at_raw!r}")
        return cls(cookies=cookies, saved_at=saved_at)
