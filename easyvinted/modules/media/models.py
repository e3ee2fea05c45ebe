"""
临时图片模型
Ephemeral Photo
"""

import secrets
import time
from dataclasses import dataclass
from pathlib import Path


def new_token() -> str:
    """时间戳 + 随机后缀，避免同一毫秒内的文件名冲突"""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}"


@dataclass(frozen=True)
class EphemeralPhoto:
    """远程图片的本地临时副本"""
    path: Path
    source_url: str
    token: str

    def to_dict(self):
        return {
            "path": str(self.path),
            "source_url": self.source_url,
            "token": self.token,
        }
