"""
会话持久化
Session Store

把登录后的 Cookie 保存到固定路径的 JSON 文件，下次发布时复用。
会话只是缓存：读不到返回 None，写失败只记日志。
"""

from __future__ import annotations

import json
from pathlib import Path
from threading import Lock
from typing import Any

from easyvinted.core.logger import get_logger
from easyvinted.modules.session.models import Session


class SessionStore:
    """单写者的会话文件。"""

    def __init__(self, path: str | Path | None = None):
        if path is None:
            from easyvinted.core.config import get_config

            path = get_config().vinted.get("session_path", "playwright-state/vinted-session.json")

        self.path = Path(path)
        self.logger = get_logger()
        self._lock = Lock()

    def load(self) -> Session | None:
        """读取会话；文件不存在或无法解析时返回 None。"""
        with self._lock:
            if not self.path.exists():
                self.logger.info(f"No saved session at {self.path}, login will be required")
                return None
            try:
                raw = self.path.read_text(encoding="utf-8")
                session = Session.from_dict(json.loads(raw))
            except (OSError, TypeError, ValueError) as e:
                self.logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
                return None

        if not session.cookies:
            self.logger.info(f"Session file {self.path} holds no cookies")
            return None

        self.logger.info(f"Loaded session with {len(session.cookies)} cookies (saved {session.saved_at:%Y-%m-%d %H:%M})")
        return session

    def save(self, session: Session) -> bool:
        """写入会话；失败只记录日志。"""
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                temp_path = self.path.with_suffix(f"{self.path.suffix}.tmp")
                temp_path.write_text(json.dumps(session.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
                temp_path.replace(self.path)
            except (OSError, TypeError, ValueError) as e:
                self.logger.warning(f"Failed to save session to {self.path}: {e}")
                return False

        self.logger.success(f"Session saved to {self.path} ({len(session.cookies)} cookies)")
        return True

    def status(self) -> dict[str, Any]:
        """会话文件概况，不访问网络。"""
        session = self.load()
        return {
            "path": str(self.path),
            "exists": self.path.exists(),
            "valid": session is not None,
            "cookie_count": len(session.cookies) if session else 0,
            "saved_at": session.saved_at.isoformat() if session else None,
        }
