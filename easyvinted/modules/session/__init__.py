"""
会话模块
Session Module

登录 Cookie 的持久化与复用
"""

from .models import Session
from .store import SessionStore

__all__ = ["Session", "SessionStore"]
