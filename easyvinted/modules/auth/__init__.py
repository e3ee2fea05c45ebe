"""
登录模块
Authentication Module
"""

from .service import AuthService

__all__ = ["AuthService"]
