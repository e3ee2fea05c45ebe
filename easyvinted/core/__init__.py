"""
核心模块
Core Module

提供配置管理、日志系统、浏览器会话等基础能力
"""

from .browser import BrowserSession
from .config import Config, get_config
from .logger import Logger, get_logger

__all__ = ["BrowserSession", "Config", "Logger", "get_config", "get_logger"]
