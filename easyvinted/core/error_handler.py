"""
统一异常处理模块
Unified Error Handling

发布流程的异常体系与重试装饰器
"""

import asyncio
import inspect
import time
from functools import wraps
from typing import Any, Callable, Dict, Optional

from easyvinted.core.logger import get_logger


def retry(max_attempts: int = 3, delay: float = 1.0,
          backoff_factor: float = 2.0,
          exceptions: tuple = (Exception,)):
    """
    重试装饰器

    Args:
        max_attempts: 最大尝试次数
        delay: 初始延迟时间（秒）
        backoff_factor: 退避因子
        exceptions: 需要重试的异常类型
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            logger = get_logger()

            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_attempts - 1:
                        logger.error(f"Final attempt failed for {func.__name__}: {e}")
                        raise

                    wait_time = delay * (backoff_factor ** attempt)
                    logger.warning(
                        f"Attempt {attempt + 1} failed for {func.__name__}: {e}. "
                        f"Retrying in {wait_time:.1f}s..."
                    )
                    await asyncio.sleep(wait_time)

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            logger = get_logger()

            for attempt in range(max_attempts):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_attempts - 1:
                        logger.error(f"Final attempt failed for {func.__name__}: {e}")
                        raise

                    wait_time = delay * (backoff_factor ** attempt)
                    logger.warning(
                        f"Attempt {attempt + 1} failed for {func.__name__}: {e}. "
                        f"Retrying in {wait_time:.1f}s..."
                    )
                    time.sleep(wait_time)

        return async_wrapper if inspect.iscoroutinefunction(func) else sync_wrapper
    return decorator


class PublisherError(Exception):
    """基础异常类"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ConfigError(PublisherError):
    """配置错误"""
    pass


class LaunchFailure(PublisherError):
    """浏览器进程无法启动"""
    pass


class NavigationFailed(PublisherError):
    """页面导航失败"""
    pass


class AuthenticationFailed(PublisherError):
    """登录提交后仍未出现登录标记"""
    pass


class PhotoDownloadFailed(PublisherError):
    """远程图片下载失败"""
    pass


class PhotoUploadFailed(PublisherError):
    """页面未接受上传的图片"""
    pass


class FormFillFailed(PublisherError):
    """必填字段无法定位"""
    pass


class SubmissionFailed(PublisherError):
    """提交后未跳转到商品页面"""
    pass
