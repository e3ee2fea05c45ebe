"""
日志模块
Logging Module

loguru 封装：控制台写 stderr（stdout 留给 CLI 的 JSON），文件按大小轮转。
发布过程中的每条日志都带上当前商品 ID，便于在批量发布的日志里区分。
"""

import os
import sys
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from loguru import logger

_NO_DRAFT = "-"


class Logger:
    """
    日志管理类

    进程内单例，首次创建时根据环境变量配置输出；
    加载配置文件后由 Config 调用 configure() 按 app 段重新配置
    """

    _instance: Optional["Logger"] = None
    _lock = threading.Lock()
    _initialized: bool = False

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            with self._lock:
                if not self._initialized:
                    self._handler_ids: List[int] = []
                    self._settings: Optional[Tuple[str, str]] = None
                    # 去掉 loguru 默认的 stderr 输出
                    logger.remove()
                    logger.configure(extra={"draft": _NO_DRAFT})
                    self.configure()
                    Logger._initialized = True

    def configure(
        self,
        log_level: Optional[str] = None,
        logs_dir: Optional[str] = None,
        debug: Optional[bool] = None,
    ) -> None:
        """
        设置日志输出

        未传入的参数取 EASYVINTED_LOG_LEVEL / EASYVINTED_LOGS_DIR / EASYVINTED_DEBUG。
        只替换本类添加的输出，调用方自行添加的 sink 保持不变。
        """
        if debug is None:
            debug = os.getenv("EASYVINTED_DEBUG", "false").lower() == "true"
        level = "DEBUG" if debug else (log_level or os.getenv("EASYVINTED_LOG_LEVEL", "INFO")).upper()
        logs_path = Path(logs_dir or os.getenv("EASYVINTED_LOGS_DIR", "logs"))

        settings = (level, str(logs_path))
        if settings == self._settings:
            return

        logs_path.mkdir(parents=True, exist_ok=True)
        log_file = logs_path / f"publisher_{datetime.now():%Y%m%d_%H%M%S}.log"

        for handler_id in self._handler_ids:
            logger.remove(handler_id)

        console_id = logger.add(
            sys.stderr,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<magenta>{extra[draft]}</magenta> | "
                "<cyan>{message}</cyan>"
            ),
            level=level,
            colorize=True,
        )

        file_id = logger.add(
            str(log_file),
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[draft]} | {message}",
            level="DEBUG",
            rotation="10 MB",
            retention="7 days",
            compression="gz",
        )

        self._handler_ids = [console_id, file_id]
        self._settings = settings

    @contextmanager
    def for_draft(self, draft_id: Optional[str]) -> Iterator[None]:
        """在此范围内（包括其中 await 的协程）输出的日志都标记为该商品"""
        with logger.contextualize(draft=draft_id or _NO_DRAFT):
            yield

    def info(self, message: str, **kwargs) -> None:
        logger.info(message, **kwargs)

    def debug(self, message: str, **kwargs) -> None:
        logger.debug(message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        logger.error(message, **kwargs)

    def success(self, message: str, **kwargs) -> None:
        """发布、登录等关键步骤完成"""
        logger.success(message, **kwargs)


def get_logger(*_args, **_kwargs) -> Logger:
    """
    获取日志单例

    Returns:
        Logger实例
    """
    return Logger()
