"""
配置管理模块
Configuration Management Module

提供YAML配置加载、环境变量管理、配置验证等功能
"""

import os
import threading
from functools import lru_cache
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from easyvinted.core.config_models import ConfigModel
from easyvinted.core.error_handler import ConfigError
from easyvinted.core.logger import get_logger


class Config:
    """
    配置管理类

    负责加载和管理应用程序的配置，支持YAML配置文件和环境变量
    """

    _instance: Optional["Config"] = None
    _lock = threading.Lock()
    _config: Dict[str, Any] = {}
    _config_path: Optional[str] = None

    def __new__(cls, config_path: Optional[str] = None):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None):
        if not hasattr(self, '_initialized') or not self._initialized:
            self.logger = get_logger()
            self._load_config(config_path)
            self._initialized = True
        elif config_path and config_path != self._config_path:
            self.reload(config_path)

    def _load_config(self, config_path: Optional[str] = None) -> None:
        """
        加载配置文件

        Args:
            config_path: 配置文件路径，不指定则使用默认路径
        """
        if config_path is None:
            config_path = self._find_config_file()

        self._config_path = config_path
        self._load_env_file()

        raw: Dict[str, Any] = {}
        if config_path and os.path.exists(config_path):
            raw = self._load_yaml_config(config_path)

        raw = self._resolve_dict(raw)
        self._apply_env_overrides(raw)

        try:
            self._config = ConfigModel.from_dict(raw).to_dict()
            self.logger.debug(f"Config validation passed: {config_path}")
        except ValidationError as e:
            self.logger.error(f"Config validation failed: {e}")
            raise ConfigError(f"Invalid configuration: {e}")

        app = self._config.get("app", {})
        self.logger.configure(
            log_level=app.get("log_level"),
            logs_dir=app.get("logs_dir"),
            debug=app.get("debug"),
        )

    def _find_config_file(self) -> Optional[str]:
        """
        查找配置文件

        优先级: config/config.yaml > config/config.example.yaml
        """
        possible_paths = [
            "config/config.yaml",
            "config/config.example.yaml",
        ]
        for path in possible_paths:
            if os.path.exists(path):
                return path
        return None

    def _load_yaml_config(self, config_path: str) -> Dict[str, Any]:
        """
        加载YAML配置文件
        """
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            self.logger.error(f"Invalid YAML in config file: {e}")
            raise ConfigError(f"Invalid YAML: {e}")

        if not isinstance(data, dict):
            raise ConfigError(f"Config root must be a mapping: {config_path}")
        return data

    def _load_env_file(self) -> None:
        """
        加载.env环境变量文件
        """
        env_files = [
            ".env",
            "config/.env",
        ]
        for env_file in env_files:
            if os.path.exists(env_file):
                load_dotenv(env_file, override=False)
                break

    def _resolve_dict(self, obj: Any) -> Any:
        """
        递归解析字典中的环境变量引用

        将配置中的 ${VAR_NAME} 替换为实际的环境变量值
        """
        if isinstance(obj, dict):
            return {key: self._resolve_dict(value) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [self._resolve_dict(item) for item in obj]
        elif isinstance(obj, str) and obj.startswith("${") and obj.endswith("}"):
            env_key = obj[2:-1]
            value = os.getenv(env_key)
            if value is None:
                self.logger.warning(f"Environment variable {env_key} not found, using placeholder")
                return obj
            return value
        return obj

    def _apply_env_overrides(self, raw: Dict[str, Any]) -> None:
        """环境变量优先于配置文件"""
        if session_path := os.getenv("VINTED_SESSION_PATH", "").strip():
            raw.setdefault("vinted", {})["session_path"] = session_path
        if headless := os.getenv("HEADLESS", "").strip():
            raw.setdefault("browser", {})["headless"] = headless.lower() != "false"
        if log_level := os.getenv("EASYVINTED_LOG_LEVEL", "").strip():
            raw.setdefault("app", {})["log_level"] = log_level.upper()
        if logs_dir := os.getenv("EASYVINTED_LOGS_DIR", "").strip():
            raw.setdefault("app", {})["logs_dir"] = logs_dir
        if debug := os.getenv("EASYVINTED_DEBUG", "").strip():
            raw.setdefault("app", {})["debug"] = debug.lower() == "true"

    def get(self, key: str, default: Any = None) -> Any:
        """
        获取配置值

        Args:
            key: 配置键，支持点号分隔的路径，如 "vinted.base_url"
            default: 默认值

        Returns:
            配置值
        """
        value = self._config
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def get_section(self, section: str, default: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        获取配置段落

        Args:
            section: 段落名称
            default: 默认值

        Returns:
            配置段落字典
        """
        return self._config.get(section, default or {})

    @property
    def app(self) -> Dict[str, Any]:
        """应用配置"""
        return self.get_section("app")

    @property
    def vinted(self) -> Dict[str, Any]:
        """站点配置"""
        return self.get_section("vinted")

    @property
    def browser(self) -> Dict[str, Any]:
        """浏览器配置"""
        return self.get_section("browser")

    @property
    def locator(self) -> Dict[str, Any]:
        """字段定位配置"""
        return self.get_section("locator")

    @property
    def media(self) -> Dict[str, Any]:
        """图片传输配置"""
        return self.get_section("media")

    @property
    def publish(self) -> Dict[str, Any]:
        """发布流程配置"""
        return self.get_section("publish")

    def reload(self, config_path: Optional[str] = None) -> None:
        """
        重新加载配置

        Args:
            config_path: 新的配置文件路径
        """
        self._config = {}
        self._load_config(config_path or self._config_path)


@lru_cache(maxsize=1)
def get_config(config_path: Optional[str] = None) -> Config:
    """
    获取配置单例

    Args:
        config_path: 配置文件路径

    Returns:
        Config实例
    """
    return Config(config_path)
