"""
配置模型与验证
Configuration Models and Validation

使用Pydantic进行配置验证
"""

from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class AppConfig(BaseModel):
    """应用配置模型"""
    name: str = Field(default="easyvinted-publisher", description="应用名称")
    version: str = Field(default="1.0.0", description="版本号")
    debug: bool = Field(default=False, description="调试模式")
    log_level: str = Field(default="INFO", description="日志级别")
    logs_dir: str = Field(default="logs", description="日志目录")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """验证日志级别"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}, got {v}")
        return v


class VintedConfig(BaseModel):
    """目标站点配置模型"""
    base_url: str = Field(default="https://www.vinted.fr", description="站点首页")
    login_path: str = Field(default="/member/login", description="登录页路径")
    new_item_path: str = Field(default="/items/new", description="发布页路径")
    listing_url_regex: str = Field(default=r"/items/\d+", description="商品页URL正则")
    auth_marker: str = Field(default='[data-testid="user-menu"]', description="登录态标记元素")
    session_path: str = Field(default="playwright-state/vinted-session.json", description="会话文件路径")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")


class BrowserConfig(BaseModel):
    """浏览器配置模型"""
    headless: bool = Field(default=True, description="是否无头模式")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="用户代理")
    locale: str = Field(default="fr-FR", description="浏览器语言")
    viewport: Dict[str, int] = Field(
        default={"width": 1280, "height": 720},
        description="视口大小"
    )
    slow_mo: int = Field(default=100, ge=0, le=5000, description="操作放慢（毫秒）")
    navigation_timeout: int = Field(default=30, ge=1, le=300, description="导航超时时间（秒）")


class LocatorConfig(BaseModel):
    """字段定位配置模型"""
    visibility_timeout_ms: int = Field(default=2000, ge=0, le=30000, description="单个选择器可见性等待（毫秒）")
    settle_delay: float = Field(default=0.5, ge=0.0, le=10.0, description="填写后的等待（秒）")


class MediaConfig(BaseModel):
    """图片传输配置模型"""
    temp_dir: str = Field(default="", description="临时目录，留空使用系统临时目录")
    download_timeout: int = Field(default=30, ge=1, le=300, description="下载超时时间（秒）")
    upload_timeout: int = Field(default=10, ge=1, le=300, description="等待上传控件的时间（秒）")
    upload_settle_seconds: float = Field(default=1.5, ge=0.0, le=30.0, description="相邻图片上传间隔（秒）")
    supported_formats: list[str] = Field(
        default=["jpg", "jpeg", "png", "webp"],
        description="支持的图片格式"
    )


class PublishConfig(BaseModel):
    """发布流程配置模型"""
    submit_timeout: int = Field(default=30, ge=1, le=300, description="等待商品页跳转的时间（秒）")
    page_settle_seconds: float = Field(default=2.0, ge=0.0, le=30.0, description="进入发布页后的等待（秒）")
    category_settle_seconds: float = Field(default=1.0, ge=0.0, le=30.0, description="选择分类后的等待（秒）")
    post_submit_seconds: float = Field(default=2.0, ge=0.0, le=30.0, description="提交后的等待（秒）")
    strict_condition: bool = Field(default=True, description="成色字段缺失时是否终止发布")


class ConfigModel(BaseModel):
    """完整配置模型"""
    app: AppConfig = Field(default_factory=AppConfig)
    vinted: VintedConfig = Field(default_factory=VintedConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    locator: LocatorConfig = Field(default_factory=LocatorConfig)
    media: MediaConfig = Field(default_factory=MediaConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return self.model_dump()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConfigModel':
        """从字典创建配置"""
        return cls(**data)
