"""
测试工具和fixtures
Test Utilities and Fixtures
"""

import asyncio
import io
import os
import sys
import tempfile
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

os.environ.setdefault("EASYVINTED_LOGS_DIR", str(Path(tempfile.gettempdir()) / "easyvinted-test-logs"))

from PIL import Image
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from easyvinted.core.config import Config, get_config
from easyvinted.modules.listing.models import Credentials, ListingDraft
from easyvinted.modules.listing.selectors import VintedSelectors
from easyvinted.modules.session.store import SessionStore

BASE_URL = "https://www.vinted.fr"
LISTING_URL = "https://www.vinted.fr/items/4821337-veste-en-jean"

SITE_CONFIG = {
    "base_url": BASE_URL,
    "login_path": "/member/login",
    "new_item_path": "/items/new",
    "listing_url_regex": r"/items/\d+",
    "auth_marker": VintedSelectors.AUTH_MARKER,
}
LOCATOR_CONFIG = {"visibility_timeout_ms": 0, "settle_delay": 0}
PUBLISH_CONFIG = {
    "submit_timeout": 1,
    "page_settle_seconds": 0,
    "category_settle_seconds": 0,
    "post_submit_seconds": 0,
    "strict_condition": True,
}


class FakePage:
    """
    Playwright Page 替身

    visible 中的选择器可见且可操作，其余在 wait_for 时超时。
    所有元素动作按顺序记录到 calls。
    """

    def __init__(self, visible=(), url: str = "about:blank"):
        self.visible = set(visible)
        self.url = url
        self.calls: list[tuple[str, str, Any]] = []
        self.waited: list[str] = []
        self.elements: dict[str, Mock] = {}
        self.wait_for_selector = AsyncMock()
        self.wait_for_load_state = AsyncMock()
        self.wait_for_url = AsyncMock(side_effect=self._wait_for_url)
        self.fill = AsyncMock(side_effect=lambda selector, value: self.calls.append(("page_fill", selector, value)))
        self.click = AsyncMock(side_effect=lambda selector: self.calls.append(("page_click", selector, None)))
        self.next_url: str | None = None

    def locator(self, selector: str) -> Mock:
        if selector not in self.elements:
            self.elements[selector] = self._make_element(selector)
        holder = Mock()
        holder.first = self.elements[selector]
        holder.last = self.elements[selector]
        holder.count = self.elements[selector].count
        return holder

    def _make_element(self, selector: str) -> Mock:
        async def wait_for(state: str = "visible", timeout: float | None = None) -> None:
            self.waited.append(selector)
            if selector not in self.visible:
                raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

        def select_option(value=None, label=None):
            self.calls.append(("select", selector, label if label is not None else value))

        element = Mock()
        element.wait_for = AsyncMock(side_effect=wait_for)
        element.fill = AsyncMock(side_effect=lambda value: self.calls.append(("fill", selector, value)))
        element.select_option = AsyncMock(side_effect=select_option)
        element.set_input_files = AsyncMock(side_effect=lambda path: self.calls.append(("upload", selector, path)))
        element.click = AsyncMock(side_effect=lambda: self.calls.append(("click", selector, None)))
        element.count = AsyncMock(side_effect=lambda: 1 if selector in self.visible else 0)
        return element

    async def _wait_for_url(self, predicate, timeout: float | None = None) -> None:
        if self.next_url is None or not predicate(self.next_url):
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for navigation")
        self.url = self.next_url

    def actions(self, kind: str) -> list[tuple[str, Any]]:
        return [(selector, value) for action, selector, value in self.calls if action == kind]


class FakeBrowser:
    """BrowserSession 替身，共享一个 FakePage 与 Cookie 列表"""

    def __init__(self, page: FakePage | None = None, cookies=None):
        self.page = page or FakePage()
        self.timeout = 30
        self.cookies: list[dict[str, Any]] = list(cookies or [])
        self.visited: list[str] = []
        self.open = AsyncMock(return_value=self)
        self.close = AsyncMock()

    async def goto(self, url: str, wait_until: str = "networkidle") -> None:
        await asyncio.sleep(0)
        self.visited.append(url)
        self.page.url = url

    async def get_cookies(self) -> list[dict[str, Any]]:
        return list(self.cookies)

    async def add_cookies(self, cookies: list[dict[str, Any]]) -> None:
        self.cookies.extend(cookies)


def form_selectors() -> set[str]:
    """每个表单字段的首选选择器"""
    s = VintedSelectors
    specs = [s.TITLE, s.DESCRIPTION, s.BRAND, s.CATEGORY, s.SUBCATEGORY, s.ITEM_TYPE,
             s.SIZE, s.CONDITION, s.COLOR, s.MATERIAL, s.PRICE]
    return {spec.selectors[0] for spec in specs}


def png_bytes(color: str = "red") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def temp_dir():
    """创建临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def reset_config():
    """重置配置单例"""
    Config._instance = None
    get_config.cache_clear()
    yield
    Config._instance = None
    get_config.cache_clear()


@pytest.fixture
def site_config():
    return dict(SITE_CONFIG)


@pytest.fixture
def locator_config():
    return dict(LOCATOR_CONFIG)


@pytest.fixture
def publish_config():
    return dict(PUBLISH_CONFIG)


@pytest.fixture
def media_config(temp_dir):
    photo_dir = temp_dir / "photos"
    return {
        "temp_dir": str(photo_dir),
        "download_timeout": 5,
        "upload_timeout": 0,
        "upload_settle_seconds": 0,
        "supported_formats": ["jpg", "jpeg", "png", "webp"],
    }


@pytest.fixture
def session_store(temp_dir):
    return SessionStore(temp_dir / "playwright-state" / "vinted-session.json")


@pytest.fixture
def sample_cookies():
    return [
        {"name": "_vinted_fr_session", "value": "abc123", "domain": ".vinted.fr", "path": "/"},
        {"name": "anon_id", "value": "f00d", "domain": ".vinted.fr", "path": "/"},
    ]


@pytest.fixture
def sample_draft():
    """示例商品"""
    return ListingDraft(
        id="article-42",
        title="Veste en jean Levi's",
        description="Très peu portée, aucun défaut",
        brand="Levi's",
        size="M",
        condition="very_good",
        color="Bleu",
        material="Coton",
        category="Femmes",
        subcategory="Vêtements",
        item_type="Vestes",
        price="25.5",
        photos=("https://images.example.com/a.jpg", "https://images.example.com/b.jpg"),
    )


@pytest.fixture
def credentials():
    return Credentials(email="seller@example.com", password="secret")


@pytest.fixture
def fake_page():
    return FakePage()


@pytest.fixture
def fake_browser(fake_page):
    return FakeBrowser(page=fake_page)


@pytest.fixture
def mock_http(monkeypatch):
    """
    替换 httpx.AsyncClient

    responses: url -> (status, body)
    """
    import httpx

    responses: dict[str, tuple[int, bytes]] = {}
    requested: list[str] = []

    async def get(url, **kwargs):
        requested.append(url)
        status, body = responses.get(url, (404, b""))
        return httpx.Response(status, content=body, request=httpx.Request("GET", url))

    client = AsyncMock()
    client.get = AsyncMock(side_effect=get)
    client.__aenter__.return_value = client
    client.__aexit__.return_value = False

    monkeypatch.setattr(httpx, "AsyncClient", lambda **kwargs: client)
    return Mock(responses=responses, requested=requested, client=client)


@pytest.fixture
def make_page():
    """FakePage 工厂"""
    return FakePage


@pytest.fixture
def form_fields():
    return form_selectors()


@pytest.fixture
def photo_bytes():
    return png_bytes()


@pytest.fixture
def make_browser():
    """FakeBrowser 工厂"""
    return FakeBrowser
