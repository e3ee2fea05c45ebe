"""
图片传输服务
Photo Transfer Pipeline

远程图片 -> 本地临时文件 -> 页面上传控件，结束时无论成功与否都删除临时文件
"""

from __future__ import annotations

import asyncio
import io
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Iterable, List, Sequence
from urllib.parse import urlparse

import httpx
from PIL import Image, UnidentifiedImageError
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page

from easyvinted.core.error_handler import PhotoDownloadFailed, PhotoUploadFailed, retry
from easyvinted.core.logger import get_logger
from easyvinted.modules.listing.selectors import VintedSelectors
from easyvinted.modules.media.models import EphemeralPhoto, new_token

_FORMAT_EXTENSIONS = {
    "jpeg": ".jpg",
    "png": ".png",
    "webp": ".webp",
    "gif": ".gif",
}


class PhotoTransferPipeline:
    """
    图片传输

    负责下载、按顺序上传以及清理临时文件
    """

    def __init__(self, config: dict[str, Any] | None = None, selectors: VintedSelectors | None = None):
        if config is None:
            from easyvinted.core.config import get_config

            config = get_config().media

        self.config = config
        self.logger = get_logger()
        self.selectors = selectors or VintedSelectors()
        self.temp_dir = Path(self.config.get("temp_dir") or tempfile.gettempdir())
        self.download_timeout = float(self.config.get("download_timeout", 30))
        self.upload_timeout = float(self.config.get("upload_timeout", 10))
        self.upload_settle_seconds = float(self.config.get("upload_settle_seconds", 1.5))
        self.supported_formats = [f.lower() for f in self.config.get("supported_formats", ["jpg", "jpeg", "png", "webp"])]

    @asynccontextmanager
    async def scope(self) -> AsyncIterator[List[EphemeralPhoto]]:
        """本次发布的临时图片列表，退出时统一清理"""
        photos: List[EphemeralPhoto] = []
        try:
            yield photos
        finally:
            self.cleanup(photos)

    async def download_all(self, urls: Sequence[str], into: List[EphemeralPhoto]) -> List[EphemeralPhoto]:
        """
        依次下载所有图片

        每张下载成功后立即加入 into，失败时已下载的文件仍由调用方清理。
        """
        if not urls:
            return into

        self.logger.info(f"Downloading {len(urls)} photos...")
        async with httpx.AsyncClient(timeout=self.download_timeout, follow_redirects=True) as client:
            for url in urls:
                into.append(await self.download(url, client=client))
        self.logger.success(f"Downloaded {len(urls)} photos")
        return into

    async def download(self, url: str, client: httpx.AsyncClient | None = None) -> EphemeralPhoto:
        """
        下载单张图片到临时目录

        Raises:
            PhotoDownloadFailed: 请求失败或响应状态非 2xx
        """
        self.logger.info(f"Downloading photo: {url[:80]}")

        try:
            if client is None:
                async with httpx.AsyncClient(timeout=self.download_timeout, follow_redirects=True) as own_client:
                    response = await self._fetch(own_client, url)
            else:
                response = await self._fetch(client, url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise PhotoDownloadFailed(
                f"Photo download failed with HTTP {status}: {url}", {"url": url, "status": status}
            ) from e
        except httpx.HTTPError as e:
            raise PhotoDownloadFailed(f"Photo download failed: {e}", {"url": url}) from e

        content = response.content
        if not content:
            raise PhotoDownloadFailed(f"Photo download returned an empty body: {url}", {"url": url})

        token = new_token()
        photo = EphemeralPhoto(
            path=self.temp_dir / f"vinted-{token}{self._guess_extension(content, url)}",
            source_url=url,
            token=token,
        )
        try:
            self.temp_dir.mkdir(parents=True, exist_ok=True)
            photo.path.write_bytes(content)
        except OSError as e:
            self._remove(photo)
            raise PhotoDownloadFailed(f"Cannot write photo to {photo.path}: {e}", {"url": url}) from e

        self.logger.debug(f"Photo saved to: {photo.path}")
        return photo

    @retry(max_attempts=3, delay=0.5, exceptions=(httpx.TransportError,))
    async def _fetch(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        return await client.get(url)

    def _guess_extension(self, content: bytes, url: str) -> str:
        """按图片内容判断扩展名，识别不了时退回 URL 后缀"""
        try:
            with Image.open(io.BytesIO(content)) as img:
                fmt = (img.format or "").lower()
        except (UnidentifiedImageError, OSError):
            fmt = ""
        if fmt in _FORMAT_EXTENSIONS:
            return _FORMAT_EXTENSIONS[fmt]

        suffix = Path(urlparse(url).path).suffix.lower().lstrip(".")
        if suffix in self.supported_formats:
            return f".{suffix}"
        return ".jpg"

    async def upload(self, page: Page, photos: Sequence[EphemeralPhoto]) -> None:
        """
        按顺序把图片交给上传控件

        Raises:
            PhotoUploadFailed: 找不到上传控件或页面拒绝文件
        """
        if not photos:
            self.logger.info("No photos to upload")
            return

        self.logger.info(f"Uploading {len(photos)} photos...")
        file_input = await self._locate_file_input(page)

        for index, photo in enumerate(photos, 1):
            try:
                await file_input.set_input_files(str(photo.path))
            except PlaywrightError as e:
                raise PhotoUploadFailed(
                    f"Photo {index}/{len(photos)} was not accepted: {e}",
                    {"path": str(photo.path), "source_url": photo.source_url},
                ) from e
            self.logger.debug(f"Photo {index}/{len(photos)} attached")
            if self.upload_settle_seconds > 0:
                await asyncio.sleep(self.upload_settle_seconds)

        self.logger.success(f"Uploaded {len(photos)} photos")

    async def _locate_file_input(self, page: Page) -> Locator:
        for selector in self.selectors.FILE_INPUTS:
            candidate = page.locator(selector).first
            try:
                await candidate.wait_for(state="attached", timeout=self.upload_timeout * 1000)
                return candidate
            except PlaywrightError:
                self.logger.debug(f"File input not found: {selector}")
        raise PhotoUploadFailed(
            "Photo upload input not found", {"selectors": list(self.selectors.FILE_INPUTS)}
        )

    def cleanup(self, photos: Iterable[EphemeralPhoto]) -> int:
        """
        删除临时文件；单个失败不影响其余文件

        Returns:
            已删除（或本就不存在）的文件数
        """
        removed = 0
        for photo in photos:
            if self._remove(photo):
                removed += 1
        if removed:
            self.logger.debug(f"Removed {removed} temporary photos")
        return removed

    def _remove(self, photo: EphemeralPhoto) -> bool:
        try:
            photo.path.unlink(missing_ok=True)
            return True
        except Exception as e:
            self.logger.warning(f"Could not delete temp file {photo.path}: {e}")
            return False
