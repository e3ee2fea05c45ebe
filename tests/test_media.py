"""
图片传输测试
Photo Transfer Pipeline Tests
"""

from pathlib import Path
from unittest.mock import Mock

import httpx
import pytest
from playwright.async_api import Error as PlaywrightError

from easyvinted.core.error_handler import PhotoDownloadFailed, PhotoUploadFailed
from easyvinted.modules.listing.selectors import VintedSelectors
from easyvinted.modules.media.models import EphemeralPhoto
from easyvinted.modules.media.service import PhotoTransferPipeline

FILE_INPUT = VintedSelectors.FILE_INPUTS[0]


@pytest.fixture
def pipeline(media_config):
    service = PhotoTransferPipeline(config=media_config)
    service.logger = Mock()
    return service


def temp_files(media_config):
    photo_dir = Path(media_config["temp_dir"])
    return sorted(photo_dir.iterdir()) if photo_dir.exists() else []


class TestDownload:

    @pytest.mark.asyncio
    async def test_download_writes_named_temp_file(self, pipeline, mock_http, photo_bytes):
        url = "https://images.example.com/photo"
        mock_http.responses[url] = (200, photo_bytes)

        photo = await pipeline.download(url)

        assert photo.path.exists()
        assert photo.path.read_bytes() == photo_bytes
        assert photo.path.name.startswith("vinted-")
        assert photo.path.suffix == ".png"
        assert photo.source_url == url

    @pytest.mark.asyncio
    async def test_extension_falls_back_to_url_suffix(self, pipeline, mock_http):
        url = "https://images.example.com/p/123.webp?s=1"
        mock_http.responses[url] = (200, b"not an image")

        photo = await pipeline.download(url)

        assert photo.path.suffix == ".webp"

    @pytest.mark.asyncio
    async def test_http_404_raises_and_leaves_no_file(self, pipeline, mock_http, media_config):
        url = "https://images.example.com/missing.jpg"

        with pytest.raises(PhotoDownloadFailed) as exc_info:
            await pipeline.download(url)

        assert exc_info.value.details["status"] == 404
        assert temp_files(media_config) == []

    @pytest.mark.asyncio
    async def test_transport_error_is_retried_then_wrapped(self, pipeline, mock_http, monkeypatch):
        async def no_sleep(_):
            return None

        monkeypatch.setattr("easyvinted.core.error_handler.asyncio.sleep", no_sleep)
        mock_http.client.get.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(PhotoDownloadFailed):
            await pipeline.download("https://images.example.com/a.jpg")

        assert mock_http.client.get.await_count == 3

    @pytest.mark.asyncio
    async def test_download_all_keeps_completed_photos_on_failure(
        self, pipeline, mock_http, photo_bytes, media_config
    ):
        ok_url = "https://images.example.com/1.png"
        mock_http.responses[ok_url] = (200, photo_bytes)
        collected = []

        with pytest.raises(PhotoDownloadFailed):
            await pipeline.download_all([ok_url, "https://images.example.com/404.png"], into=collected)

        assert len(collected) == 1
        assert temp_files(media_config) == [collected[0].path]

        assert pipeline.cleanup(collected) == 1
        assert temp_files(media_config) == []


class TestUpload:

    @pytest.mark.asyncio
    async def test_uploads_in_order(self, pipeline, make_page, temp_dir):
        page = make_page(visible={FILE_INPUT})
        photos = [
            EphemeralPhoto(path=temp_dir / f"vinted-{i}.jpg", source_url=f"https://x/{i}", token=str(i))
            for i in range(3)
        ]

        await pipeline.upload(page, photos)

        assert page.actions("upload") == [(FILE_INPUT, str(p.path)) for p in photos]

    @pytest.mark.asyncio
    async def test_no_photos_is_a_noop(self, pipeline, make_page):
        page = make_page()

        await pipeline.upload(page, [])

        assert page.waited == []
        assert page.calls == []

    @pytest.mark.asyncio
    async def test_missing_file_input(self, pipeline, make_page, temp_dir):
        photo = EphemeralPhoto(path=temp_dir / "vinted-1.jpg", source_url="https://x/1", token="1")

        with pytest.raises(PhotoUploadFailed):
            await pipeline.upload(make_page(), [photo])

    @pytest.mark.asyncio
    async def test_rejected_file(self, pipeline, make_page, temp_dir):
        page = make_page(visible={FILE_INPUT})
        page.locator(FILE_INPUT).first.set_input_files.side_effect = PlaywrightError("file too large")
        photo = EphemeralPhoto(path=temp_dir / "vinted-1.jpg", source_url="https://x/1", token="1")

        with pytest.raises(PhotoUploadFailed) as exc_info:
            await pipeline.upload(page, [photo])

        assert exc_info.value.details["source_url"] == "https://x/1"


class TestCleanup:

    def test_cleanup_continues_after_one_failure(self, pipeline, temp_dir, monkeypatch):
        paths = [temp_dir / f"vinted-{i}.jpg" for i in range(3)]
        for path in paths:
            path.write_bytes(b"x")
        photos = [EphemeralPhoto(path=p, source_url="u", token=p.stem) for p in paths]

        original_unlink = Path.unlink

        def flaky_unlink(self, missing_ok=False):
            if self.name == "vinted-1.jpg":
                raise PermissionError("locked")
            return original_unlink(self, missing_ok=missing_ok)

        monkeypatch.setattr(Path, "unlink", flaky_unlink)

        removed = pipeline.cleanup(photos)

        assert removed == 2
        assert not paths[0].exists()
        assert paths[1].exists()
        assert not paths[2].exists()
        pipeline.logger.warning.assert_called_once()

    def test_cleanup_tolerates_already_deleted(self, pipeline, temp_dir):
        photo = EphemeralPhoto(path=temp_dir / "vinted-gone.jpg", source_url="u", token="gone")
        assert pipeline.cleanup([photo]) == 1

    @pytest.mark.asyncio
    async def test_scope_removes_files_on_error(self, pipeline, mock_http, photo_bytes, media_config):
        url = "https://images.example.com/1.png"
        mock_http.responses[url] = (200, photo_bytes)

        with pytest.raises(RuntimeError):
            async with pipeline.scope() as photos:
                await pipeline.download_all([url], into=photos)
                assert len(temp_files(media_config)) == 1
                raise RuntimeError("boom")

        assert temp_files(media_config) == []
