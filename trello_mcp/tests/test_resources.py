"""Tests for attachment resources."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from trello_mcp.cache import AttachmentCache
from trello_mcp.errors import ErrorCode, TrelloError
from trello_mcp.models import Attachment, TrelloResponse
from trello_mcp.resources import (
    AttachmentResourceReader,
    UnsupportedResourceError,
    build_attachment_uri,
    parse_attachment_uri,
    to_file_uri,
)

CARD_ID = "5f1a2b3c4d5e6f7a8b9c0d1e"
ATTACHMENT_ID = "6a7b8c9d0e1f2a3b4c5d6e7f"
URI = f"trello://cards/{CARD_ID}/attachments/{ATTACHMENT_ID}/download/report%20v2.pdf"


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler():
    mock = MagicMock()
    mock.running = False
    return mock


@pytest.fixture
def cache(tmp_path, clock, scheduler):
    return AttachmentCache(temp_dir=tmp_path / "attachments", clock=clock, scheduler=scheduler)


@pytest.fixture
def client():
    mock = MagicMock()
    attachment = Attachment.model_validate(
        {
            "id": ATTACHMENT_ID,
            "name": "report v2.pdf",
            "url": f"https://trello.com/1/cards/{CARD_ID}/attachments/{ATTACHMENT_ID}/download/report.pdf",
            "mimeType": "application/pdf",
            "bytes": 8,
            "isUpload": True,
        }
    )
    mock.get_card_attachment = AsyncMock(return_value=TrelloResponse(data=attachment))
    mock.download_attachment = AsyncMock(return_value=TrelloResponse(data=b"%PDF-1.4"))
    return mock


@pytest.fixture
def reader(client, cache):
    return AttachmentResourceReader(client, cache)


class TestAttachmentUri:
    """Tests for attachment URI parsing and building."""

    def test_parse(self):
        ref = parse_attachment_uri(URI)

        assert ref.card_id == CARD_ID
        assert ref.attachment_id == ATTACHMENT_ID
        assert ref.file_name == "report v2.pdf"

    def test_build_encodes_file_name(self):
        uri = build_attachment_uri(CARD_ID, ATTACHMENT_ID, "report v2.pdf")

        assert uri == URI

    def test_build_encodes_slashes(self):
        uri = build_attachment_uri(CARD_ID, ATTACHMENT_ID, "a/b.txt")

        assert uri.endswith("/download/a%2Fb.txt")
        assert parse_attachment_uri(uri).file_name == "a/b.txt"

    @pytest.mark.parametrize(
        "uri",
        [
            "trello://boards/abc",
            f"trello://cards/{CARD_ID}/attachments/{ATTACHMENT_ID}",
            f"https://trello.com/cards/{CARD_ID}/attachments/{ATTACHMENT_ID}/download/x.pdf",
            f"trello://cards/{CARD_ID}?fields=all/attachments/{ATTACHMENT_ID}/download/x.pdf",
            f"trello://cards/{CARD_ID}/attachments/abc#x/download/x.pdf",
            f"trello://cards/{CARD_ID.upper()}/attachments/{ATTACHMENT_ID}/download/x.pdf",
        ],
    )
    def test_unsupported_uri(self, uri):
        with pytest.raises(UnsupportedResourceError) as exc_info:
            parse_attachment_uri(uri)

        assert str(exc_info.value) == f"Unsupported resource type for URI: {uri}"

    def test_to_file_uri(self, tmp_path):
        file_uri = to_file_uri(tmp_path / "a b.txt")

        assert file_uri.startswith("file://")
        assert file_uri.endswith("/a%20b.txt")


class TestAttachmentResourceReader:
    """Tests for reading attachment resources through the cache."""

    @pytest.mark.asyncio
    async def test_first_read_downloads(self, reader, client, cache):
        metadata = await reader.read(URI)

        assert metadata["cached"] is False
        assert metadata["card_id"] == CARD_ID
        assert metadata["attachment_id"] == ATTACHMENT_ID
        assert metadata["file_name"] == "report v2.pdf"
        assert metadata["file_size"] == 8
        assert metadata["mime_type"] == "application/pdf"
        assert Path(metadata["file_path"]).read_bytes() == b"%PDF-1.4"
        assert metadata["file_path"] == str(cache.path_for(ATTACHMENT_ID, "report v2.pdf"))
        assert metadata["file_uri"].startswith("file://")
        assert metadata["cached_at"] == "2023-11-14T22:13:20Z"
        assert metadata["expires_at"] == "2023-11-14T22:23:20Z"
        assert metadata["instructions"]["action"] == "read_file"
        assert metadata["instructions"]["file_path"] == metadata["file_path"]
        client.download_attachment.assert_awaited_once_with(client.get_card_attachment.return_value.data.url)

    @pytest.mark.asyncio
    async def test_cache_lifecycle(self, reader, client, cache, clock, scheduler):
        """Two reads within the TTL hit the cache; after expiry the file is gone and is downloaded again."""
        first = await reader.read(URI)
        second = await reader.read(URI)
        third = await reader.read(URI)

        assert first["cached"] is False
        assert second["cached"] is True
        assert third["cached"] is True
        assert second["file_path"] == third["file_path"] == first["file_path"]
        assert client.download_attachment.await_count == 1

        clock.now += cache.ttl
        job = scheduler.add_job.call_args.kwargs
        job["func"](*job["args"])
        assert not Path(first["file_path"]).exists()
        assert cache.get(ATTACHMENT_ID) is None

        after = await reader.read(URI)

        assert after["cached"] is False
        assert client.download_attachment.await_count == 2
        assert Path(after["file_path"]).exists()

    @pytest.mark.asyncio
    async def test_expired_entry_is_replaced_on_read(self, reader, client, cache, clock):
        """An entry past its TTL is invalidated by the read even if its job has not run."""
        await reader.read(URI)
        clock.now += cache.ttl

        metadata = await reader.read(URI)

        assert metadata["cached"] is False
        assert client.download_attachment.await_count == 2
        assert cache.get(ATTACHMENT_ID).downloaded_at == clock.now

    @pytest.mark.asyncio
    async def test_deleted_file_is_downloaded_again(self, reader, client):
        first = await reader.read(URI)
        Path(first["file_path"]).unlink()

        second = await reader.read(URI)

        assert second["cached"] is False
        assert Path(second["file_path"]).exists()
        assert client.download_attachment.await_count == 2

    @pytest.mark.asyncio
    async def test_failed_download_creates_no_entry(self, reader, client, cache):
        error = TrelloError("Resource not found", ErrorCode.NOT_FOUND, status=404)
        client.download_attachment.side_effect = error

        with pytest.raises(TrelloError) as exc_info:
            await reader.read(URI)

        assert exc_info.value is error
        assert cache.get(ATTACHMENT_ID) is None

    @pytest.mark.asyncio
    async def test_unsupported_uri_makes_no_request(self, reader, client):
        with pytest.raises(UnsupportedResourceError):
            await reader.read("trello://boards/abc")

        client.get_card_attachment.assert_not_awaited()
