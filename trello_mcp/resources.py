"""
MCP resources for Trello attachments.

Attachment resources are addressed as
``trello://cards/{card_id}/attachments/{attachment_id}/download/{file_name}``.
Reading one downloads the file into the attachment cache and returns JSON
metadata pointing at the local copy.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.parse import quote, unquote

from .cache import AttachmentCache, CachedAttachment
from .client import TrelloClient
from .errors import ErrorCode, TrelloError

logger = logging.getLogger(__name__)

ATTACHMENT_URI_TEMPLATE = "trello://cards/{cardId}/attachments/{attachmentId}/download/{fileName}"
ATTACHMENT_URI_PATTERN = re.compile(r"trello://cards/([a-f0-9]{24})/attachments/([a-f0-9]{24})/download/(.+)")


class UnsupportedResourceError(ValueError):
    """Raised when a resource URI is not a Trello attachment URI."""

    def __init__(self, uri: str):
        self.uri = uri
        super().__init__(f"Unsupported resource type for URI: {uri}")


@dataclass(frozen=True)
class AttachmentRef:
    card_id: str
    attachment_id: str
    file_name: str


def parse_attachment_uri(uri: str) -> AttachmentRef:
    """
    Parse an attachment resource URI.

    Raises:
        UnsupportedResourceError: If the URI does not match the attachment format
    """
    match = ATTACHMENT_URI_PATTERN.fullmatch(uri)
    if not match:
        raise UnsupportedResourceError(uri)
    card_id, attachment_id, file_name = match.groups()
    return AttachmentRef(card_id=card_id, attachment_id=attachment_id, file_name=unquote(file_name))


def build_attachment_uri(card_id: str, attachment_id: str, file_name: str) -> str:
    return f"trello://cards/{card_id}/attachments/{attachment_id}/download/{quote(file_name, safe='')}"


def to_file_uri(file_path: Path | str) -> str:
    return Path(file_path).resolve().as_uri()


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat().replace("+00:00", "Z")


class AttachmentResourceReader:
    """Resolves attachment URIs to cached local files."""

    def __init__(self, client: TrelloClient, cache: AttachmentCache):
        self.client = client
        self.cache = cache

    async def read(self, uri: str) -> dict[str, Any]:
        """
        Read an attachment resource.

        Serves a valid cached copy when there is one; otherwise fetches the
        attachment metadata, downloads the file and caches it. A failed
        download leaves no cache entry behind.

        Raises:
            UnsupportedResourceError: If the URI is not an attachment URI
            TrelloError: If fetching or downloading the attachment fails
        """
        ref = parse_attachment_uri(uri)

        cached = self.cache.get(ref.attachment_id)
        if cached is not None:
            if self.cache.is_valid(cached):
                logger.debug(f"Serving attachment {ref.attachment_id} from cache")
                return self.metadata(cached, cached=True)
            self.cache.invalidate(ref.attachment_id)

        entry = await self._download(ref)
        return self.metadata(entry, cached=False)

    async def _download(self, ref: AttachmentRef) -> CachedAttachment:
        attachment = (await self.client.get_card_attachment(ref.card_id, ref.attachment_id)).data
        if not attachment.url:
            raise TrelloError(
                message=f"Attachment {ref.attachment_id} on card {ref.card_id} has no download URL",
                code=ErrorCode.API_ERROR,
            )

        content = (await self.client.download_attachment(attachment.url)).data

        file_path = self.cache.path_for(ref.attachment_id, ref.file_name)
        await asyncio.to_thread(self._write, file_path, content)

        entry = CachedAttachment(
            file_path=file_path,
            file_name=attachment.name or ref.file_name,
            file_size=attachment.size or len(content),
            mime_type=attachment.mime_type or "application/octet-stream",
            card_id=ref.card_id,
            attachment_id=ref.attachment_id,
            downloaded_at=self.cache.clock(),
        )
        logger.info(f"Downloaded attachment {ref.attachment_id} ({entry.file_size} bytes) to {file_path}")
        return self.cache.put(entry)

    def _write(self, file_path: Path, content: bytes) -> None:
        self.cache.ensure_temp_dir()
        file_path.write_bytes(content)

    def metadata(self, entry: CachedAttachment, cached: bool) -> dict[str, Any]:
        expires_at = _iso(self.cache.expires_at(entry))
        file_path = str(entry.file_path)
        return {
            "file_uri": to_file_uri(entry.file_path),
            "file_path": file_path,
            "file_name": entry.file_name,
            "file_size": entry.file_size,
            "mime_type": entry.mime_type,
            "card_id": entry.card_id,
            "attachment_id": entry.attachment_id,
            "cached": cached,
            "cached_at": _iso(entry.downloaded_at),
            "expires_at": expires_at,
            "instructions": {
                "action": "read_file",
                "description": (
                    "Read the file from the local filesystem at file_path. "
                    f"The file will be automatically deleted after {expires_at}."
                ),
                "file_path": file_path,
                "expires_at": expires_at,
            },
        }
