"""
Resolve photo references (remote URL or local path) into uploadable files
"""

import asyncio
import logging
import mimetypes
import os
import re
import secrets
import tempfile
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse

import httpx

from errors import FileFetchError

logger = logging.getLogger(__name__)

WINDOWS_DRIVE_PATH = re.compile(r"^[a-zA-Z]:\\")


def is_local_path(reference: str) -> bool:
    return reference.startswith("/") or bool(WINDOWS_DRIVE_PATH.match(reference))


def _guess_extension(url: str, content_type: Optional[str]) -> str:
    ext = os.path.splitext(urlparse(url).path)[1]
    if ext:
        return ext
    if content_type:
        guessed = mimetypes.guess_extension(content_type.split(";")[0].strip())
        if guessed:
            return guessed
    return ""


def _check_remote_reference(reference: str):
    try:
        parsed = urlparse(reference)
    except ValueError as e:
        raise FileFetchError(f"Invalid file reference: {reference} ({e})") from e
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise FileFetchError(f"Unsupported file reference: {reference}")


class AttachmentResolver:
    """Downloads remote attachments to temp files and removes them afterwards"""

    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport
        self.created_files: List[Path] = []

    async def resolve(self, reference: str) -> str:
        if is_local_path(reference):
            return reference

        _check_remote_reference(reference)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, follow_redirects=True, transport=self.transport
            ) as client:
                response = await client.get(reference)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            raise FileFetchError(f"Failed to fetch file: {reference} ({e})") from e

        if not response.is_success:
            raise FileFetchError(
                f"Failed to fetch file: {reference} (HTTP {response.status_code})"
            )

        ext = _guess_extension(reference, response.headers.get("content-type"))
        tmp_path = Path(tempfile.gettempdir()) / f"upload-{secrets.token_hex(6)}{ext}"
        await asyncio.to_thread(tmp_path.write_bytes, response.content)
        self.created_files.append(tmp_path)
        logger.info("📥 Downloaded attachment to %s (%d bytes)", tmp_path, len(response.content))
        return str(tmp_path)

    def cleanup(self):
        """Remove every temp file this resolver created"""
        for path in self.created_files:
            try:
                if path.exists():
                    path.unlink()
                    logger.info("🗑️ Cleaned up temporary file: %s", path)
            except OSError as e:
                logger.warning("⚠️ Temporary file cleanup warning: %s", e)
        self.created_files = []
