# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Single-shot uploader - one b2_upload_file request per object.

The whole object is read into memory first: B2 requires Content-Length up
front and rejects chunked transfer encoding on this endpoint. The SHA-1 is
computed from that same buffer so it always matches the bytes sent.
"""

import hashlib
from pathlib import Path
from urllib.parse import quote

import aiofiles
import httpx
import structlog

from b2backup.b2.api import get_upload_url
from b2backup.b2.models import UploadResult
from b2backup.b2.session import authorize_account
from b2backup.config import TransferConfig
from b2backup.exceptions import UploadError

logger = structlog.get_logger()


def sha1_hex(data: bytes) -> str:
    """Hex SHA-1 of data, as expected by X-Bz-Content-Sha1."""
    return hashlib.sha1(data).hexdigest()


def escape_file_name(file_name: str) -> str:
    """Percent-encode a file name for the X-Bz-File-Name header."""
    return quote(file_name, safe="/")


async def read_whole_file(path: Path) -> bytes:
    """Read a local file into a single buffer."""
    async with aiofiles.open(path, "rb") as f:
        return await f.read()


async def upload_small(
    http: httpx.AsyncClient,
    config: TransferConfig,
    object_name: str,
    source: bytes | Path,
) -> UploadResult:
    """
    Upload an object in one request.

    Args:
        http: HTTP client
        config: Transfer configuration
        object_name: Destination file name in the bucket
        source: Object bytes, or a path to read them from

    Returns:
        UploadResult parsed from the service response

    Raises:
        AuthError: If authorization fails
        ProtocolError: If no upload URL could be obtained
        UploadError: If the upload request is rejected (not retried)
    """
    session = await authorize_account(http, config)
    credential = await get_upload_url(
        http, session, config.bucket_id, timeout=config.request_timeout_seconds
    )

    if isinstance(source, (bytes, bytearray)):
        body = bytes(source)
    else:
        body = await read_whole_file(Path(source))

    digest = sha1_hex(body)

    headers = {
        "Authorization": credential.authorization_token,
        "Content-Type": config.content_type,
        "Content-Length": str(len(body)),
        "X-Bz-File-Name": escape_file_name(object_name),
        "X-Bz-Content-Sha1": digest,
    }

    try:
        response = await http.post(
            credential.upload_url,
            headers=headers,
            content=body,
            timeout=config.request_timeout_seconds,
        )
    except httpx.TransportError as e:
        raise UploadError(
            f"Upload of {object_name} failed: {e}",
            details={"file_name": object_name, "status": None, "body": ""},
        ) from e

    if not response.is_success:
        raise UploadError(
            f"Upload of {object_name} failed: {response.status_code}",
            details={
                "file_name": object_name,
                "status": response.status_code,
                "body": response.text,
            },
        )

    result = UploadResult.from_json(response.json())

    logger.info(
        "small_file_uploaded",
        file_name=result.file_name,
        file_id=result.file_id,
        size=len(body),
        sha1=digest,
    )

    return result
