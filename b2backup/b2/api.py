# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
B2 API calls - JSON endpoints of the B2 native API (v2).

Each function performs exactly one POST against the session's API URL and
raises ProtocolError with the HTTP status and response body when the
service rejects it. Nothing here is retried.
"""

from typing import Any, Dict, List

import httpx
import structlog

from b2backup.b2.models import Session, UploadCredential, UploadResult
from b2backup.exceptions import ProtocolError

logger = structlog.get_logger()

API_PREFIX = "/b2api/v2"


async def _call(
    http: httpx.AsyncClient,
    session: Session,
    name: str,
    payload: Dict[str, Any],
    timeout: float | None = None,
) -> Dict[str, Any]:
    """POST a JSON payload to b2_<name> and return the decoded body."""
    url = f"{session.api_url}{API_PREFIX}/{name}"
    try:
        response = await http.post(
            url,
            headers={"Authorization": session.authorization_token},
            json=payload,
            timeout=timeout,
        )
    except httpx.TransportError as e:
        raise ProtocolError(
            f"{name} request failed: {e}",
            details={"call": name, "status": None, "body": ""},
        ) from e

    if not response.is_success:
        raise ProtocolError(
            f"{name} failed: {response.status_code} {response.text}",
            details={"call": name, "status": response.status_code, "body": response.text},
        )

    return response.json()


async def get_upload_url(
    http: httpx.AsyncClient,
    session: Session,
    bucket_id: str,
    timeout: float | None = None,
) -> UploadCredential:
    """Get an upload URL and token for a single-shot upload into bucket_id."""
    data = await _call(http, session, "b2_get_upload_url", {"bucketId": bucket_id}, timeout)
    return UploadCredential.from_json(data)


async def start_large_file(
    http: httpx.AsyncClient,
    session: Session,
    bucket_id: str,
    file_name: str,
    content_type: str,
    timeout: float | None = None,
) -> str:
    """
    Begin a multipart upload.

    Returns:
        The fileId assigned by the service
    """
    data = await _call(
        http,
        session,
        "b2_start_large_file",
        {"bucketId": bucket_id, "fileName": file_name, "contentType": content_type},
        timeout,
    )
    logger.info("large_file_started", file_id=data["fileId"], file_name=file_name)
    return data["fileId"]


async def get_upload_part_url(
    http: httpx.AsyncClient,
    session: Session,
    file_id: str,
    timeout: float | None = None,
) -> UploadCredential:
    """Get an upload URL and token for the parts of file_id."""
    data = await _call(http, session, "b2_get_upload_part_url", {"fileId": file_id}, timeout)
    return UploadCredential.from_json(data)


async def finish_large_file(
    http: httpx.AsyncClient,
    session: Session,
    file_id: str,
    part_sha1_array: List[str],
    timeout: float | None = None,
) -> UploadResult:
    """
    Assemble the uploaded parts into the final file.

    part_sha1_array must be in part-number order.
    """
    data = await _call(
        http,
        session,
        "b2_finish_large_file",
        {"fileId": file_id, "partSha1Array": part_sha1_array},
        timeout,
    )
    logger.info("large_file_finished", file_id=file_id, parts=len(part_sha1_array))
    return UploadResult.from_json(data)


async def cancel_large_file(
    http: httpx.AsyncClient,
    session: Session,
    file_id: str,
    timeout: float | None = None,
) -> None:
    """Discard an unfinished large file and the parts uploaded so far."""
    await _call(http, session, "b2_cancel_large_file", {"fileId": file_id}, timeout)
    logger.info("large_file_cancelled", file_id=file_id)
