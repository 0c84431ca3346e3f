# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Part transfer worker - uploads one part of a large file.

The part's SHA-1 is computed once, before the first attempt. Attempts are
bounded by TransferConfig.max_retries. A 401/403 answer means the part
upload token expired: a new one is requested for the same file and the next
attempt uses it. Any other failure keeps the token and waits
attempt * base_delay_seconds before trying again.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

import httpx
import structlog

from b2backup.b2.models import PartRecord, UploadCredential
from b2backup.b2.small import sha1_hex
from b2backup.config import TransferConfig
from b2backup.exceptions import TransferError

logger = structlog.get_logger()

EXPIRED_CREDENTIAL_STATUSES = {401, 403}

CredentialRefresher = Callable[[], Awaitable[UploadCredential]]


@dataclass(frozen=True)
class PartOutcome:
    """Result of a successful part upload."""

    record: PartRecord

    # Credential that finally worked; may differ from the one passed in
    credential: UploadCredential

    attempts: int


def backoff_delay(attempt: int, config: TransferConfig) -> float:
    """Seconds to wait after failed attempt number `attempt` (1-based)."""
    return attempt * config.base_delay_seconds


async def upload_part(
    http: httpx.AsyncClient,
    config: TransferConfig,
    credential: UploadCredential,
    file_id: str,
    part_number: int,
    chunk: bytes,
    refresh: CredentialRefresher,
) -> PartOutcome:
    """
    Upload one part with bounded retry.

    Args:
        http: HTTP client
        config: Transfer configuration (retry budget, backoff)
        credential: Part upload credential for file_id
        file_id: Large file the part belongs to
        part_number: 1-based part number
        chunk: Exact bytes of the part
        refresh: Returns a new part upload credential for file_id

    Returns:
        PartOutcome with the PartRecord and the credential in use

    Raises:
        TransferError: If every attempt failed
        AuthError / ProtocolError: If refreshing the credential fails
    """
    digest = sha1_hex(chunk)
    last_status: int | None = None
    last_body = ""

    for attempt in range(1, config.max_retries + 1):
        headers = {
            "Authorization": credential.authorization_token,
            "X-Bz-Part-Number": str(part_number),
            "Content-Length": str(len(chunk)),
            "X-Bz-Content-Sha1": digest,
            "Content-Type": "application/octet-stream",
        }

        try:
            response = await http.post(
                credential.upload_url,
                headers=headers,
                content=chunk,
                timeout=config.request_timeout_seconds,
            )
        except httpx.TransportError as e:
            last_status = None
            last_body = str(e)
        else:
            if response.is_success:
                logger.debug(
                    "part_uploaded",
                    file_id=file_id,
                    part_number=part_number,
                    size=len(chunk),
                    attempt=attempt,
                )
                return PartOutcome(
                    record=PartRecord(part_number=part_number, sha1=digest),
                    credential=credential,
                    attempts=attempt,
                )
            last_status = response.status_code
            last_body = response.text

        logger.warning(
            "part_upload_failed",
            file_id=file_id,
            part_number=part_number,
            attempt=attempt,
            max_attempts=config.max_retries,
            status=last_status,
        )

        if attempt == config.max_retries:
            break

        if last_status in EXPIRED_CREDENTIAL_STATUSES:
            logger.info(
                "part_credential_refresh",
                file_id=file_id,
                part_number=part_number,
                status=last_status,
            )
            credential = await refresh()
        else:
            await asyncio.sleep(backoff_delay(attempt, config))

    raise TransferError(
        f"Giving up on part {part_number} after {config.max_retries} attempts: "
        f"{last_status} {last_body}",
        details={
            "file_id": file_id,
            "part_number": part_number,
            "attempts": config.max_retries,
            "status": last_status,
            "body": last_body,
        },
    )
