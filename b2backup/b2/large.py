# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Multipart uploader - start / upload parts / finish.

The source is read in part_size_bytes chunks. With max_concurrent_parts=1
(the default) part k+1 is not read until part k has been accepted, so the
manifest is always the exact prefix of parts sent so far. With a larger
value, up to that many parts are in flight at once, each on its own part
upload URL, and the manifest is assembled by part number before finishing.

b2_finish_large_file is never retried: a rejected finish is surfaced as-is.
"""

import asyncio
from typing import Dict, List, Protocol

import httpx
import structlog

from b2backup.b2.api import (
    cancel_large_file,
    finish_large_file,
    get_upload_part_url,
    start_large_file,
)
from b2backup.b2.models import FileTransfer, PartRecord, UploadCredential, UploadResult, manifest_of
from b2backup.b2.parts import CredentialRefresher, upload_part
from b2backup.b2.session import authorize_account
from b2backup.config import TransferConfig
from b2backup.exceptions import B2BackupError, UploadError

logger = structlog.get_logger()


class AsyncByteSource(Protocol):
    """Anything with an awaitable read(n), e.g. an aiofiles file handle."""

    async def read(self, size: int = -1) -> bytes:
        ...


async def read_chunk(source: AsyncByteSource, size: int) -> bytes:
    """
    Read up to size bytes, stopping early only at end of stream.

    Short reads from pipes or sockets are joined so every part except the
    last has exactly size bytes.
    """
    pieces: List[bytes] = []
    remaining = size
    while remaining > 0:
        piece = await source.read(remaining)
        if not piece:
            break
        pieces.append(piece)
        remaining -= len(piece)
    return b"".join(pieces)


async def upload_large(
    http: httpx.AsyncClient,
    config: TransferConfig,
    object_name: str,
    source: AsyncByteSource,
    content_type: str | None = None,
) -> UploadResult:
    """
    Upload an object through the multipart protocol.

    Args:
        http: HTTP client
        config: Transfer configuration
        object_name: Destination file name in the bucket
        source: Async byte reader positioned at the start of the object
        content_type: MIME type of the assembled file (default: config.content_type)

    Returns:
        UploadResult of the assembled file

    Raises:
        UploadError: If the source is empty (nothing is started on B2)
        AuthError: If authorization fails
        ProtocolError: If start, part URL or finish is rejected
        TransferError: If a part exhausts its retries
    """
    content_type = content_type or config.content_type

    first_chunk = await read_chunk(source, config.part_size_bytes)
    if not first_chunk:
        raise UploadError(
            "empty file not supported for multipart path",
            details={"file_name": object_name},
        )

    session = await authorize_account(http, config)
    file_id = await start_large_file(
        http,
        session,
        config.bucket_id,
        object_name,
        content_type,
        timeout=config.request_timeout_seconds,
    )
    transfer = FileTransfer(
        file_id=file_id,
        file_name=object_name,
        bucket_id=config.bucket_id,
        content_type=content_type,
    )

    async def refresh() -> UploadCredential:
        fresh_session = await authorize_account(http, config)
        return await get_upload_part_url(
            http, fresh_session, file_id, timeout=config.request_timeout_seconds
        )

    initial = await get_upload_part_url(
        http, session, file_id, timeout=config.request_timeout_seconds
    )

    try:
        if config.max_concurrent_parts == 1:
            records = await _upload_parts_in_order(
                http, config, transfer, source, first_chunk, initial, refresh
            )
        else:
            records = await _upload_parts_concurrently(
                http, config, transfer, source, first_chunk, initial, refresh
            )
    except B2BackupError as e:
        logger.error(
            "large_file_parts_failed",
            file_id=file_id,
            file_name=object_name,
            error=str(e),
        )
        if config.cancel_on_failure:
            await _cancel_after_failure(http, config, transfer)
        raise

    manifest = manifest_of(records)

    finish_session = await authorize_account(http, config)
    result = await finish_large_file(
        http,
        finish_session,
        file_id,
        manifest,
        timeout=config.request_timeout_seconds,
    )

    logger.info(
        "large_file_uploaded",
        file_name=result.file_name,
        file_id=result.file_id,
        parts=len(manifest),
    )

    return result


async def _upload_parts_in_order(
    http: httpx.AsyncClient,
    config: TransferConfig,
    transfer: FileTransfer,
    source: AsyncByteSource,
    first_chunk: bytes,
    credential: UploadCredential,
    refresh: CredentialRefresher,
) -> List[PartRecord]:
    """Upload parts one at a time, reusing the credential across parts."""
    records: List[PartRecord] = []
    part_number = 1
    chunk = first_chunk

    while chunk:
        outcome = await upload_part(
            http, config, credential, transfer.file_id, part_number, chunk, refresh
        )
        credential = outcome.credential
        records.append(outcome.record)

        part_number += 1
        chunk = await read_chunk(source, config.part_size_bytes)

    return records


async def _upload_parts_concurrently(
    http: httpx.AsyncClient,
    config: TransferConfig,
    transfer: FileTransfer,
    source: AsyncByteSource,
    first_chunk: bytes,
    initial: UploadCredential,
    refresh: CredentialRefresher,
) -> List[PartRecord]:
    """
    Upload parts with at most max_concurrent_parts in flight.

    Chunks are still read in order; each finished part writes its record
    into the slot for its part number. A part upload URL serves one upload
    at a time, so idle credentials are pooled and new ones are requested
    only when the pool is empty.
    """
    semaphore = asyncio.Semaphore(config.max_concurrent_parts)
    idle: List[UploadCredential] = [initial]
    slots: Dict[int, PartRecord] = {}
    tasks: List[asyncio.Task] = []

    async def run(part_number: int, chunk: bytes) -> None:
        try:
            credential = idle.pop() if idle else await refresh()
            outcome = await upload_part(
                http, config, credential, transfer.file_id, part_number, chunk, refresh
            )
            slots[part_number] = outcome.record
            idle.append(outcome.credential)
        finally:
            semaphore.release()

    part_number = 1
    chunk = first_chunk

    try:
        while chunk:
            await semaphore.acquire()
            _raise_first_failure(tasks)
            tasks.append(asyncio.create_task(run(part_number, chunk)))

            part_number += 1
            chunk = await read_chunk(source, config.part_size_bytes)

        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    return [slots[n] for n in sorted(slots)]


def _raise_first_failure(tasks: List[asyncio.Task]) -> None:
    for task in tasks:
        if task.done() and not task.cancelled() and task.exception() is not None:
            raise task.exception()


async def _cancel_after_failure(
    http: httpx.AsyncClient,
    config: TransferConfig,
    transfer: FileTransfer,
) -> None:
    """Cancel an unfinished large file; the caller re-raises the original error."""
    try:
        session = await authorize_account(http, config)
        await cancel_large_file(
            http, session, transfer.file_id, timeout=config.request_timeout_seconds
        )
    except B2BackupError as e:
        logger.warning(
            "large_file_cancel_failed",
            file_id=transfer.file_id,
            error=str(e),
        )
