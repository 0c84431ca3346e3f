# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Upload entry point - route a local file to the right upload path.
"""

from pathlib import Path

import aiofiles
import httpx
import structlog

from b2backup.b2.large import upload_large
from b2backup.b2.models import UploadResult
from b2backup.b2.small import upload_small
from b2backup.b2.strategy import UploadStrategy, choose_strategy
from b2backup.config import TransferConfig
from b2backup.exceptions import UploadError

logger = structlog.get_logger()


async def upload_file(
    http: httpx.AsyncClient,
    config: TransferConfig,
    file_path: Path | str,
    object_name: str,
) -> UploadResult:
    """
    Upload a local file to the configured bucket.

    Files below config.large_threshold_bytes go through a single request;
    the rest go through the multipart protocol. A zero-byte file is always
    below a positive threshold and is sent as a small file.

    Args:
        http: HTTP client
        config: Transfer configuration
        file_path: Local file to upload
        object_name: Destination file name in the bucket

    Returns:
        UploadResult describing the stored file
    """
    path = Path(file_path)
    try:
        size = path.stat().st_size
    except FileNotFoundError as e:
        raise UploadError(
            f"File to upload not found: {path}",
            details={"file_path": str(path)},
        ) from e

    strategy = choose_strategy(size, config)

    logger.info(
        "upload_started",
        file_path=str(path),
        file_name=object_name,
        size=size,
        strategy=strategy.value,
    )

    if strategy == UploadStrategy.LARGE:
        async with aiofiles.open(path, "rb") as f:
            return await upload_large(http, config, object_name, f)

    return await upload_small(http, config, object_name, path)


def create_http_client(config: TransferConfig) -> httpx.AsyncClient:
    """HTTP client with the configured request timeout."""
    return httpx.AsyncClient(timeout=config.request_timeout_seconds)
