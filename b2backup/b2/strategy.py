# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Upload target resolver - single-shot or multipart, decided by size.
"""

from enum import Enum

from b2backup.config import TransferConfig


class UploadStrategy(str, Enum):
    """How a file is sent to B2."""

    SMALL = "small"  # One b2_upload_file request
    LARGE = "large"  # start / upload parts / finish


def choose_strategy(size_bytes: int, config: TransferConfig) -> UploadStrategy:
    """
    Pick the upload strategy for a file of size_bytes.

    A file exactly at the threshold goes through the multipart path.
    """
    if size_bytes < 0:
        raise ValueError(f"size_bytes must be >= 0, got {size_bytes}")
    if size_bytes >= config.large_threshold_bytes:
        return UploadStrategy.LARGE
    return UploadStrategy.SMALL
