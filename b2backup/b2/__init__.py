# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
B2 Transfer Engine - authorization, single-shot and multipart uploads.
"""

from b2backup.b2.models import (
    FileTransfer,
    PartRecord,
    Session,
    UploadCredential,
    UploadResult,
)
from b2backup.b2.session import authorize_account
from b2backup.b2.strategy import UploadStrategy, choose_strategy
from b2backup.b2.small import upload_small
from b2backup.b2.large import upload_large
from b2backup.b2.parts import upload_part
from b2backup.b2.uploader import create_http_client, upload_file

__all__ = [
    # Model
    "FileTransfer",
    "PartRecord",
    "Session",
    "UploadCredential",
    "UploadResult",
    # Session
    "authorize_account",
    # Strategy
    "UploadStrategy",
    "choose_strategy",
    # Uploaders
    "upload_small",
    "upload_large",
    "upload_part",
    "upload_file",
    "create_http_client",
]
