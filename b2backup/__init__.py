# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
b2backup - PostgreSQL backups to Backblaze B2.

Dumps a database to a tar archive and transfers it to B2, choosing between
a single-shot upload and a multipart upload (with per-part SHA-1
verification, bounded retry, and credential refresh) by file size.
"""

__version__ = "0.1.0"

# Configuration creation (user-facing API)
from b2backup.builder import create_transfer_config
from b2backup.config import BackupConfig, TransferConfig

# Transfer engine
from b2backup.b2 import (
    UploadResult,
    UploadStrategy,
    authorize_account,
    choose_strategy,
    upload_file,
    upload_large,
    upload_small,
)

# Backup cycle
from b2backup.backup import restore_database, run_backup_cycle, run_backup_loop

# Environment-based configuration
from b2backup.env import create_backup_config_from_env, create_transfer_config_from_env

__all__ = [
    # Version
    "__version__",
    # Configuration
    "BackupConfig",
    "TransferConfig",
    "create_transfer_config",
    "create_backup_config_from_env",
    "create_transfer_config_from_env",
    # Transfer engine
    "UploadResult",
    "UploadStrategy",
    "authorize_account",
    "choose_strategy",
    "upload_file",
    "upload_large",
    "upload_small",
    # Backup cycle
    "restore_database",
    "run_backup_cycle",
    "run_backup_loop",
]
