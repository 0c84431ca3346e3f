# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup Engine - Dump, upload, schedule and restore.
"""

from b2backup.backup.manager import (
    BackupResult,
    DatabaseUrl,
    dump_database,
    object_key_for,
    parse_database_url,
    remove_local_file,
    run_backup_cycle,
    timestamped_filename,
)

from b2backup.backup.restore import restore_database

from b2backup.backup.scheduler import create_backup_scheduler, run_backup_loop

__all__ = [
    # Manager
    "BackupResult",
    "DatabaseUrl",
    "dump_database",
    "object_key_for",
    "parse_database_url",
    "remove_local_file",
    "run_backup_cycle",
    "timestamped_filename",
    # Restore
    "restore_database",
    # Scheduler
    "create_backup_scheduler",
    "run_backup_loop",
]
