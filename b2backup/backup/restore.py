# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
b2backup Restore - Restore a database from a local tar archive.

The archive must already be in the backup directory (downloaded from the
bucket by other means). The archive name comes from configuration and is
checked before anything is executed.
"""

from pathlib import Path

import structlog

from b2backup.backup.manager import run_pg_tool, build_connection_uri, parse_database_url
from b2backup.config import BackupConfig
from b2backup.errors import explain_missing_restore_file
from b2backup.exceptions import ConfigurationError, RestoreError

logger = structlog.get_logger()


def resolve_restore_path(config: BackupConfig) -> Path:
    """
    Path of the archive to restore.

    Raises:
        ConfigurationError: If no archive name is configured
    """
    if not config.restore_file_name:
        raise ConfigurationError(explain_missing_restore_file())
    return config.backup_dir / config.restore_file_name


async def restore_database(config: BackupConfig) -> Path:
    """
    Restore the database from config.restore_file_name.

    Args:
        config: Backup configuration with restore_file_name set

    Returns:
        Path of the restored archive

    Raises:
        ConfigurationError: If restore_file_name is missing
        RestoreError: If the archive is missing or pg_restore fails
    """
    restore_path = resolve_restore_path(config)
    db = parse_database_url(config.database_url)

    if not restore_path.is_file():
        raise RestoreError(
            f"Backup archive not found: {restore_path}",
            details={"path": str(restore_path)},
        )

    logger.info("restore_started", database=db.database, path=str(restore_path))

    args = [
        "pg_restore",
        f"--dbname={build_connection_uri(db, config.neon_endpoint_option)}",
        "--no-owner",
        "--no-privileges",
        "--format=tar",
        str(restore_path),
    ]

    try:
        returncode, stderr = await run_pg_tool(args, config)
    except FileNotFoundError as e:
        raise RestoreError(
            "pg_restore executable not found on PATH",
            details={"path": str(restore_path)},
        ) from e

    if returncode != 0:
        raise RestoreError(
            f"pg_restore exited with status {returncode}",
            details={
                "path": str(restore_path),
                "stderr": stderr.replace(db.password, "***") if db.password else stderr,
            },
        )

    logger.info("restore_completed", database=db.database, path=str(restore_path))

    return restore_path
