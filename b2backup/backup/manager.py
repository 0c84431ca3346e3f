# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
b2backup Backup Manager - Database dump lifecycle.

This module dumps the database to a timestamped tar archive, uploads the
archive to B2 under a date-partitioned key, and removes the local copy.
"""

import asyncio
import os
from dataclasses import dataclass
from datetime import datetime, UTC
from pathlib import Path
from typing import List
from urllib.parse import quote, unquote, urlparse

import httpx
import structlog

from b2backup.b2.models import UploadResult
from b2backup.b2.uploader import upload_file
from b2backup.config import BackupConfig
from b2backup.errors import explain_invalid_database_url
from b2backup.exceptions import BackupError, ConfigurationError

logger = structlog.get_logger()


@dataclass(frozen=True)
class DatabaseUrl:
    """Components of a PostgreSQL connection URL."""

    host: str
    user: str
    password: str
    port: int | None
    database: str

    def __repr__(self) -> str:
        return (
            f"DatabaseUrl(host={self.host!r}, user={self.user!r}, "
            f"port={self.port!r}, database={self.database!r})"
        )


@dataclass
class BackupResult:
    """Result of one dump-and-upload cycle."""

    operation_id: str
    local_path: Path
    object_name: str
    size_bytes: int
    upload: UploadResult
    local_deleted: bool
    duration_seconds: float


def mask_password(url: str) -> str:
    """Mask password in connection URL for logging."""
    parsed = urlparse(url)
    if parsed.password:
        return url.replace(f":{parsed.password}@", ":***@")
    return url


def parse_database_url(url: str) -> DatabaseUrl:
    """
    Split a PostgreSQL URL into its components.

    Raises:
        ConfigurationError: If the URL has no host or database name
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("postgres", "postgresql") or not parsed.hostname:
        raise ConfigurationError(explain_invalid_database_url(mask_password(url)))

    database = parsed.path.lstrip("/")
    if not database:
        raise ConfigurationError(explain_invalid_database_url(mask_password(url)))

    return DatabaseUrl(
        host=parsed.hostname,
        user=unquote(parsed.username or ""),
        password=unquote(parsed.password or ""),
        port=parsed.port,
        database=database,
    )


def build_connection_uri(db: DatabaseUrl, neon_endpoint_option: bool = True) -> str:
    """
    Rebuild a connection URI for pg_dump / pg_restore.

    Neon routes connections by endpoint ID; older clients without SNI need
    it passed explicitly as options=endpoint=<first label of the host>.
    """
    credentials = quote(db.user, safe="")
    if db.password:
        credentials += ":" + quote(db.password, safe="")
    port = f":{db.port}" if db.port else ""
    uri = f"postgresql://{credentials}@{db.host}{port}/{db.database}"
    if neon_endpoint_option:
        endpoint_id = db.host.split(".")[0]
        uri += f"?options=endpoint%3D{endpoint_id}"
    return uri


def timestamped_filename(database: str, now: datetime | None = None) -> str:
    """Archive name: <database>_DD_MM_YYYY_HH:MM:SS.tar"""
    now = now or datetime.now()
    return f"{database}_{now:%d_%m_%Y_%H:%M:%S}.tar"


def object_key_for(database: str, filename: str, now: datetime | None = None) -> str:
    """Bucket key: <database>/YYYY/MM/DD/<filename>"""
    now = now or datetime.now()
    return f"{database}/{now:%Y/%m/%d}/{filename}"


def _subprocess_env(config: BackupConfig) -> dict:
    return {**os.environ, "PGSSLMODE": config.ssl_mode}


async def run_pg_tool(args: List[str], config: BackupConfig) -> tuple[int, str]:
    """Run a PostgreSQL client tool and return (exit code, stderr)."""
    process = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=_subprocess_env(config),
    )
    _, stderr = await process.communicate()
    return process.returncode, stderr.decode(errors="replace")


async def dump_database(config: BackupConfig, now: datetime | None = None) -> Path:
    """
    Dump the database into a tar archive inside config.backup_dir.

    Args:
        config: Backup configuration
        now: Timestamp used for the archive name (default: current time)

    Returns:
        Path to the written archive

    Raises:
        BackupError: If pg_dump cannot be started or exits non-zero
    """
    db = parse_database_url(config.database_url)
    uri = build_connection_uri(db, config.neon_endpoint_option)

    config.backup_dir.mkdir(parents=True, exist_ok=True)
    output_path = config.backup_dir / timestamped_filename(db.database, now)

    logger.info("database_dump_started", database=db.database, output=str(output_path))

    args = [
        "pg_dump",
        f"--dbname={uri}",
        "--no-owner",
        "--no-privileges",
        "--format=tar",
        f"--file={output_path}",
    ]

    try:
        returncode, stderr = await run_pg_tool(args, config)
    except FileNotFoundError as e:
        raise BackupError(
            "pg_dump executable not found on PATH",
            details={"database": db.database},
        ) from e

    if returncode != 0:
        raise BackupError(
            f"pg_dump exited with status {returncode}",
            details={
                "database": db.database,
                "stderr": stderr.replace(db.password, "***") if db.password else stderr,
            },
        )

    logger.info(
        "database_dump_completed",
        database=db.database,
        output=str(output_path),
        size=output_path.stat().st_size,
    )

    return output_path


def remove_local_file(path: Path) -> bool:
    """
    Delete a local archive.

    Returns:
        True if a file was deleted, False if it was already gone
    """
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        raise BackupError(
            f"Failed to delete local backup file: {e}",
            details={"path": str(path)},
        ) from e

    logger.info("local_backup_deleted", path=str(path))
    return True


async def run_backup_cycle(
    config: BackupConfig,
    http: httpx.AsyncClient,
    now: datetime | None = None,
) -> BackupResult:
    """
    Dump, upload, and clean up one backup.

    The local archive is deleted only after the upload returned a result.
    A failed upload leaves it in place for inspection or a manual retry.

    Args:
        config: Backup configuration
        http: HTTP client used for B2 calls
        now: Timestamp used for naming (default: current time)

    Returns:
        BackupResult with the stored object's details
    """
    from ulid import ULID

    operation_id = str(ULID())
    log = logger.bind(operation_id=operation_id)
    start_time = datetime.now(UTC)
    now = now or datetime.now()

    log.info("backup_cycle_started")

    try:
        local_path = await dump_database(config, now)
        size = local_path.stat().st_size

        database = parse_database_url(config.database_url).database
        object_name = object_key_for(database, local_path.name, now)

        upload = await upload_file(http, config.transfer, local_path, object_name)

        local_deleted = False
        if config.delete_after_upload:
            local_deleted = remove_local_file(local_path)

    except Exception as e:
        log.error("backup_cycle_failed", error=str(e))
        raise

    duration = (datetime.now(UTC) - start_time).total_seconds()

    log.info(
        "backup_cycle_completed",
        object_name=object_name,
        file_id=upload.file_id,
        size=size,
        duration=duration,
    )

    return BackupResult(
        operation_id=operation_id,
        local_path=local_path,
        object_name=object_name,
        size_bytes=size,
        upload=upload,
        local_deleted=local_deleted,
        duration_seconds=duration,
    )
