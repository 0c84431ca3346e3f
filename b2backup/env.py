# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Environment-based configuration helpers.

These helpers read a small set of well-known environment variables
(optionally loaded from a dotenv file such as .dev.vars) and build
validated TransferConfig / BackupConfig instances from them.
"""

from __future__ import annotations

import os
from pathlib import Path

import structlog
from dotenv import load_dotenv

from b2backup.builder import create_transfer_config
from b2backup.config import BackupConfig, TransferConfig
from b2backup.errors import (
    explain_invalid_float_env,
    explain_invalid_int_env,
    explain_missing_env,
)
from b2backup.exceptions import ConfigurationError

logger = structlog.get_logger()

DEFAULT_ENV_FILE = ".dev.vars"


def load_env_file(path: str | Path = DEFAULT_ENV_FILE) -> bool:
    """
    Load variables from a dotenv file without overriding the process env.

    Returns:
        True if the file existed and was loaded
    """
    env_path = Path(path)
    if not env_path.is_file():
        return False
    load_dotenv(env_path, override=False)
    logger.debug("env_file_loaded", path=str(env_path))
    return True


def _require(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ConfigurationError(explain_missing_env(name))
    return value


def _parse_positive_int(name: str) -> int | None:
    value = os.getenv(name)
    if not value:
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_int_env(name, value)) from exc
    if parsed < 1:
        raise ConfigurationError(explain_invalid_int_env(name, value))
    return parsed


def _parse_non_negative_float(name: str) -> float | None:
    value = os.getenv(name)
    if not value:
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_float_env(name, value)) from exc
    if parsed < 0:
        raise ConfigurationError(explain_invalid_float_env(name, value))
    return parsed


def create_transfer_config_from_env() -> TransferConfig:
    """
    Create a TransferConfig from environment variables.

    Required:
        - BACKBLAZE_KEY_ID
        - BACKBLAZE_APPLICATION_KEY
        - BACKBLAZE_BUCKET_ID

    Optional:
        - B2_LARGE_THRESHOLD_BYTES: multipart threshold (default: 100 MiB)
        - B2_PART_SIZE_BYTES: part size (default: 100 MiB)
        - B2_MAX_RETRIES: attempts per part (default: 3)
        - B2_BASE_DELAY_MS: backoff base in milliseconds (default: 500)
        - B2_MAX_CONCURRENT_PARTS: parts in flight (default: 1)
    """
    key_id = _require("BACKBLAZE_KEY_ID")
    application_key = _require("BACKBLAZE_APPLICATION_KEY")
    bucket_id = _require("BACKBLAZE_BUCKET_ID")

    base_delay_ms = _parse_non_negative_float("B2_BASE_DELAY_MS")

    return create_transfer_config(
        key_id,
        application_key,
        bucket_id,
        large_threshold_bytes=_parse_positive_int("B2_LARGE_THRESHOLD_BYTES"),
        part_size_bytes=_parse_positive_int("B2_PART_SIZE_BYTES"),
        max_retries=_parse_positive_int("B2_MAX_RETRIES"),
        base_delay_seconds=None if base_delay_ms is None else base_delay_ms / 1000,
        max_concurrent_parts=_parse_positive_int("B2_MAX_CONCURRENT_PARTS"),
    )


def create_backup_config_from_env() -> BackupConfig:
    """
    Create a BackupConfig from environment variables.

    Required:
        - DATABASE_URL
        - everything create_transfer_config_from_env() requires

    Optional:
        - BACKUP_DIR: local archive directory (default: /tmp/backup)
        - BACKUP_INTERVAL_HOURS: hours between scheduled runs (default: 24)
        - RESTORE_FILE_NAME: archive restored by `b2backup restore`
    """
    database_url = _require("DATABASE_URL")
    transfer = create_transfer_config_from_env()

    backup_dir_env = os.getenv("BACKUP_DIR")
    interval_hours = _parse_non_negative_float("BACKUP_INTERVAL_HOURS")

    return BackupConfig(
        database_url=database_url,
        transfer=transfer,
        backup_dir=Path(backup_dir_env) if backup_dir_env else Path("/tmp/backup"),
        interval_hours=24.0 if interval_hours is None else interval_hours,
        restore_file_name=os.getenv("RESTORE_FILE_NAME") or None,
    )
