# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
b2backup Configuration - Immutable configuration data structures.

All configuration is frozen (immutable) after creation so that a transfer
in flight always sees the values it was started with.
"""

from dataclasses import dataclass, field, asdict, replace
from pathlib import Path
from typing import List

from b2backup.errors import explain_part_size_out_of_range

MIB = 1024 * 1024

# Service limits for a single part of a large file
MIN_PART_SIZE_BYTES = 5_000_000
MAX_PART_SIZE_BYTES = 5_000_000_000

DEFAULT_AUTH_URL = "https://api.backblazeb2.com/b2api/v2/b2_authorize_account"
DEFAULT_LARGE_THRESHOLD_BYTES = 100 * MIB
DEFAULT_PART_SIZE_BYTES = 100 * MIB
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_SECONDS = 0.5
DEFAULT_CONTENT_TYPE = "application/x-tar"


@dataclass(frozen=True)
class TransferConfig:
    """
    Immutable configuration for the B2 transfer engine.

    Holds the account credentials, the destination bucket and every
    tunable of the upload strategy (threshold, part size, retry policy).
    """

    # Application key pair used for b2_authorize_account
    key_id: str

    application_key: str

    # Destination bucket ID (not the bucket name)
    bucket_id: str

    auth_url: str = DEFAULT_AUTH_URL

    # Files at or above this size use the multipart protocol
    large_threshold_bytes: int = DEFAULT_LARGE_THRESHOLD_BYTES

    # Size of each part of a large file
    part_size_bytes: int = DEFAULT_PART_SIZE_BYTES

    # Total attempts per part (not additional retries)
    max_retries: int = DEFAULT_MAX_RETRIES

    # Backoff before attempt n+1 is n * base_delay_seconds
    base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS

    content_type: str = DEFAULT_CONTENT_TYPE

    # 1 keeps parts strictly sequential
    max_concurrent_parts: int = 1

    # Call b2_cancel_large_file when the part loop fails
    cancel_on_failure: bool = False

    request_timeout_seconds: float = 300.0

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        errors: List[str] = []

        if not self.key_id:
            errors.append("key_id is required")
        if not self.application_key:
            errors.append("application_key is required")
        if not self.bucket_id:
            errors.append("bucket_id is required")

        if self.large_threshold_bytes < 0:
            errors.append(
                f"large_threshold_bytes must be >= 0, got {self.large_threshold_bytes}"
            )

        if not MIN_PART_SIZE_BYTES <= self.part_size_bytes <= MAX_PART_SIZE_BYTES:
            errors.append(
                explain_part_size_out_of_range(
                    self.part_size_bytes, MIN_PART_SIZE_BYTES, MAX_PART_SIZE_BYTES
                )
            )

        if self.max_retries < 1:
            errors.append(f"max_retries must be >= 1, got {self.max_retries}")

        if self.base_delay_seconds < 0:
            errors.append(
                f"base_delay_seconds must be >= 0, got {self.base_delay_seconds}"
            )

        if self.max_concurrent_parts < 1:
            errors.append(
                f"max_concurrent_parts must be >= 1, got {self.max_concurrent_parts}"
            )

        if self.request_timeout_seconds <= 0:
            errors.append(
                f"request_timeout_seconds must be > 0, got {self.request_timeout_seconds}"
            )

        # Raise all errors at once
        if errors:
            from b2backup.exceptions import ConfigurationError

            raise ConfigurationError(
                "Transfer configuration validation failed",
                details={"errors": errors},
            )

    def with_updates(self, **kwargs) -> "TransferConfig":
        """
        Create a new config with updated values.

        Since the config is frozen, this creates a new instance.
        """
        current = asdict(self)
        current.update(kwargs)
        return TransferConfig(**current)

    def __repr__(self) -> str:
        return (
            f"TransferConfig(key_id={self.key_id!r}, application_key='***', "
            f"bucket_id={self.bucket_id!r}, "
            f"large_threshold_bytes={self.large_threshold_bytes}, "
            f"part_size_bytes={self.part_size_bytes}, "
            f"max_retries={self.max_retries})"
        )


@dataclass(frozen=True)
class BackupConfig:
    """
    Immutable configuration for the dump/upload/restore cycle.
    """

    # PostgreSQL connection URL (contains the password, kept out of repr)
    database_url: str = field(repr=False)

    transfer: TransferConfig

    # Local directory that holds archives between dump and upload
    backup_dir: Path = field(default_factory=lambda: Path("/tmp/backup"))

    # Hours between two scheduled backups
    interval_hours: float = 24.0

    # Archive name inside backup_dir used by restore
    restore_file_name: str | None = None

    delete_after_upload: bool = True

    # Append options=endpoint%3D<id> for Neon-hosted databases
    neon_endpoint_option: bool = True

    ssl_mode: str = "require"

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        errors: List[str] = []

        if not self.database_url:
            errors.append("database_url is required")
        elif not self.database_url.lower().startswith(("postgres://", "postgresql://")):
            errors.append("database_url must be a postgres:// or postgresql:// URL")

        if self.interval_hours <= 0:
            errors.append(f"interval_hours must be > 0, got {self.interval_hours}")

        if errors:
            from b2backup.exceptions import ConfigurationError

            raise ConfigurationError(
                "Backup configuration validation failed",
                details={"errors": errors},
            )

    def with_updates(self, **kwargs) -> "BackupConfig":
        """Create a new config with updated values."""
        return replace(self, **kwargs)
