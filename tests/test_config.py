# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Configuration tests: validation, builder functions, environment parsing.
"""

import os
from pathlib import Path

import pytest

from conftest import AUTH_URL

from b2backup.builder import (
    build_transfer_config,
    cancel_on_failure,
    create_empty_config,
    create_transfer_config,
    pipe,
    with_auth_url,
    with_bucket,
    with_credentials,
    with_large_threshold,
    with_parallel_parts,
    with_part_size,
    with_retry_policy,
)
from b2backup.config import (
    DEFAULT_BASE_DELAY_SECONDS,
    DEFAULT_LARGE_THRESHOLD_BYTES,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PART_SIZE_BYTES,
    MIB,
    BackupConfig,
    TransferConfig,
)
from b2backup.env import (
    create_backup_config_from_env,
    create_transfer_config_from_env,
    load_env_file,
)
from b2backup.exceptions import ConfigurationError

ENV_VARS = [
    "BACKBLAZE_KEY_ID",
    "BACKBLAZE_APPLICATION_KEY",
    "BACKBLAZE_BUCKET_ID",
    "DATABASE_URL",
    "B2_LARGE_THRESHOLD_BYTES",
    "B2_PART_SIZE_BYTES",
    "B2_MAX_RETRIES",
    "B2_BASE_DELAY_MS",
    "B2_MAX_CONCURRENT_PARTS",
    "BACKUP_DIR",
    "BACKUP_INTERVAL_HOURS",
    "RESTORE_FILE_NAME",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        # Registered first so values loaded from dotenv files are undone too
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


@pytest.fixture
def b2_env(clean_env):
    clean_env.setenv("BACKBLAZE_KEY_ID", "0014a8e")
    clean_env.setenv("BACKBLAZE_APPLICATION_KEY", "K001secret")
    clean_env.setenv("BACKBLAZE_BUCKET_ID", "4a48fe8875c6214145260818")
    return clean_env


# ============================================================================
# TransferConfig
# ============================================================================

def test_transfer_config_defaults():
    config = TransferConfig(key_id="k", application_key="s", bucket_id="b")

    assert config.large_threshold_bytes == 100 * MIB
    assert config.part_size_bytes == 100 * MIB
    assert config.max_retries == 3
    assert config.base_delay_seconds == 0.5
    assert config.max_concurrent_parts == 1
    assert config.cancel_on_failure is False


def test_transfer_config_collects_all_errors():
    with pytest.raises(ConfigurationError) as exc_info:
        TransferConfig(
            key_id="",
            application_key="",
            bucket_id="",
            part_size_bytes=1000,
            max_retries=0,
            base_delay_seconds=-1,
        )

    errors = exc_info.value.details["errors"]
    assert "key_id is required" in errors
    assert "bucket_id is required" in errors
    assert any("part_size_bytes=1000" in e for e in errors)
    assert any("max_retries" in e for e in errors)
    assert any("base_delay_seconds" in e for e in errors)


@pytest.mark.parametrize("part_size", [5_000_000, 5_000_000_000])
def test_part_size_bounds_are_inclusive(part_size):
    config = TransferConfig(key_id="k", application_key="s", bucket_id="b", part_size_bytes=part_size)
    assert config.part_size_bytes == part_size


@pytest.mark.parametrize("part_size", [4_999_999, 5_000_000_001])
def test_part_size_out_of_bounds(part_size):
    with pytest.raises(ConfigurationError):
        TransferConfig(key_id="k", application_key="s", bucket_id="b", part_size_bytes=part_size)


def test_transfer_config_is_frozen(transfer_config):
    with pytest.raises(AttributeError):
        transfer_config.max_retries = 10


def test_with_updates_revalidates(transfer_config):
    updated = transfer_config.with_updates(max_retries=5)
    assert updated.max_retries == 5
    assert transfer_config.max_retries == 3

    with pytest.raises(ConfigurationError):
        transfer_config.with_updates(max_concurrent_parts=0)


def test_repr_hides_application_key(transfer_config):
    assert "app-key" not in repr(transfer_config)


# ============================================================================
# BackupConfig
# ============================================================================

def test_backup_config_requires_postgres_url(transfer_config):
    with pytest.raises(ConfigurationError):
        BackupConfig(database_url="mysql://u:p@h/db", transfer=transfer_config)


def test_backup_config_interval_must_be_positive(transfer_config):
    with pytest.raises(ConfigurationError):
        BackupConfig(
            database_url="postgresql://u:p@h/db",
            transfer=transfer_config,
            interval_hours=0,
        )


def test_backup_config_repr_hides_url(backup_config):
    assert "s3cret" not in repr(backup_config)


def test_backup_config_with_updates_keeps_transfer(backup_config):
    updated = backup_config.with_updates(restore_file_name="x.tar")

    assert updated.restore_file_name == "x.tar"
    assert updated.transfer is backup_config.transfer
    assert backup_config.restore_file_name is None


# ============================================================================
# Builder
# ============================================================================

def test_builder_pipe():
    config = build_transfer_config(
        pipe(
            lambda c: with_credentials(c, "k", "s"),
            lambda c: with_bucket(c, "b"),
            lambda c: with_auth_url(c, AUTH_URL),
            lambda c: with_large_threshold(c, 50 * MIB),
            lambda c: with_part_size(c, 10 * MIB),
            lambda c: with_retry_policy(c, 5, 1.0),
            lambda c: with_parallel_parts(c, 4),
            cancel_on_failure,
        )(create_empty_config())
    )

    assert config.auth_url == AUTH_URL
    assert config.large_threshold_bytes == 50 * MIB
    assert config.part_size_bytes == 10 * MIB
    assert config.max_retries == 5
    assert config.base_delay_seconds == 1.0
    assert config.max_concurrent_parts == 4
    assert config.cancel_on_failure is True


def test_builder_functions_do_not_mutate():
    base = create_empty_config()
    updated = with_bucket(base, "b")

    assert base["bucket_id"] == ""
    assert updated["bucket_id"] == "b"


@pytest.mark.parametrize(
    "builder",
    [
        lambda c: with_large_threshold(c, -1),
        lambda c: with_retry_policy(c, 0),
        lambda c: with_retry_policy(c, 3, -0.1),
        lambda c: with_parallel_parts(c, 0),
    ],
)
def test_builder_rejects_invalid_values(builder):
    with pytest.raises(ValueError):
        builder(create_empty_config())


def test_create_transfer_config_keeps_defaults():
    config = create_transfer_config("k", "s", "b", base_delay_seconds=0)

    assert config.max_retries == DEFAULT_MAX_RETRIES
    assert config.base_delay_seconds == 0
    assert config.part_size_bytes == DEFAULT_PART_SIZE_BYTES
    assert config.large_threshold_bytes == DEFAULT_LARGE_THRESHOLD_BYTES


def test_create_transfer_config_extra_kwargs():
    config = create_transfer_config("k", "s", "b", content_type="application/gzip")
    assert config.content_type == "application/gzip"


# ============================================================================
# Environment
# ============================================================================

def test_transfer_config_from_env_defaults(b2_env):
    config = create_transfer_config_from_env()

    assert config.key_id == "0014a8e"
    assert config.bucket_id == "4a48fe8875c6214145260818"
    assert config.max_retries == DEFAULT_MAX_RETRIES
    assert config.base_delay_seconds == DEFAULT_BASE_DELAY_SECONDS


def test_transfer_config_from_env_overrides(b2_env):
    b2_env.setenv("B2_LARGE_THRESHOLD_BYTES", str(20 * MIB))
    b2_env.setenv("B2_PART_SIZE_BYTES", str(10 * MIB))
    b2_env.setenv("B2_MAX_RETRIES", "5")
    b2_env.setenv("B2_BASE_DELAY_MS", "250")
    b2_env.setenv("B2_MAX_CONCURRENT_PARTS", "4")

    config = create_transfer_config_from_env()

    assert config.large_threshold_bytes == 20 * MIB
    assert config.part_size_bytes == 10 * MIB
    assert config.max_retries == 5
    assert config.base_delay_seconds == 0.25
    assert config.max_concurrent_parts == 4


def test_missing_credentials(clean_env):
    with pytest.raises(ConfigurationError) as exc_info:
        create_transfer_config_from_env()

    assert "BACKBLAZE_KEY_ID" in str(exc_info.value)


@pytest.mark.parametrize("value", ["abc", "0", "-3"])
def test_invalid_integer_env(b2_env, value):
    b2_env.setenv("B2_MAX_RETRIES", value)

    with pytest.raises(ConfigurationError) as exc_info:
        create_transfer_config_from_env()

    assert "B2_MAX_RETRIES" in str(exc_info.value)


def test_part_size_env_out_of_range(b2_env):
    b2_env.setenv("B2_PART_SIZE_BYTES", "1024")

    with pytest.raises(ConfigurationError) as exc_info:
        create_transfer_config_from_env()

    assert "B2_PART_SIZE_BYTES" in str(exc_info.value)


def test_backup_config_from_env(b2_env, temp_dir: Path):
    b2_env.setenv("DATABASE_URL", "postgresql://app:pw@db.example.com/appdb")
    b2_env.setenv("BACKUP_DIR", str(temp_dir))
    b2_env.setenv("BACKUP_INTERVAL_HOURS", "6")
    b2_env.setenv("RESTORE_FILE_NAME", "appdb_01_02_2026_03:00:00.tar")

    config = create_backup_config_from_env()

    assert config.backup_dir == temp_dir
    assert config.interval_hours == 6.0
    assert config.restore_file_name == "appdb_01_02_2026_03:00:00.tar"
    assert config.transfer.key_id == "0014a8e"


def test_backup_config_from_env_defaults(b2_env):
    b2_env.setenv("DATABASE_URL", "postgresql://app:pw@db.example.com/appdb")

    config = create_backup_config_from_env()

    assert config.backup_dir == Path("/tmp/backup")
    assert config.interval_hours == 24.0
    assert config.restore_file_name is None


def test_backup_config_requires_database_url(b2_env):
    with pytest.raises(ConfigurationError) as exc_info:
        create_backup_config_from_env()

    assert "DATABASE_URL" in str(exc_info.value)


def test_load_env_file(clean_env, temp_dir: Path):
    env_file = temp_dir / ".dev.vars"
    env_file.write_text("BACKBLAZE_KEY_ID=from-file\nBACKBLAZE_BUCKET_ID=bucket-file\n")
    clean_env.setenv("BACKBLAZE_BUCKET_ID", "from-process")

    assert load_env_file(env_file) is True

    assert os.environ["BACKBLAZE_KEY_ID"] == "from-file"
    # Process environment wins over the file
    assert os.environ["BACKBLAZE_BUCKET_ID"] == "from-process"


def test_load_env_file_missing(temp_dir: Path):
    assert load_env_file(temp_dir / "absent.vars") is False
