# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
b2backup Builder - Functional builder pattern for transfer configuration.

This module provides pure functions for building TransferConfig objects.
Each function takes a config dict and returns a new dict with the
modification applied (immutable updates).
"""

from typing import Any, Callable, Dict

from b2backup.config import (
    DEFAULT_AUTH_URL,
    DEFAULT_BASE_DELAY_SECONDS,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_LARGE_THRESHOLD_BYTES,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PART_SIZE_BYTES,
    TransferConfig,
)


# Type alias for builder functions
ConfigDict = Dict[str, Any]
BuilderFunc = Callable[[ConfigDict], ConfigDict]


def create_empty_config() -> ConfigDict:
    """
    Create an initial empty configuration dictionary.

    Returns:
        Dict with default values for all configuration fields
    """
    return {
        "key_id": "",
        "application_key": "",
        "bucket_id": "",
        "auth_url": DEFAULT_AUTH_URL,
        "large_threshold_bytes": DEFAULT_LARGE_THRESHOLD_BYTES,
        "part_size_bytes": DEFAULT_PART_SIZE_BYTES,
        "max_retries": DEFAULT_MAX_RETRIES,
        "base_delay_seconds": DEFAULT_BASE_DELAY_SECONDS,
        "content_type": DEFAULT_CONTENT_TYPE,
        "max_concurrent_parts": 1,
        "cancel_on_failure": False,
        "request_timeout_seconds": 300.0,
    }


def with_credentials(config: ConfigDict, key_id: str, application_key: str) -> ConfigDict:
    """
    Set the B2 application key pair.

    Args:
        config: Current configuration dictionary
        key_id: Application key ID
        application_key: Application key secret

    Returns:
        New configuration dictionary with credentials set
    """
    return {**config, "key_id": key_id, "application_key": application_key}


def with_bucket(config: ConfigDict, bucket_id: str) -> ConfigDict:
    """
    Set the destination bucket ID.

    Args:
        config: Current configuration dictionary
        bucket_id: B2 bucket ID (not the bucket name)

    Returns:
        New configuration dictionary with bucket set
    """
    return {**config, "bucket_id": bucket_id}


def with_auth_url(config: ConfigDict, auth_url: str) -> ConfigDict:
    return {**config, "auth_url": auth_url}


def with_large_threshold(config: ConfigDict, threshold_bytes: int) -> ConfigDict:
    """
    Set the size at which uploads switch to the multipart protocol.

    Args:
        config: Current configuration dictionary
        threshold_bytes: Files of at least this many bytes use multipart

    Returns:
        New configuration dictionary with threshold set
    """
    if threshold_bytes < 0:
        raise ValueError(f"large_threshold_bytes must be >= 0, got {threshold_bytes}")
    return {**config, "large_threshold_bytes": threshold_bytes}


def with_part_size(config: ConfigDict, part_size_bytes: int) -> ConfigDict:
    """
    Set the size of each part of a large file.

    Bounds are checked when the config is built.
    """
    return {**config, "part_size_bytes": part_size_bytes}


def with_retry_policy(
    config: ConfigDict,
    max_retries: int,
    base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS,
) -> ConfigDict:
    """
    Set the per-part retry budget and backoff base.

    Args:
        config: Current configuration dictionary
        max_retries: Total attempts per part
        base_delay_seconds: Wait before attempt n+1 is n * base_delay_seconds

    Returns:
        New configuration dictionary with retry policy set
    """
    if max_retries < 1:
        raise ValueError(f"max_retries must be >= 1, got {max_retries}")
    if base_delay_seconds < 0:
        raise ValueError(f"base_delay_seconds must be >= 0, got {base_delay_seconds}")
    return {
        **config,
        "max_retries": max_retries,
        "base_delay_seconds": base_delay_seconds,
    }


def with_parallel_parts(config: ConfigDict, max_parts: int) -> ConfigDict:
    """
    Allow up to max_parts parts of one large file in flight at once.
    """
    if max_parts < 1:
        raise ValueError(f"max_concurrent_parts must be >= 1, got {max_parts}")
    return {**config, "max_concurrent_parts": max_parts}


def with_content_type(config: ConfigDict, content_type: str) -> ConfigDict:
    return {**config, "content_type": content_type}


def cancel_on_failure(config: ConfigDict) -> ConfigDict:
    """
    Cancel the unfinished large file when its part loop fails.

    Without this, a failed multipart upload leaves an unfinished file on
    the bucket that must be cleaned up separately.
    """
    return {**config, "cancel_on_failure": True}


def build_transfer_config(config_dict: ConfigDict) -> TransferConfig:
    """
    Validate and build an immutable TransferConfig from a configuration dictionary.

    Args:
        config_dict: Configuration dictionary built using builder functions

    Returns:
        Validated, immutable TransferConfig instance

    Raises:
        ConfigurationError: If validation fails
    """
    return TransferConfig(**config_dict)


def pipe(*funcs: BuilderFunc) -> BuilderFunc:
    """
    Compose multiple builder functions into a single function.

        config = pipe(
            lambda c: with_bucket(c, "4a48fe8875c6214145260818"),
            lambda c: with_part_size(c, 50 * 1024 * 1024),
            cancel_on_failure,
        )(create_empty_config())
    """

    def composed(config: ConfigDict) -> ConfigDict:
        result = config
        for func in funcs:
            result = func(result)
        return result

    return composed


def create_transfer_config(
    key_id: str,
    application_key: str,
    bucket_id: str,
    *,
    large_threshold_bytes: int | None = None,
    part_size_bytes: int | None = None,
    max_retries: int | None = None,
    base_delay_seconds: float | None = None,
    max_concurrent_parts: int | None = None,
    **kwargs: Any,
) -> TransferConfig:
    """
    Create transfer configuration from simple parameters.

    This is the recommended user-facing API for creating configurations.

    Example:
        config = create_transfer_config(
            key_id="0014a8e...",
            application_key="K001...",
            bucket_id="4a48fe8875c6214145260818",
            part_size_bytes=50 * 1024 * 1024,
        )
    """
    config_dict = create_empty_config()
    config_dict = with_credentials(config_dict, key_id, application_key)
    config_dict = with_bucket(config_dict, bucket_id)

    if large_threshold_bytes is not None:
        config_dict = with_large_threshold(config_dict, large_threshold_bytes)

    if part_size_bytes is not None:
        config_dict = with_part_size(config_dict, part_size_bytes)

    if max_retries is not None:
        config_dict = with_retry_policy(
            config_dict,
            max_retries,
            config_dict["base_delay_seconds"] if base_delay_seconds is None else base_delay_seconds,
        )
    elif base_delay_seconds is not None:
        config_dict = with_retry_policy(config_dict, config_dict["max_retries"], base_delay_seconds)

    if max_concurrent_parts is not None:
        config_dict = with_parallel_parts(config_dict, max_concurrent_parts)

    # Apply any additional kwargs
    for key, value in kwargs.items():
        if key in config_dict:
            config_dict[key] = value

    return build_transfer_config(config_dict)
