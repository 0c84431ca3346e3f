# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
b2backup Exceptions - Custom exceptions for the b2backup package.
"""


class B2BackupError(Exception):
    """Base exception for all b2backup errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(B2BackupError):
    """Raised when configuration is invalid or incomplete."""

    pass


class AuthError(B2BackupError):
    """Raised when the account authorization call is rejected."""

    @property
    def status(self) -> int | None:
        return self.details.get("status")

    @property
    def body(self) -> str:
        return self.details.get("body", "")


class UploadError(B2BackupError):
    """Raised when an upload cannot be completed."""

    @property
    def status(self) -> int | None:
        return self.details.get("status")

    @property
    def body(self) -> str:
        return self.details.get("body", "")


class TransferError(UploadError):
    """Raised when a single part exhausts its retry budget."""

    @property
    def part_number(self) -> int | None:
        return self.details.get("part_number")

    @property
    def attempts(self) -> int:
        return self.details.get("attempts", 0)


class ProtocolError(UploadError):
    """Raised when a B2 API call (start, finish, upload URL) is rejected."""

    @property
    def call(self) -> str | None:
        return self.details.get("call")


class BackupError(B2BackupError):
    """Raised when producing or cleaning up a local backup fails."""

    pass


class RestoreError(B2BackupError):
    """Raised when restoring a backup archive fails."""

    pass
