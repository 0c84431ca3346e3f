# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
B2 data model - Immutable values exchanged with the B2 native API.

Every record is frozen: a session or upload credential is replaced
wholesale when it expires, never patched in place.
"""

from dataclasses import dataclass
from typing import Any, Dict, List


@dataclass(frozen=True)
class Session:
    """Authorization context returned by b2_authorize_account."""

    api_url: str
    authorization_token: str
    download_url: str
    account_id: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Session":
        return cls(
            api_url=data["apiUrl"],
            authorization_token=data["authorizationToken"],
            download_url=data["downloadUrl"],
            account_id=data["accountId"],
        )

    def __repr__(self) -> str:
        return f"Session(api_url={self.api_url!r}, account_id={self.account_id!r})"


@dataclass(frozen=True)
class UploadCredential:
    """
    Upload URL plus token, scoped to one bucket (small files) or to the
    part stream of one large file.
    """

    upload_url: str
    authorization_token: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "UploadCredential":
        return cls(
            upload_url=data["uploadUrl"],
            authorization_token=data["authorizationToken"],
        )

    def __repr__(self) -> str:
        return f"UploadCredential(upload_url={self.upload_url!r})"


@dataclass(frozen=True)
class FileTransfer:
    """A large file started on the service and not yet finished."""

    file_id: str
    file_name: str
    bucket_id: str
    content_type: str


@dataclass(frozen=True)
class PartRecord:
    """One accepted part: its 1-based number and the SHA-1 of its bytes."""

    part_number: int
    sha1: str


@dataclass(frozen=True)
class UploadResult:
    """Terminal success descriptor for both upload paths."""

    file_id: str
    file_name: str
    account_id: str
    bucket_id: str
    content_type: str | None = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "UploadResult":
        return cls(
            file_id=data["fileId"],
            file_name=data["fileName"],
            account_id=data["accountId"],
            bucket_id=data["bucketId"],
            content_type=data.get("contentType"),
        )


def manifest_of(records: List[PartRecord]) -> List[str]:
    """
    Build the partSha1Array for b2_finish_large_file.

    Records are ordered by part number and must form the contiguous
    sequence 1..n.
    """
    ordered = sorted(records, key=lambda r: r.part_number)
    expected = list(range(1, len(ordered) + 1))
    actual = [r.part_number for r in ordered]
    if actual != expected:
        raise ValueError(f"Part numbers are not contiguous from 1: {actual}")
    return [r.sha1 for r in ordered]
