# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
B2 Credential Session - Account authorization.

authorize_account() performs one b2_authorize_account round trip per call
and keeps nothing between calls. Callers hold on to the returned Session and
call again when the service answers 401/403.
"""

import base64

import httpx
import structlog

from b2backup.b2.models import Session
from b2backup.config import TransferConfig
from b2backup.exceptions import AuthError

logger = structlog.get_logger()


def basic_auth_header(key_id: str, application_key: str) -> str:
    """Build the Basic authorization header value for the key pair."""
    token = base64.b64encode(f"{key_id}:{application_key}".encode()).decode("ascii")
    return f"Basic {token}"


async def authorize_account(http: httpx.AsyncClient, config: TransferConfig) -> Session:
    """
    Obtain a fresh authorization context from B2.

    Args:
        http: HTTP client used for the request
        config: Transfer configuration holding the key pair and auth URL

    Returns:
        New Session

    Raises:
        AuthError: If the service does not answer with a success status
    """
    try:
        response = await http.get(
            config.auth_url,
            headers={
                "Authorization": basic_auth_header(config.key_id, config.application_key)
            },
            timeout=config.request_timeout_seconds,
        )
    except httpx.TransportError as e:
        raise AuthError(
            f"Authorization request failed: {e}",
            details={"status": None, "body": ""},
        ) from e

    if not response.is_success:
        raise AuthError(
            f"Authorization failed: {response.status_code} {response.reason_phrase}",
            details={"status": response.status_code, "body": response.text},
        )

    session = Session.from_json(response.json())

    logger.debug("b2_account_authorized", account_id=session.account_id)

    return session
