from __future__ import annotations

import base64
import binascii
import hmac
from typing import Optional

from backend.internal_core.config import AdminConfig

ADMIN_USERNAME = "admin"
ADMIN_TOKEN_HEADER = "x-admin-token"


class AdminNotConfiguredError(RuntimeError):
    """Raised when neither an admin password nor an admin token is configured."""


class UnauthorizedError(RuntimeError):
    """Raised when the request carries no valid admin credentials."""


def _secret_matches(supplied: Optional[str], expected: Optional[str]) -> bool:
    if not supplied or not expected:
        return False
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def parse_basic_auth(header: Optional[str]) -> Optional[tuple[str, str]]:
    if not header or not header.startswith("Basic "):
        return None
    try:
        decoded = base64.b64decode(header[len("Basic "):].strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return username, password


def check_admin_credentials(
    config: AdminConfig,
    authorization: Optional[str],
    admin_token: Optional[str],
) -> None:
    """Authorize one request or raise.

    Either scheme is sufficient: basic auth as ``admin`` with the admin
    password, or the ``x-admin-token`` header equal to the admin token.
    """
    if not config.admin_configured:
        raise AdminNotConfiguredError("Admin credentials not configured")

    basic = parse_basic_auth(authorization)
    if basic is not None:
        username, password = basic
        if username == ADMIN_USERNAME and _secret_matches(password, config.admin_password):
            return

    if _secret_matches(admin_token, config.admin_token):
        return

    raise UnauthorizedError("Unauthorized")
