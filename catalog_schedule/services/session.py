# catalog_schedule/services/session.py

"""Signed admin session tokens.

A token is an HS256 JSON Web Token whose claims carry the username and
an ``exp`` expiry in epoch seconds.
"""

import hmac
import logging
import time
from dataclasses import dataclass

from authlib.jose import JoseError, JsonWebToken

from catalog_schedule.config.settings import Settings

logger = logging.getLogger("catalog_schedule.session")

ALGORITHM = "HS256"

# Only the one signing algorithm is accepted on decode
_jwt = JsonWebToken([ALGORITHM])

_CLAIMS_OPTIONS = {
    "username": {"essential": True},
    "exp": {"essential": True},
}


@dataclass
class SessionPayload:
    """The authenticated principal carried by a session token."""

    username: str
    exp: int  # epoch seconds


def check_credentials(
    username: str,
    password: str,
    expected_username: str | None = None,
    expected_password: str | None = None,
) -> bool:
    """Compare against the configured admin credentials in constant time."""
    want_user = (
        Settings.ADMIN_USERNAME
        if expected_username is None
        else expected_username
    )
    want_pass = (
        Settings.ADMIN_PASSWORD
        if expected_password is None
        else expected_password
    )
    if not want_user or not want_pass:
        logger.warning("Admin credentials are not configured")
        return False
    user_ok = hmac.compare_digest(username.encode(), want_user.encode())
    pass_ok = hmac.compare_digest(password.encode(), want_pass.encode())
    return user_ok and pass_ok


def create_session(
    username: str,
    ttl_seconds: int | None = None,
    secret: str | None = None,
) -> tuple[SessionPayload, str]:
    """Issue a token for *username*; returns the payload and the token."""
    ttl = ttl_seconds if ttl_seconds is not None else Settings.SESSION_TTL_SECONDS
    payload = SessionPayload(username=username, exp=int(time.time()) + ttl)
    header = {"alg": ALGORITHM, "typ": "JWT"}
    claims = {"username": payload.username, "exp": payload.exp}
    try:
        token = _jwt.encode(header, claims, secret or Settings.SESSION_SECRET)
    except JoseError:
        logger.exception("Failed to sign session for %s", username)
        raise
    logger.info("Issued session for %s", username)
    return payload, token.decode("ascii")


def verify_session(
    token: str | None,
    secret: str | None = None,
) -> SessionPayload | None:
    """Return the principal for a valid, unexpired token, else ``None``."""
    if not token or not isinstance(token, str):
        return None
    try:
        claims = _jwt.decode(
            token,
            secret or Settings.SESSION_SECRET,
            claims_options=_CLAIMS_OPTIONS,
        )
        claims.validate()
    except (JoseError, ValueError, TypeError) as exc:
        logger.debug("Rejected session token: %s", exc)
        return None

    username = claims.get("username")
    if not isinstance(username, str):
        return None
    return SessionPayload(username=username, exp=int(claims["exp"]))
