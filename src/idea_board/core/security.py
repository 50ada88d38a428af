"""Verification of bearer tokens issued by the account service."""

from __future__ import annotations

from jose import JWTError, jwt

from idea_board.core.settings import settings


def decode_account_token(token: str) -> str:
    """Return the account id carried in a signed access token.

    Args:
        token: Encoded JWT from the ``Authorization`` header.

    Returns:
        The ``sub`` claim.

    Raises:
        JWTError: If the token is malformed, expired, unsigned by us, or has no subject.
    """
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    subject = payload.get("sub")
    if not subject or not isinstance(subject, str):
        raise JWTError("Token has no subject")
    return subject
