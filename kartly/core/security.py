# kartly/core/security.py
"""Security utilities: password hashing, JWT tokens, channel capabilities, webhook signatures."""
import hashlib
import hmac
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import bcrypt
import jwt
from jwt.exceptions import PyJWTError

from kartly.core.config import settings
from kartly.core.logging import logger


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError as e:
        logger.warning(f"Password verification error: {e}")
        return False


def _encode(payload: Dict[str, Any], expires_delta: timedelta) -> str:
    to_encode = payload.copy()
    to_encode["exp"] = datetime.utcnow() + expires_delta
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create a vendor access token. ``data`` must carry ``vendor_id``."""
    payload = dict(data, type="access")
    return _encode(payload, expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and verify a JWT. Raises ``jwt.PyJWTError`` on any failure."""
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


def create_channel_token(channel: str, expires_delta: Optional[timedelta] = None) -> str:
    """Short-lived capability that allows joining exactly one realtime channel."""
    payload = {"type": "channel", "channel": channel}
    return _encode(payload, expires_delta or timedelta(minutes=settings.CHANNEL_TOKEN_EXPIRE_MINUTES))


def verify_channel_token(token: Optional[str], channel: str) -> bool:
    if not token:
        return False
    try:
        payload = decode_token(token)
    except PyJWTError:
        return False
    return payload.get("type") == "channel" and payload.get("channel") == channel


def vendor_id_from_access_token(token: Optional[str]) -> Optional[str]:
    """Return the ``vendor_id`` claim of a valid access token, else None."""
    if not token:
        return None
    try:
        payload = decode_token(token)
    except PyJWTError:
        return None
    if payload.get("type") != "access":
        return None
    return payload.get("vendor_id")


def _password_fingerprint(password_hash: str) -> str:
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]


def create_password_reset_token(vendor_id: str, password_hash: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Short-lived token for resetting a vendor's password.

    Bound to the current password hash, so it stops working once the
    password changes.
    """
    payload = {
        "type": "password_reset",
        "vendor_id": vendor_id,
        "pwd": _password_fingerprint(password_hash),
    }
    return _encode(payload, expires_delta or timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES))


def vendor_id_from_reset_token(token: Optional[str]) -> Optional[str]:
    """Return the ``vendor_id`` of a well-formed, unexpired reset token, else None."""
    if not token:
        return None
    try:
        payload = decode_token(token)
    except PyJWTError:
        return None
    if payload.get("type") != "password_reset":
        return None
    return payload.get("vendor_id")


def reset_token_matches_password(token: str, password_hash: str) -> bool:
    """True while the password the token was issued against is still in place."""
    try:
        payload = decode_token(token)
    except PyJWTError:
        return False
    return hmac.compare_digest(str(payload.get("pwd", "")), _password_fingerprint(password_hash))


def sign_payload(payload: bytes, secret: str) -> str:
    """HMAC-SHA256 hex digest of the raw payload bytes."""
    return hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


def verify_signature(payload: bytes, signature: Optional[str], secret: str) -> bool:
    """Constant-time check of a webhook signature over the exact received bytes."""
    if not signature:
        return False
    expected = sign_payload(payload, secret)
    return hmac.compare_digest(expected, signature.strip())
