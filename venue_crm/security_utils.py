"""
Token utilities

JWT access tokens (python-jose), signed OAuth state (itsdangerous) and the
deny-list used to revoke access tokens on logout.
"""

import logging
import secrets
import time
import uuid
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Any, Optional

import redis
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from jose import ExpiredSignatureError, JWTError
from jose import jwt as jose_jwt

from .config import JWT_ALGORITHM, JWT_EXPIRES_DAYS, JWT_SECRET, SECRET_KEY
from .errors import unauthorized
from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)

OAUTH_STATE_SALT = "oauth-state"
OAUTH_STATE_MAX_AGE = 600  # 10 minutes to complete the provider login

# Format: {jti: expires_at_unix}
_revoked_tokens: dict[str, int] = {}
_revoked_lock = Lock()


# ============================================================================
# ACCESS TOKENS
# ============================================================================


def create_access_token(user, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed access token for ``user``

    Args:
        user: User row the token is issued for
        expires_delta: Token lifetime (default JWT_EXPIRES_DAYS)
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=JWT_EXPIRES_DAYS))
    to_encode = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "provider": user.provider,
        "jti": uuid.uuid4().hex,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jose_jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify and decode an access token

    Raises:
        AppError: 401 TOKEN_EXPIRED or INVALID_TOKEN
    """
    try:
        payload = jose_jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError as e:
        logger.info("ℹ️ Expired access token presented")
        raise unauthorized("Token has expired", code="TOKEN_EXPIRED") from e
    except JWTError as e:
        logger.warning(f"⚠️ JWT verification failed: {e}")
        raise unauthorized("Invalid or expired token", code="INVALID_TOKEN") from e

    if not payload.get("sub") or not payload.get("jti"):
        logger.warning("⚠️ Access token missing sub/jti claims")
        raise unauthorized("Invalid or expired token", code="INVALID_TOKEN")
    return payload


# ============================================================================
# TOKEN REVOCATION
# ============================================================================


def revoke_token(jti: str, expires_at: int) -> None:
    """Deny-list ``jti`` until the token would have expired anyway"""
    ttl = max(1, int(expires_at - time.time()))
    client = get_redis_client()
    if client is not None:
        try:
            client.set(f"revoked_token:{jti}", "1", ex=ttl)
        except redis.RedisError as e:
            logger.warning(f"⚠️ Failed to store revoked token in Redis, keeping it in memory: {e}")

    with _revoked_lock:
        _revoked_tokens[jti] = int(expires_at)
    logger.info(f"🔒 Token {jti[:8]}... revoked for {ttl}s")


def is_token_revoked(jti: str) -> bool:
    now = int(time.time())
    with _revoked_lock:
        for key in [k for k, exp in _revoked_tokens.items() if exp <= now]:
            del _revoked_tokens[key]
        if jti in _revoked_tokens:
            return True

    client = get_redis_client()
    if client is not None:
        try:
            return bool(client.exists(f"revoked_token:{jti}"))
        except redis.RedisError as e:
            logger.warning(f"⚠️ Failed to check token revocation in Redis: {e}")
    return False


def clear_revoked_tokens() -> None:
    with _revoked_lock:
        _revoked_tokens.clear()


# ============================================================================
# OAUTH STATE
# ============================================================================


def generate_oauth_state(provider: str) -> str:
    """
    Generate a signed, time-limited OAuth ``state`` value using itsdangerous
    """
    serializer = URLSafeTimedSerializer(SECRET_KEY)
    return serializer.dumps({"provider": provider, "nonce": secrets.token_urlsafe(16)}, salt=OAUTH_STATE_SALT)


def verify_oauth_state(state: Optional[str], provider: str) -> bool:
    """
    Verify a state value issued by ``generate_oauth_state`` for ``provider``

    Returns:
        True if the signature is valid, unexpired and for the same provider
    """
    if not state:
        return False

    serializer = URLSafeTimedSerializer(SECRET_KEY)
    try:
        data = serializer.loads(state, salt=OAUTH_STATE_SALT, max_age=OAUTH_STATE_MAX_AGE)
    except SignatureExpired:
        logger.warning("⚠️ OAuth state expired")
        return False
    except BadSignature:
        logger.warning("⚠️ Invalid OAuth state signature")
        return False

    return isinstance(data, dict) and data.get("provider") == provider
