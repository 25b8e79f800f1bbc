import hmac
import hashlib
import time
from typing import Optional

import bcrypt

from core.logger import logger


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=10)).decode()


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        # Malformed hash or password over bcrypt's 72 byte limit
        return False


def _sign(data: str, secret: str) -> str:
    return hmac.new(secret.encode(), data.encode(), hashlib.sha256).hexdigest()


def create_token(user_id: int, secret: str, now: Optional[int] = None) -> str:
    """
    Generate a signed auth token.
    Format: {user_id}:{timestamp}:{signature}
    """
    timestamp = int(now if now is not None else time.time())
    data = f"{user_id}:{timestamp}"
    return f"{data}:{_sign(data, secret)}"


def verify_token(token: str, secret: str, ttl_seconds: int) -> Optional[int]:
    """Return the user id carried by a valid, unexpired token."""
    if not token:
        return None

    parts = token.split(':')
    if len(parts) != 3:
        return None

    user_id_str, timestamp_str, signature = parts
    if not user_id_str.isdigit() or not timestamp_str.isdigit():
        return None

    if int(time.time()) - int(timestamp_str) > ttl_seconds:
        logger.warning("Token expired", user_id=user_id_str)
        return None

    expected_signature = _sign(f"{user_id_str}:{timestamp_str}", secret)
    if hmac.compare_digest(expected_signature, signature):
        return int(user_id_str)

    logger.warning("Token signature mismatch", user_id=user_id_str)
    return None
