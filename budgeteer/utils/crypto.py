import json
import logging
from functools import lru_cache
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from budgeteer.config import get_settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def _fernet(key: str) -> Fernet:
    return Fernet(key)

def get_fernet() -> Fernet:
    key = get_settings().fernet_key
    if not key:
        raise RuntimeError("FERNET_KEY is not set")
    return _fernet(key)


def encrypt(text: str) -> str:
    return get_fernet().encrypt(text.encode()).decode()


def decrypt(token: str, ttl: Optional[int] = None) -> str:
    try:
        return get_fernet().decrypt(token.encode(), ttl=ttl).decode()
    except InvalidToken:
        logger.info("Rejected tampered or expired token")
        raise


def encrypt_json(payload: dict) -> str:
    return encrypt(json.dumps(payload))


def decrypt_json(token: Optional[str], ttl: Optional[int] = None) -> Optional[dict]:
    """Return the payload, or None for a missing, tampered or expired token."""
    if not token:
        return None
    try:
        return json.loads(decrypt(token, ttl=ttl))
    except (InvalidToken, ValueError):
        return None
