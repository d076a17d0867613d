import hashlib
from datetime import timedelta

from jose import JWTError, jwt

from ..config import ACCESS_TOKEN_EXPIRE_MINUTES, ACTION_TOKEN_EXPIRE_MINUTES, SECRET_KEY
from .timeutils import utcnow

ALGORITHM = "HS256"


def create_access_token(data: dict) -> str:
    to_encode = data.copy()
    expire = utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    # Action tokens (password reset etc.) must never work as session tokens.
    if payload.get("purpose"):
        return None
    return payload


def create_action_token(*, user_id: int, purpose: str, fingerprint: str = "") -> str:
    """
    Short-lived single-purpose token (email verification, password reset).

    `fingerprint` binds the token to mutable state (a digest of the current password
    hash) so it stops working once that state changes.
    """
    expire = utcnow() + timedelta(minutes=ACTION_TOKEN_EXPIRE_MINUTES)
    return jwt.encode(
        {"sub": str(user_id), "purpose": purpose, "fp": fingerprint, "exp": expire},
        SECRET_KEY,
        algorithm=ALGORITHM,
    )


def decode_action_token(token: str, *, purpose: str) -> dict | None:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if payload.get("purpose") != purpose:
        return None
    return payload


def state_fingerprint(value: str) -> str:
    """Short digest of server-side state for the `fp` claim. The raw value never goes into a link."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:16]
