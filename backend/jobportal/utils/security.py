import base64
import hashlib

import bcrypt


def _bcrypt_input(password: str) -> bytes:
    """
    bcrypt only looks at the first 72 bytes (and newer builds raise past that).
    Passwords may be up to 100 characters, so longer inputs are pre-hashed.
    """
    pw_bytes = password.encode("utf-8")
    if len(pw_bytes) > 72:
        return base64.b64encode(hashlib.sha256(pw_bytes).digest())
    return pw_bytes


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password is required")

    hashed = bcrypt.hashpw(_bcrypt_input(password), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        if not password or not hashed:
            return False
        return bcrypt.checkpw(_bcrypt_input(password), hashed.encode("utf-8"))
    except ValueError:
        return False
