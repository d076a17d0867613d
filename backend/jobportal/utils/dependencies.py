from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import User
from .error_handlers import get_error_message
from .jwt import decode_access_token

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> dict:
    """
    Resolve the bearer token to the caller's claims.

    Role and disabled state are re-read from the database on every request so
    an admin role change or account suspension takes effect immediately,
    without waiting for the token to expire.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail=get_error_message("unauthorized"))

    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=401, detail=get_error_message("session_expired"))

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail=get_error_message("session_expired"))

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=401, detail=get_error_message("unauthorized"))
    if user.disabled:
        raise HTTPException(status_code=403, detail=get_error_message("account_disabled"))

    return {
        "sub": str(user.id),
        "role": user.role,
        "email": user.email,
        "name": user.display_name,
    }
