from sqlalchemy.orm import Session

from ..models.user import User
from ..utils.error_handlers import NotFoundError, get_error_message
from ..utils.timeutils import iso


def user_to_public(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "display_name": user.display_name,
        "role": user.role,
        "photo_url": user.photo_url,
        "email_verified": bool(user.email_verified),
        "disabled": bool(user.disabled),
        "disabled_at": iso(user.disabled_at),
        "disabled_reason": user.disabled_reason,
        "created_at": iso(user.created_at),
        "updated_at": iso(user.updated_at),
    }


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError(get_error_message("user_missing"))
    return user
