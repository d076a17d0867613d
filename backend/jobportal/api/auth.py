from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..models.user import User
from ..schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordStrengthRequest,
    SignupRequest,
    UpdateMeRequest,
    VerifyEmailRequest,
)
from ..services import emailer
from ..services.students import create_empty_profile
from ..services.users import get_user, get_user_by_email, user_to_public
from ..utils.dependencies import get_current_user
from ..utils.jwt import create_access_token, create_action_token, decode_action_token, state_fingerprint
from ..utils.security import hash_password, verify_password
from ..utils.timeutils import utcnow
from ..utils.validation import (
    SIGNUP_ROLES,
    password_strength,
    validate_display_name,
    validate_email,
    validate_password,
    validate_role,
    validate_string_field,
)
from ..utils.error_handlers import get_error_message, handle_database_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

VERIFY_EMAIL = "verify_email"
RESET_PASSWORD = "reset_password"


def _token_response(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "role": user.role})
    return {
        "access_token": token,
        "token_type": "bearer",
        "user": user_to_public(user),
    }


def _send_verification(user: User) -> None:
    # Best-effort: signup must not fail because mail is down or unconfigured.
    try:
        token = create_action_token(user_id=user.id, purpose=VERIFY_EMAIL, fingerprint=state_fingerprint(user.email))
        emailer.send_verification_email(to_email=user.email, display_name=user.display_name, token=token)
    except Exception as e:
        logger.warning("Verification email to %s not sent: %s", user.email, e)


@router.post("/signup", status_code=201)
def signup(payload: SignupRequest, db: Session = Depends(get_db)):
    email = validate_email(payload.email)
    validate_password(payload.password)
    display_name = validate_display_name(payload.display_name)
    role = validate_role(payload.role, SIGNUP_ROLES)

    if get_user_by_email(db, email):
        raise HTTPException(status_code=400, detail=get_error_message("email_exists"))

    user = User(
        display_name=display_name,
        email=email,
        password=hash_password(payload.password),
        role=role,
    )
    try:
        db.add(user)
        db.flush()
        if role == "student":
            create_empty_profile(db, user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail=get_error_message("email_exists"))
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "creating user")

    logger.info("New %s account %s", role, user.id)
    _send_verification(user)

    return {
        "success": True,
        "message": "User created successfully",
        **_token_response(user),
    }


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    email = validate_email(payload.email)
    if not payload.password:
        raise HTTPException(status_code=400, detail="Password is required")

    user = get_user_by_email(db, email)
    if not user:
        raise HTTPException(status_code=401, detail=get_error_message("user_not_found"))

    if not verify_password(payload.password, user.password):
        raise HTTPException(status_code=401, detail=get_error_message("wrong_password"))

    if user.disabled:
        raise HTTPException(status_code=403, detail=get_error_message("account_disabled"))

    # Check role match if provided
    if payload.role and user.role != payload.role.strip().lower():
        raise HTTPException(
            status_code=403,
            detail="Role mismatch. Please select the correct account type.",
        )

    return {"success": True, **_token_response(user)}


@router.post("/logout")
def logout():
    # Tokens are stateless; the client discards its copy.
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me")
def me(db: Session = Depends(get_db), user=Depends(get_current_user)):
    return {"success": True, "user": user_to_public(get_user(db, int(user.get("sub"))))}


@router.patch("/me")
def update_me(
    payload: UpdateMeRequest,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    account = get_user(db, int(user.get("sub")))
    if payload.display_name is not None:
        account.display_name = validate_display_name(payload.display_name)
    if payload.photo_url is not None:
        account.photo_url = validate_string_field(payload.photo_url, "Photo URL", max_length=1000, required=False)
    account.updated_at = utcnow()
    db.commit()
    db.refresh(account)
    return {"success": True, "user": user_to_public(account)}


@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    account = get_user(db, int(user.get("sub")))
    if not verify_password(payload.current_password, account.password):
        raise HTTPException(status_code=400, detail="Current password is incorrect.")
    validate_password(payload.new_password)

    account.password = hash_password(payload.new_password)
    account.updated_at = utcnow()
    db.commit()
    return {"success": True, "message": "Password updated successfully"}


@router.post("/password-reset")
def request_password_reset(payload: PasswordResetRequest, db: Session = Depends(get_db)):
    email = validate_email(payload.email)
    user = get_user_by_email(db, email)
    if not user:
        raise HTTPException(status_code=404, detail=get_error_message("user_not_found"))

    # Bound to the current hash so the link dies once the password changes.
    token = create_action_token(user_id=user.id, purpose=RESET_PASSWORD, fingerprint=state_fingerprint(user.password))
    try:
        emailer.send_password_reset_email(to_email=user.email, display_name=user.display_name, token=token)
    except Exception as e:
        logger.error("Password reset email to %s failed: %s", user.email, e)
        raise HTTPException(status_code=503, detail="Could not send the reset email. Please try again later.")

    return {"success": True, "message": "Password reset email sent. Check your inbox."}


@router.post("/password-reset/confirm")
def confirm_password_reset(payload: PasswordResetConfirm, db: Session = Depends(get_db)):
    claims = decode_action_token(payload.token, purpose=RESET_PASSWORD)
    invalid = HTTPException(status_code=400, detail=get_error_message("invalid_reset_token"))
    if not claims:
        raise invalid

    user = db.query(User).filter(User.id == int(claims["sub"])).first()
    if not user or claims.get("fp") != state_fingerprint(user.password):
        raise invalid

    validate_password(payload.new_password)
    user.password = hash_password(payload.new_password)
    user.updated_at = utcnow()
    db.commit()
    return {"success": True, "message": "Password has been reset. You can now log in."}


@router.post("/verify-email")
def verify_email(payload: VerifyEmailRequest, db: Session = Depends(get_db)):
    claims = decode_action_token(payload.token, purpose=VERIFY_EMAIL)
    invalid = HTTPException(status_code=400, detail=get_error_message("invalid_verification_token"))
    if not claims:
        raise invalid

    user = db.query(User).filter(User.id == int(claims["sub"])).first()
    if not user or claims.get("fp") != state_fingerprint(user.email):
        raise invalid

    if not user.email_verified:
        user.email_verified = True
        user.updated_at = utcnow()
        db.commit()
    return {"success": True, "message": "Email verified"}


@router.post("/password-strength")
def check_password_strength(payload: PasswordStrengthRequest):
    return {"success": True, **password_strength(payload.password)}
