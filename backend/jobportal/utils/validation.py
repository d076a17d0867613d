"""
Validation utilities for input validation and error handling.
"""
import re
from typing import Any
from fastapi import HTTPException

ROLES = ("student", "recruiter", "admin")
SIGNUP_ROLES = ("student", "recruiter")
JOB_STATUSES = ("draft", "active", "closed")
JOB_TYPES = ("full-time", "part-time", "internship", "contract")
EXPERIENCE_LEVELS = ("entry", "mid", "senior")
APPLICATION_STATUSES = ("pending", "reviewed", "accepted", "rejected")

COVER_LETTER_MIN_LENGTH = 50
COVER_LETTER_MAX_LENGTH = 5000

_SPECIAL_CHARS = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")


def validate_email(email: str) -> str:
    """Validate email format."""
    if not email or not isinstance(email, str):
        raise HTTPException(status_code=400, detail="Email is required")

    email = email.strip().lower()
    if len(email) > 255:
        raise HTTPException(status_code=400, detail="Email too long (max 255 characters)")

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    if not re.match(pattern, email):
        raise HTTPException(status_code=400, detail="Please enter a valid email address")

    return email


def validate_password(password: str) -> None:
    """Validate password rules used at signup, reset and change."""
    if not password or not isinstance(password, str):
        raise HTTPException(status_code=400, detail="Password is required")

    if len(password) < 8:
        raise HTTPException(status_code=400, detail="Password must be at least 8 characters long")

    if len(password) > 100:
        raise HTTPException(status_code=400, detail="Password must be less than 100 characters")

    missing = []
    if not re.search(r"[a-z]", password):
        missing.append("lowercase letter")
    if not re.search(r"[A-Z]", password):
        missing.append("uppercase letter")
    if not re.search(r"\d", password):
        missing.append("number")
    if missing:
        raise HTTPException(
            status_code=400,
            detail=f"Password must contain at least one {', '.join(missing)}",
        )


def password_strength(password: str) -> dict:
    """
    Score a password 1-5 (one point per satisfied check).

    Returns {"score": 0, "label": ""} for an empty password.
    """
    if not password:
        return {"score": 0, "label": ""}

    checks = (
        len(password) >= 8,
        bool(re.search(r"[a-z]", password)),
        bool(re.search(r"[A-Z]", password)),
        bool(re.search(r"\d", password)),
        bool(_SPECIAL_CHARS.search(password)),
    )
    score = max(1, sum(checks))
    labels = {1: "Very Weak", 2: "Weak", 3: "Fair", 4: "Strong", 5: "Very Strong"}
    return {"score": score, "label": labels[score]}


def validate_display_name(name: str | None) -> str:
    if not name or not name.strip():
        raise HTTPException(status_code=400, detail="Full name is required")
    name = name.strip()
    if len(name) < 2:
        raise HTTPException(status_code=400, detail="Name must be at least 2 characters long")
    if len(name) > 50:
        raise HTTPException(status_code=400, detail="Name must be less than 50 characters")
    return name


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=400, detail=detail)


def validate_string_field(
    value: Any,
    field_name: str,
    min_length: int = 1,
    max_length: int = 1000,
    required: bool = True,
) -> str | None:
    """Trim `value` and bound its length. Blank optional fields come back as None."""
    if value is not None and not isinstance(value, str):
        raise _bad_request(f"{field_name} must be a string")

    text = (value or "").strip()
    if not text:
        if not required:
            return None
        raise _bad_request(f"{field_name} is required" if value is None else f"{field_name} cannot be empty")

    if len(text) < min_length:
        raise _bad_request(f"{field_name} must be at least {min_length} characters")
    if len(text) > max_length:
        raise _bad_request(f"{field_name} must not exceed {max_length} characters")
    return text


def validate_integer_field(
    value: Any,
    field_name: str,
    min_value: int | None = None,
    max_value: int | None = None,
    required: bool = True,
) -> int | None:
    """Coerce `value` to int (numeric strings are accepted) and check the bounds."""
    if value is None:
        if required:
            raise _bad_request(f"{field_name} is required")
        return None

    try:
        number = value if isinstance(value, int) else int(value)
    except (ValueError, TypeError):
        raise _bad_request(f"{field_name} must be a valid integer")

    if min_value is not None and number < min_value:
        raise _bad_request(f"{field_name} must be at least {min_value}")
    if max_value is not None and number > max_value:
        raise _bad_request(f"{field_name} must not exceed {max_value}")
    return number


def _validate_choice(value: str | None, field_name: str, choices: tuple[str, ...]) -> str:
    if not value or not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{field_name} is required")

    value = value.strip().lower()
    if value not in choices:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid {field_name.lower()}. Must be one of: {', '.join(choices)}"
        )
    return value


def validate_role(role: str, allowed: tuple[str, ...] = ROLES) -> str:
    """Validate user role."""
    return _validate_choice(role, "Role", allowed)


def validate_job_status(status: str | None) -> str:
    """Validate job status; new postings default to draft."""
    if not status:
        return "draft"
    return _validate_choice(status, "Status", JOB_STATUSES)


def validate_job_type(job_type: str | None) -> str | None:
    if not job_type:
        return None
    return _validate_choice(job_type, "Job type", JOB_TYPES)


def validate_experience_level(level: str | None) -> str | None:
    if not level:
        return None
    return _validate_choice(level, "Experience level", EXPERIENCE_LEVELS)


def validate_application_status(status: str | None) -> str:
    return _validate_choice(status, "Status", APPLICATION_STATUSES)


def validate_cover_letter(cover_letter: str | None) -> str:
    """Cover letters are trimmed; the trimmed text must be 50-5000 characters."""
    text = (cover_letter or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail="Please write a cover letter")
    if len(text) < COVER_LETTER_MIN_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Cover letter must be at least {COVER_LETTER_MIN_LENGTH} characters long",
        )
    if len(text) > COVER_LETTER_MAX_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Cover letter must not exceed {COVER_LETTER_MAX_LENGTH} characters",
        )
    return text


def clean_string_list(values: Any, field_name: str) -> list[str]:
    """Strip, drop empties and de-duplicate (case-insensitive, first spelling wins)."""
    if values is None:
        return []
    if not isinstance(values, list):
        raise HTTPException(status_code=400, detail=f"{field_name} must be a list")
    seen: set[str] = set()
    cleaned: list[str] = []
    for raw in values:
        s = str(raw).strip()
        if s and s.lower() not in seen:
            seen.add(s.lower())
            cleaned.append(s)
    return cleaned


def sanitize_filename(filename: str) -> str:
    """Sanitize filename to prevent directory traversal and other attacks."""
    if not filename:
        raise HTTPException(status_code=400, detail="Filename is required")

    # Remove any path separators
    filename = filename.replace("/", "_").replace("\\", "_")

    # Remove any null bytes
    filename = filename.replace("\x00", "")

    # Remove directory traversal sequences
    filename = filename.replace("..", "_")

    # Remove leading dots to prevent hidden files
    filename = filename.lstrip(".")

    if len(filename) > 255:
        raise HTTPException(status_code=400, detail="Filename too long")

    if not filename or filename == "_":
        raise HTTPException(status_code=400, detail="Invalid filename")

    return filename
