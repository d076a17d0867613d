import logging
from uuid import uuid4
import time

from sqlalchemy.orm import Session

from ..models.student_profile import StudentProfile
from ..models.user import User
from ..utils.error_handlers import NotFoundError, ValidationError, get_error_message
from ..utils.file_validation import generate_unique_filename, validate_resume_file
from ..utils.timeutils import iso, parse_iso, utcnow
from ..utils.validation import clean_string_list, validate_integer_field, validate_string_field
from . import storage

logger = logging.getLogger(__name__)

COMPLETENESS_WEIGHTS = {
    "basic_info": 20,
    "academic_info": 15,
    "skills": 15,
    "education": 10,
    "experience": 15,
    "projects": 10,
    "resume": 10,
    "preferences": 5,
}

ENTRY_KINDS = {"education": "edu", "experience": "exp", "projects": "proj"}

_TEXT_FIELDS = {
    "first_name": 100,
    "last_name": 100,
    "phone": 30,
    "bio": 2000,
    "university": 255,
    "major": 255,
}
_LIST_FIELDS = ("skills", "preferred_job_types", "preferred_locations")


def compute_profile_completeness(profile) -> int:
    """Weighted completeness score (0-100). Basic info always counts once a profile exists."""
    def has(name: str):
        if isinstance(profile, dict):
            return profile.get(name)
        return getattr(profile, name, None)

    score = COMPLETENESS_WEIGHTS["basic_info"]
    if has("university") and has("major") and has("graduation_year"):
        score += COMPLETENESS_WEIGHTS["academic_info"]
    if has("skills"):
        score += COMPLETENESS_WEIGHTS["skills"]
    if has("education"):
        score += COMPLETENESS_WEIGHTS["education"]
    if has("experience"):
        score += COMPLETENESS_WEIGHTS["experience"]
    if has("projects"):
        score += COMPLETENESS_WEIGHTS["projects"]
    if has("resume_url"):
        score += COMPLETENESS_WEIGHTS["resume"]
    if has("preferred_job_types"):
        score += COMPLETENESS_WEIGHTS["preferences"]
    return min(score, 100)


def resume_to_public(profile: StudentProfile) -> dict | None:
    if not profile.resume_url:
        return None
    return {
        "url": profile.resume_url,
        "path": profile.resume_path,
        "filename": profile.resume_filename,
        "size_bytes": profile.resume_size_bytes,
        "uploaded_at": iso(profile.resume_uploaded_at),
        "provider": profile.resume_provider,
    }


def profile_to_public(profile: StudentProfile) -> dict:
    user = profile.user
    return {
        "user_id": profile.user_id,
        "email": user.email if user else None,
        "display_name": user.display_name if user else None,
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "phone": profile.phone,
        "bio": profile.bio,
        "university": profile.university,
        "major": profile.major,
        "graduation_year": profile.graduation_year,
        "skills": list(profile.skills or []),
        "education": list(profile.education or []),
        "experience": list(profile.experience or []),
        "projects": list(profile.projects or []),
        "preferred_job_types": list(profile.preferred_job_types or []),
        "preferred_locations": list(profile.preferred_locations or []),
        "resume": resume_to_public(profile),
        "profile_completeness": profile.profile_completeness,
        "is_profile_public": bool(profile.is_profile_public),
        "created_at": iso(profile.created_at),
        "updated_at": iso(profile.updated_at),
    }


def get_student_profile(db: Session, user_id: int) -> StudentProfile | None:
    return db.query(StudentProfile).filter(StudentProfile.user_id == user_id).first()


def require_student_profile(db: Session, user_id: int) -> StudentProfile:
    profile = get_student_profile(db, user_id)
    if not profile:
        raise NotFoundError(get_error_message("student_not_found"))
    return profile


def create_empty_profile(db: Session, user: User) -> StudentProfile:
    """Blank profile created at student signup (caller commits)."""
    first, _, last = (user.display_name or "").partition(" ")
    profile = StudentProfile(
        user_id=user.id,
        first_name=first or None,
        last_name=last or None,
        skills=[],
        education=[],
        experience=[],
        projects=[],
        preferred_job_types=[],
        preferred_locations=[],
        profile_completeness=COMPLETENESS_WEIGHTS["basic_info"],
        is_profile_public=False,
    )
    db.add(profile)
    return profile


def _apply_profile_fields(profile: StudentProfile, data: dict) -> None:
    for field, max_length in _TEXT_FIELDS.items():
        if field in data:
            setattr(
                profile,
                field,
                validate_string_field(data[field], field.replace("_", " ").capitalize(), max_length=max_length, required=False),
            )
    if "graduation_year" in data:
        profile.graduation_year = validate_integer_field(
            data["graduation_year"], "Graduation year", min_value=1950, max_value=2100, required=False
        )
    for field in _LIST_FIELDS:
        if field in data:
            setattr(profile, field, clean_string_list(data[field], field.replace("_", " ").capitalize()))
    for kind in ENTRY_KINDS:
        if kind in data:
            entries = data[kind] or []
            for entry in entries:
                _check_entry_dates(entry)
            setattr(profile, kind, [_with_entry_id(kind, dict(e)) for e in entries])
    if "is_profile_public" in data and data["is_profile_public"] is not None:
        profile.is_profile_public = bool(data["is_profile_public"])


def save_student_profile(db: Session, user_id: int, data: dict) -> StudentProfile:
    """Create-or-update; completeness is recomputed on every save."""
    profile = get_student_profile(db, user_id)
    if profile is None:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError(get_error_message("user_missing"))
        profile = create_empty_profile(db, user)

    _apply_profile_fields(profile, data)
    profile.profile_completeness = compute_profile_completeness(profile)
    profile.updated_at = utcnow()
    db.commit()
    db.refresh(profile)
    return profile


# -------------------- Embedded entries --------------------

def _new_entry_id(kind: str) -> str:
    return f"{ENTRY_KINDS[kind]}_{int(time.time() * 1000)}_{uuid4().hex[:9]}"


def _with_entry_id(kind: str, entry: dict) -> dict:
    if not entry.get("id"):
        entry["id"] = _new_entry_id(kind)
    return entry


def _check_entry_kind(kind: str) -> None:
    if kind not in ENTRY_KINDS:
        raise ValidationError(f"Unknown profile section '{kind}'. Must be one of: {', '.join(ENTRY_KINDS)}")


def _check_entry_dates(entry: dict) -> None:
    try:
        start = parse_iso(entry.get("start_date"))
        end = parse_iso(entry.get("end_date"))
    except (TypeError, ValueError):
        raise ValidationError("Invalid date format. Use ISO 8601 (YYYY-MM-DD).")
    if start and end and end.date() < start.date():
        raise ValidationError("End date cannot be before start date")


def add_entry(db: Session, user_id: int, kind: str, entry: dict) -> dict:
    _check_entry_kind(kind)
    _check_entry_dates(entry)
    profile = require_student_profile(db, user_id)

    new_entry = {**entry, "id": _new_entry_id(kind)}
    # Reassign so the JSON column is flagged dirty.
    setattr(profile, kind, [*(getattr(profile, kind) or []), new_entry])
    profile.profile_completeness = compute_profile_completeness(profile)
    db.commit()
    return new_entry


def update_entry(db: Session, user_id: int, kind: str, entry_id: str, updates: dict) -> dict:
    _check_entry_kind(kind)
    profile = require_student_profile(db, user_id)

    entries = list(getattr(profile, kind) or [])
    for i, existing in enumerate(entries):
        if existing.get("id") == entry_id:
            merged = {**existing, **updates, "id": entry_id}
            _check_entry_dates(merged)
            entries[i] = merged
            setattr(profile, kind, entries)
            db.commit()
            return merged
    raise NotFoundError(f"{kind.capitalize()} entry not found")


def remove_entry(db: Session, user_id: int, kind: str, entry_id: str) -> None:
    _check_entry_kind(kind)
    profile = require_student_profile(db, user_id)

    entries = getattr(profile, kind) or []
    remaining = [e for e in entries if e.get("id") != entry_id]
    if len(remaining) == len(entries):
        raise NotFoundError(f"{kind.capitalize()} entry not found")
    setattr(profile, kind, remaining)
    profile.profile_completeness = compute_profile_completeness(profile)
    db.commit()


# -------------------- Resume --------------------

def _discard_resume_file(path: str | None, provider: str | None) -> None:
    if not path:
        return
    try:
        storage.delete_resume_file(path, provider)
    except Exception as e:
        logger.warning("Failed to delete resume file %s: %s", path, e)


def upload_resume(db: Session, user_id: int, *, filename: str, content_type: str | None, content: bytes) -> StudentProfile:
    validate_resume_file(filename, content_type, content)

    profile = get_student_profile(db, user_id)
    if profile is None:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError(get_error_message("user_missing"))
        profile = create_empty_profile(db, user)

    path = generate_unique_filename(filename, user_id)
    stored = storage.store_resume(path, content, content_type)
    old_path, old_provider = profile.resume_path, profile.resume_provider

    profile.resume_url = stored["url"]
    profile.resume_path = stored["path"]
    profile.resume_provider = stored["provider"]
    profile.resume_filename = filename
    profile.resume_size_bytes = len(content)
    profile.resume_uploaded_at = utcnow()
    profile.profile_completeness = compute_profile_completeness(profile)
    try:
        db.commit()
    except Exception:
        db.rollback()
        _discard_resume_file(stored["path"], stored["provider"])
        raise
    db.refresh(profile)

    # The old file goes only once nothing points at it.
    if old_path != stored["path"]:
        _discard_resume_file(old_path, old_provider)
    return profile


def delete_resume(db: Session, user_id: int) -> StudentProfile:
    profile = require_student_profile(db, user_id)
    if not profile.resume_url:
        return profile

    old_path, old_provider = profile.resume_path, profile.resume_provider
    profile.resume_url = None
    profile.resume_path = None
    profile.resume_filename = None
    profile.resume_size_bytes = None
    profile.resume_uploaded_at = None
    profile.resume_provider = None
    profile.profile_completeness = compute_profile_completeness(profile)
    db.commit()
    db.refresh(profile)

    _discard_resume_file(old_path, old_provider)
    return profile


def search_students_by_skills(db: Session, skills: list[str]) -> list[StudentProfile]:
    wanted = {s.strip().lower() for s in skills if s and s.strip()}
    if not wanted:
        return []
    profiles = (
        db.query(StudentProfile)
        .filter(StudentProfile.is_profile_public.is_(True))
        .order_by(StudentProfile.created_at.desc())
        .all()
    )
    return [
        p for p in profiles
        if any(str(s).strip().lower() in wanted for s in (p.skills or []))
    ]
