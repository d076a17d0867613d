import logging

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.application import Application
from ..models.job import Job
from ..models.user import User
from ..utils.error_handlers import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
    get_error_message,
)
from ..utils.timeutils import iso, utcnow
from ..utils.validation import APPLICATION_STATUSES, validate_application_status, validate_cover_letter
from .students import get_student_profile, profile_to_public

logger = logging.getLogger(__name__)


def application_brief(app: Application) -> dict:
    """Fields shown in a student's own application list."""
    return {
        "id": app.id,
        "job_id": app.job_id,
        "job_title": app.job_title,
        "company_name": app.company_name,
        "company_logo_url": app.company_logo_url,
        "status": app.status,
        "applied_at": iso(app.applied_at),
        "reviewed_at": iso(app.reviewed_at),
    }


def application_to_public(app: Application) -> dict:
    return {
        **application_brief(app),
        "student_id": app.student_id,
        "student_name": app.student_name,
        "student_email": app.student_email,
        "resume": {
            "url": app.resume_url,
            "filename": app.resume_filename,
            "provider": app.resume_provider,
        },
        "cover_letter": app.cover_letter,
        "reviewed_by": app.reviewed_by,
        "notes": app.notes,
    }


def _find_application(db: Session, *, student_id: int, job_id: int) -> Application | None:
    return (
        db.query(Application)
        .filter(Application.student_id == student_id, Application.job_id == job_id)
        .first()
    )


def create_application(db: Session, student_id: int, job_id: int, cover_letter: str | None) -> Application:
    """
    Submit an application. Checks run in this order: cover letter, duplicate,
    resume on file, student account, job exists and is active.
    """
    try:
        letter = validate_cover_letter(cover_letter)
    except HTTPException as e:
        raise ValidationError(e.detail or get_error_message("cover_letter_too_short"))

    if _find_application(db, student_id=student_id, job_id=job_id):
        raise ConflictError(get_error_message("already_applied"))

    profile = get_student_profile(db, student_id)
    if not profile or not profile.resume_url:
        raise ValidationError(get_error_message("no_resume"))

    student = db.query(User).filter(User.id == student_id).first()
    if not student:
        raise NotFoundError(get_error_message("student_not_found"))

    job = db.query(Job).filter(Job.id == job_id).first()
    if not job:
        raise NotFoundError(get_error_message("job_not_found"))
    if job.status != "active":
        raise ValidationError(get_error_message("job_closed"))

    application = Application(
        job_id=job.id,
        job_title=job.title,
        company_name=job.company_name,
        company_logo_url=job.company_logo_url,
        student_id=student.id,
        student_name=student.display_name,
        student_email=student.email,
        resume_url=profile.resume_url,
        resume_filename=profile.resume_filename or "resume.pdf",
        resume_provider=profile.resume_provider,
        cover_letter=letter,
        status="pending",
        applied_at=utcnow(),
    )
    db.add(application)
    job.application_count = Job.application_count + 1
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent submission for the same pair.
        db.rollback()
        raise ConflictError(get_error_message("already_applied"))

    db.refresh(application)
    logger.info("Student %s applied to job %s (application %s)", student_id, job_id, application.id)
    return application


def get_application(db: Session, application_id: int) -> Application:
    app = db.query(Application).filter(Application.id == application_id).first()
    if not app:
        raise NotFoundError(get_error_message("application_not_found"))
    return app


def get_application_for_user(db: Session, application_id: int, user: dict) -> Application:
    """Readable by the applicant, the recruiter who posted the job, and admins."""
    app = get_application(db, application_id)
    user_id = int(user.get("sub"))
    role = user.get("role")
    if role == "admin":
        return app
    if role == "student" and app.student_id == user_id:
        return app
    if role == "recruiter" and app.job is not None and app.job.posted_by == user_id:
        return app
    raise ForbiddenError(get_error_message("forbidden"))


def withdraw_application(db: Session, application_id: int, student_id: int) -> None:
    app = get_application(db, application_id)
    if app.student_id != student_id:
        raise ForbiddenError(get_error_message("withdraw_forbidden"))
    if app.status != "pending":
        raise ConflictError(get_error_message("application_reviewed"))

    job = db.query(Job).filter(Job.id == app.job_id).first()
    if job is not None and (job.application_count or 0) > 0:
        job.application_count = Job.application_count - 1
    db.delete(app)
    db.commit()
    logger.info("Application %s withdrawn by student %s", application_id, student_id)


def list_student_applications(db: Session, student_id: int) -> list[Application]:
    return (
        db.query(Application)
        .filter(Application.student_id == student_id)
        .order_by(Application.applied_at.desc(), Application.id.desc())
        .all()
    )


def _with_student_profiles(db: Session, apps: list[Application]) -> list[dict]:
    items = []
    for app in apps:
        payload = application_to_public(app)
        payload["student_profile"] = None
        try:
            profile = get_student_profile(db, app.student_id)
            if profile is not None:
                payload["student_profile"] = profile_to_public(profile)
        except Exception as e:
            logger.warning("Could not load profile for student %s: %s", app.student_id, e)
        items.append(payload)
    return items


def list_job_applications(db: Session, job_id: int, recruiter_id: int) -> list[dict]:
    job = db.query(Job).filter(Job.id == job_id).first()
    if not job:
        raise NotFoundError(get_error_message("job_not_found"))
    if job.posted_by != recruiter_id:
        raise ForbiddenError(get_error_message("job_forbidden"))

    apps = (
        db.query(Application)
        .filter(Application.job_id == job_id)
        .order_by(Application.applied_at.desc(), Application.id.desc())
        .all()
    )
    return _with_student_profiles(db, apps)


def _recruiter_applications_query(db: Session, recruiter_id: int):
    return (
        db.query(Application)
        .join(Job, Application.job_id == Job.id)
        .filter(Job.posted_by == recruiter_id)
    )


def list_recruiter_applications(db: Session, recruiter_id: int) -> list[dict]:
    apps = (
        _recruiter_applications_query(db, recruiter_id)
        .order_by(Application.applied_at.desc(), Application.id.desc())
        .all()
    )
    return _with_student_profiles(db, apps)


def update_application_status(
    db: Session,
    application_id: int,
    recruiter_id: int,
    status: str,
    notes: str | None = None,
) -> Application:
    app = get_application(db, application_id)
    job = db.query(Job).filter(Job.id == app.job_id).first()
    if job is None or job.posted_by != recruiter_id:
        raise ForbiddenError(get_error_message("review_forbidden"))

    app.status = validate_application_status(status)
    app.reviewed_at = utcnow()
    app.reviewed_by = recruiter_id
    if notes is not None:
        app.notes = notes
    db.commit()
    db.refresh(app)
    return app


def has_applied(db: Session, student_id: int, job_id: int) -> bool:
    try:
        return _find_application(db, student_id=student_id, job_id=job_id) is not None
    except Exception as e:
        logger.error("Error checking application status: %s", e)
        return False


def application_stats(db: Session, recruiter_id: int) -> dict:
    statuses = [
        status for (status,) in _recruiter_applications_query(db, recruiter_id)
        .with_entities(Application.status)
        .all()
    ]
    stats = {"total": len(statuses)}
    for status in APPLICATION_STATUSES:
        stats[status] = statuses.count(status)
    return stats
