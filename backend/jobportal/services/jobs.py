import logging
from datetime import timezone

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ..models.job import Job
from ..utils.error_handlers import ForbiddenError, NotFoundError, ValidationError, get_error_message
from ..utils.timeutils import iso, parse_iso, utcnow
from ..utils.validation import (
    clean_string_list,
    validate_experience_level,
    validate_integer_field,
    validate_job_status,
    validate_job_type,
    validate_string_field,
)
from .companies import get_owned_company

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 50


def job_to_public(job: Job) -> dict:
    return {
        "id": job.id,
        "company_id": job.company_id,
        "company_name": job.company_name,
        "company_logo_url": job.company_logo_url,
        "posted_by": job.posted_by,
        "title": job.title,
        "description": job.description,
        "type": job.type,
        "experience_level": job.experience_level,
        "location": job.location,
        "salary_min": job.salary_min,
        "salary_max": job.salary_max,
        "salary_currency": job.salary_currency,
        "skills": list(job.skills or []),
        "status": job.status,
        "application_count": job.application_count or 0,
        "deadline": iso(job.deadline),
        "posted_at": iso(job.posted_at),
        "updated_at": iso(job.updated_at),
    }


def _parse_deadline(value):
    if not value:
        return None
    try:
        parsed = parse_iso(value) if isinstance(value, str) else value
    except ValueError:
        raise ValidationError("Invalid deadline format. Use ISO 8601 format.")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed


def _apply_fields(job: Job, data: dict, *, creating: bool) -> None:
    if creating or "title" in data:
        job.title = validate_string_field(data.get("title"), "Title", min_length=2, max_length=150)
    if "description" in data:
        job.description = validate_string_field(data["description"], "Description", max_length=5000, required=False)
    if "type" in data:
        job.type = validate_job_type(data["type"])
    if "experience_level" in data:
        job.experience_level = validate_experience_level(data["experience_level"])
    if "location" in data:
        job.location = validate_string_field(data["location"], "Location", max_length=100, required=False)
    if "salary_min" in data:
        job.salary_min = validate_integer_field(data["salary_min"], "Salary min", min_value=0, max_value=10**9, required=False)
    if "salary_max" in data:
        job.salary_max = validate_integer_field(data["salary_max"], "Salary max", min_value=0, max_value=10**9, required=False)
    if "salary_currency" in data:
        job.salary_currency = validate_string_field(data["salary_currency"], "Salary currency", max_length=5, required=False)
    if "skills" in data:
        job.skills = clean_string_list(data["skills"], "Skills")
    if "deadline" in data:
        job.deadline = _parse_deadline(data["deadline"])
    if creating or data.get("status") is not None:
        job.status = validate_job_status(data.get("status"))

    if job.salary_min is not None and job.salary_max is not None and job.salary_max < job.salary_min:
        raise ValidationError("Salary max must be greater than or equal to salary min")
    if job.status == "active" and not (job.description or "").strip():
        raise ValidationError(get_error_message("invalid_job_data"))


def create_job(db: Session, company_id: int, recruiter_id: int, data: dict) -> Job:
    company = get_owned_company(db, company_id, recruiter_id)

    job = Job(
        company_id=company.id,
        company_name=company.name,
        company_logo_url=company.logo_url,
        posted_by=recruiter_id,
        application_count=0,
    )
    _apply_fields(job, data, creating=True)
    db.add(job)
    db.commit()
    db.refresh(job)
    logger.info("Job %s (%s) created for company %s", job.id, job.status, company.id)
    return job


def get_job(db: Session, job_id: int, *, role: str | None = None) -> Job:
    job = db.query(Job).filter(Job.id == job_id).first()
    if not job:
        raise NotFoundError(get_error_message("job_not_found"))
    # Students never see drafts or closed postings.
    if role == "student" and job.status != "active":
        raise NotFoundError(get_error_message("job_not_found"))
    return job


def get_owned_job(db: Session, job_id: int, recruiter_id: int) -> Job:
    job = get_job(db, job_id)
    if job.posted_by != recruiter_id:
        raise ForbiddenError(get_error_message("job_forbidden"))
    return job


def update_job(db: Session, job_id: int, recruiter_id: int, data: dict) -> Job:
    job = get_owned_job(db, job_id, recruiter_id)
    _apply_fields(job, data, creating=False)
    job.updated_at = utcnow()
    db.commit()
    db.refresh(job)
    return job


def update_job_status(db: Session, job_id: int, recruiter_id: int, status: str) -> Job:
    job = get_owned_job(db, job_id, recruiter_id)
    new_status = validate_job_status(status)
    if new_status == "active" and not (job.description or "").strip():
        raise ValidationError(get_error_message("invalid_job_data"))
    job.status = new_status
    job.updated_at = utcnow()
    db.commit()
    db.refresh(job)
    return job


def delete_job(db: Session, job_id: int, recruiter_id: int) -> None:
    """Removes the job and every application to it."""
    job = get_owned_job(db, job_id, recruiter_id)
    db.delete(job)
    db.commit()


def list_company_jobs(db: Session, company_id: int, *, only_active: bool = False) -> list[Job]:
    q = db.query(Job).filter(Job.company_id == company_id)
    if only_active:
        q = q.filter(Job.status == "active")
    return q.order_by(Job.posted_at.desc(), Job.id.desc()).all()


def list_recruiter_jobs(db: Session, recruiter_id: int, status: str | None = None) -> list[Job]:
    q = db.query(Job).filter(Job.posted_by == recruiter_id)
    if status:
        q = q.filter(Job.status == validate_job_status(status))
    return q.order_by(Job.posted_at.desc(), Job.id.desc()).all()


def recent_jobs(db: Session, limit: int = 10) -> list[Job]:
    return (
        db.query(Job)
        .filter(Job.status == "active")
        .order_by(Job.posted_at.desc(), Job.id.desc())
        .limit(limit)
        .all()
    )


def _matches_search(job: Job, term: str) -> bool:
    term = term.lower()
    return any(term in (value or "").lower() for value in (job.title, job.description, job.company_name))


def _matches_skills(job: Job, skills: list[str]) -> bool:
    job_skills = [str(s).lower() for s in (job.skills or [])]
    return any(skill.lower() in job_skill for skill in skills for job_skill in job_skills)


def search_jobs(db: Session, filters: dict | None = None, page_size: int = 10, cursor: int | None = None) -> dict:
    """
    One page of active jobs, newest first.

    Exact-match filters (type, experience_level, location) run in SQL; text
    search, skills and salary_min are applied to the fetched page, so a page
    can come back with fewer than `page_size` jobs even when more exist.
    """
    filters = filters or {}
    page_size = validate_integer_field(page_size, "Page size", min_value=1, max_value=MAX_PAGE_SIZE)

    q = db.query(Job).filter(Job.status == "active")
    if filters.get("type"):
        q = q.filter(Job.type == filters["type"])
    if filters.get("experience_level"):
        q = q.filter(Job.experience_level == filters["experience_level"])
    if filters.get("location"):
        q = q.filter(Job.location == filters["location"])

    if cursor is not None:
        anchor = db.query(Job.posted_at, Job.id).filter(Job.id == cursor).first()
        if anchor is None:
            raise ValidationError("Invalid pagination cursor")
        q = q.filter(
            or_(
                Job.posted_at < anchor.posted_at,
                and_(Job.posted_at == anchor.posted_at, Job.id < anchor.id),
            )
        )

    rows = q.order_by(Job.posted_at.desc(), Job.id.desc()).limit(page_size + 1).all()
    overflow = len(rows) > page_size
    page = rows[:page_size]

    jobs = page
    search = (filters.get("search") or "").strip()
    if search:
        jobs = [j for j in jobs if _matches_search(j, search)]
    skills = [s.strip() for s in (filters.get("skills") or []) if s and s.strip()]
    if skills:
        jobs = [j for j in jobs if _matches_skills(j, skills)]
    salary_min = filters.get("salary_min")
    if salary_min:
        jobs = [j for j in jobs if j.salary_min is not None and j.salary_min >= salary_min]

    return {
        "jobs": jobs,
        "total_count": len(jobs),
        "has_more": overflow and len(jobs) == page_size,
        "next_cursor": page[-1].id if page else None,
    }
