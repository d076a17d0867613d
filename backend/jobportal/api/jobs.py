import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.jobs import JobCreate, JobStatusUpdate, JobUpdate
from ..services import jobs as job_service
from ..utils.dependencies import get_current_user
from ..utils.roles import recruiter_only
from ..utils.validation import validate_experience_level, validate_job_type

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.post("", status_code=201)
def create_job(
    payload: JobCreate,
    db: Session = Depends(get_db),
    user=Depends(recruiter_only),
):
    data = payload.model_dump(exclude={"company_id"})
    job = job_service.create_job(db, payload.company_id, int(user.get("sub")), data)
    return {"success": True, "job": job_service.job_to_public(job)}


@router.get("/search")
def search_jobs(
    search: str | None = Query(default=None, description="Matches title, description or company name"),
    type: str | None = Query(default=None),
    experience_level: str | None = Query(default=None),
    location: str | None = Query(default=None),
    skills: str | None = Query(default=None, description="Comma-separated"),
    salary_min: int | None = Query(default=None, ge=0),
    page_size: int = Query(default=10, ge=1, le=job_service.MAX_PAGE_SIZE),
    cursor: int | None = Query(default=None, description="next_cursor from the previous page"),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    filters = {
        "search": search,
        "type": validate_job_type(type),
        "experience_level": validate_experience_level(experience_level),
        "location": (location or "").strip() or None,
        "skills": [s for s in (skills or "").split(",") if s.strip()],
        "salary_min": salary_min,
    }
    result = job_service.search_jobs(db, filters, page_size=page_size, cursor=cursor)
    return {
        "success": True,
        "jobs": [job_service.job_to_public(j) for j in result["jobs"]],
        "total_count": result["total_count"],
        "has_more": result["has_more"],
        "next_cursor": result["next_cursor"],
    }


@router.get("/recent")
def recent_jobs(
    limit: int = Query(default=10, ge=1, le=50),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    jobs = job_service.recent_jobs(db, limit=limit)
    return {"success": True, "jobs": [job_service.job_to_public(j) for j in jobs]}


@router.get("/mine")
def list_my_jobs(
    status: str | None = Query(default=None, description="draft/active/closed"),
    db: Session = Depends(get_db),
    user=Depends(recruiter_only),
):
    jobs = job_service.list_recruiter_jobs(db, int(user.get("sub")), status=status)
    return {"success": True, "jobs": [job_service.job_to_public(j) for j in jobs]}


@router.get("/{job_id:int}")
def get_job(job_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    job = job_service.get_job(db, job_id, role=user.get("role"))
    return {"success": True, "job": job_service.job_to_public(job)}


@router.patch("/{job_id:int}")
def update_job(
    job_id: int,
    payload: JobUpdate,
    db: Session = Depends(get_db),
    user=Depends(recruiter_only),
):
    job = job_service.update_job(db, job_id, int(user.get("sub")), payload.model_dump(exclude_unset=True))
    return {"success": True, "job": job_service.job_to_public(job)}


@router.patch("/{job_id:int}/status")
def update_job_status(
    job_id: int,
    payload: JobStatusUpdate,
    db: Session = Depends(get_db),
    user=Depends(recruiter_only),
):
    job = job_service.update_job_status(db, job_id, int(user.get("sub")), payload.status)
    return {"success": True, "job": job_service.job_to_public(job)}


@router.delete("/{job_id:int}")
def delete_job(job_id: int, db: Session = Depends(get_db), user=Depends(recruiter_only)):
    job_service.delete_job(db, job_id, int(user.get("sub")))
    return {"success": True, "deleted_job_id": job_id}
