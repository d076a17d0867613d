from pathlib import Path
import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import companies as company_service
from ..services.jobs import job_to_public, list_company_jobs
from ..utils.dependencies import get_current_user
from ..utils.file_validation import RECOMMENDED_IMAGE_SIZE, FilePayload, format_file_size, is_recommended_logo_size
from ..utils.roles import recruiter_only
from ..utils.validation import sanitize_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/companies", tags=["Companies"])


async def _read_logo(logo: UploadFile | None) -> FilePayload | None:
    if logo is None or not logo.filename:
        return None
    try:
        content = await logo.read()
    finally:
        await logo.close()
    return FilePayload(
        filename=sanitize_filename(Path(logo.filename).name),
        content_type=logo.content_type,
        content=content,
    )


def _form_data(**fields) -> dict:
    # Multipart forms can't send null; omitted fields are left untouched.
    return {k: v for k, v in fields.items() if v is not None}


def _company_response(company, logo: FilePayload | None) -> dict:
    body = {"success": True, "company": company_service.company_to_public(company)}
    # Accepted up to the hard limit, but large logos slow every job listing down.
    if logo is not None and not is_recommended_logo_size(logo.size):
        body["warnings"] = [
            f"Logo is {format_file_size(logo.size)}; "
            f"keeping it under {format_file_size(RECOMMENDED_IMAGE_SIZE)} is recommended."
        ]
    return body


@router.post("", status_code=201)
async def create_company(
    name: str = Form(...),
    description: str | None = Form(default=None),
    website: str | None = Form(default=None),
    industry: str | None = Form(default=None),
    location: str | None = Form(default=None),
    size: str | None = Form(default=None),
    logo: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    user=Depends(recruiter_only),
):
    data = _form_data(
        name=name, description=description, website=website,
        industry=industry, location=location, size=size,
    )
    payload = await _read_logo(logo)
    company = company_service.create_company(db, int(user.get("sub")), data, payload)
    return _company_response(company, payload)


@router.get("/mine")
def list_my_companies(db: Session = Depends(get_db), user=Depends(recruiter_only)):
    companies = company_service.list_user_companies(db, int(user.get("sub")))
    return {"success": True, "companies": [company_service.company_to_public(c) for c in companies]}


@router.get("/{company_id:int}")
def get_company(company_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    company = company_service.get_company(db, company_id)
    return {"success": True, "company": company_service.company_to_public(company)}


@router.get("/{company_id:int}/jobs")
def get_company_jobs(company_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    company = company_service.get_company(db, company_id)
    # Only the owner sees drafts and closed postings.
    only_active = company.owner_id != int(user.get("sub")) and user.get("role") != "admin"
    jobs = list_company_jobs(db, company.id, only_active=only_active)
    return {"success": True, "jobs": [job_to_public(j) for j in jobs]}


@router.patch("/{company_id:int}")
async def update_company(
    company_id: int,
    name: str | None = Form(default=None),
    description: str | None = Form(default=None),
    website: str | None = Form(default=None),
    industry: str | None = Form(default=None),
    location: str | None = Form(default=None),
    size: str | None = Form(default=None),
    logo: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    user=Depends(recruiter_only),
):
    data = _form_data(
        name=name, description=description, website=website,
        industry=industry, location=location, size=size,
    )
    payload = await _read_logo(logo)
    company = company_service.update_company(db, company_id, int(user.get("sub")), data, payload)
    return _company_response(company, payload)


@router.delete("/{company_id:int}")
def delete_company(company_id: int, db: Session = Depends(get_db), user=Depends(recruiter_only)):
    company_service.delete_company(db, company_id, int(user.get("sub")))
    return {"success": True, "deleted_company_id": company_id}
