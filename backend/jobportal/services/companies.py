import logging

from sqlalchemy.orm import Session

from ..models.company import Company
from ..models.job import Job
from ..utils.error_handlers import ForbiddenError, NotFoundError, get_error_message
from ..utils.file_validation import FilePayload, validate_logo_image
from ..utils.timeutils import iso, utcnow
from ..utils.validation import validate_string_field
from . import storage

logger = logging.getLogger(__name__)

_OPTIONAL_FIELDS = {
    "description": 5000,
    "website": 255,
    "industry": 100,
    "location": 255,
    "size": 50,
}


def company_to_public(company: Company) -> dict:
    return {
        "id": company.id,
        "owner_id": company.owner_id,
        "name": company.name,
        "description": company.description,
        "website": company.website,
        "industry": company.industry,
        "location": company.location,
        "size": company.size,
        "logo_url": company.logo_url,
        "logo_public_id": company.logo_public_id,
        "created_at": iso(company.created_at),
        "updated_at": iso(company.updated_at),
    }


def _apply_fields(company: Company, data: dict, *, creating: bool) -> None:
    if creating or "name" in data:
        company.name = validate_string_field(data.get("name"), "Company name", min_length=2, max_length=255)
    for field, max_length in _OPTIONAL_FIELDS.items():
        if field in data:
            setattr(
                company,
                field,
                validate_string_field(data[field], field.capitalize(), max_length=max_length, required=False),
            )


def upload_logo(logo: FilePayload, company_id: int) -> dict:
    """Validate then push to the image host. Nothing is sent for a rejected file."""
    validate_logo_image(logo.filename, logo.content_type, logo.content)
    return storage.upload_logo(logo.content, logo.filename, logo.content_type, company_id)


def delete_logo(public_id: str | None) -> None:
    storage.delete_logo(public_id)


def get_company(db: Session, company_id: int) -> Company:
    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        raise NotFoundError(get_error_message("company_not_found"))
    return company


def get_owned_company(db: Session, company_id: int, owner_id: int) -> Company:
    company = get_company(db, company_id)
    if company.owner_id != owner_id:
        raise ForbiddenError(get_error_message("company_forbidden"))
    return company


def list_user_companies(db: Session, owner_id: int) -> list[Company]:
    return (
        db.query(Company)
        .filter(Company.owner_id == owner_id)
        .order_by(Company.created_at.desc(), Company.id.desc())
        .all()
    )


def create_company(db: Session, owner_id: int, data: dict, logo: FilePayload | None = None) -> Company:
    if logo is not None:
        validate_logo_image(logo.filename, logo.content_type, logo.content)

    company = Company(owner_id=owner_id)
    _apply_fields(company, data, creating=True)
    db.add(company)
    # Need the id for the logo folder before committing.
    db.flush()

    if logo is not None:
        try:
            result = upload_logo(logo, company.id)
        except Exception:
            db.rollback()
            raise
        company.logo_url = result["url"]
        company.logo_public_id = result["public_id"]

    db.commit()
    db.refresh(company)
    logger.info("Company %s created by user %s", company.id, owner_id)
    return company


def update_company(
    db: Session,
    company_id: int,
    owner_id: int,
    data: dict,
    logo: FilePayload | None = None,
) -> Company:
    company = get_owned_company(db, company_id, owner_id)
    _apply_fields(company, data, creating=False)

    old_public_id = None
    if logo is not None:
        result = upload_logo(logo, company.id)
        old_public_id = company.logo_public_id
        company.logo_url = result["url"]
        company.logo_public_id = result["public_id"]

    company.updated_at = utcnow()
    db.commit()
    db.refresh(company)

    if old_public_id and old_public_id != company.logo_public_id:
        delete_logo(old_public_id)
    return company


def delete_company(db: Session, company_id: int, owner_id: int) -> None:
    """Removes the company, its jobs and their applications."""
    company = get_owned_company(db, company_id, owner_id)
    public_id = company.logo_public_id
    job_count = db.query(Job).filter(Job.company_id == company.id).count()

    db.delete(company)
    db.commit()
    logger.info("Company %s deleted with %s jobs", company_id, job_count)

    delete_logo(public_id)
