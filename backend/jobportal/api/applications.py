import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.applications import ApplicationCreate, ApplicationStatusUpdate
from ..services import applications as application_service
from ..utils.dependencies import get_current_user
from ..utils.roles import recruiter_only, student_only

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.post("", status_code=201)
def apply_to_job(
    payload: ApplicationCreate,
    db: Session = Depends(get_db),
    user=Depends(student_only),
):
    application = application_service.create_application(
        db, int(user.get("sub")), payload.job_id, payload.cover_letter
    )
    return {"success": True, "application": application_service.application_to_public(application)}


@router.get("/mine")
def list_my_applications(db: Session = Depends(get_db), user=Depends(student_only)):
    apps = application_service.list_student_applications(db, int(user.get("sub")))
    return {"success": True, "applications": [application_service.application_brief(a) for a in apps]}


@router.get("/has-applied/{job_id:int}")
def has_applied(job_id: int, db: Session = Depends(get_db), user=Depends(student_only)):
    return {
        "success": True,
        "has_applied": application_service.has_applied(db, int(user.get("sub")), job_id),
    }


@router.get("/received")
def list_received_applications(db: Session = Depends(get_db), user=Depends(recruiter_only)):
    items = application_service.list_recruiter_applications(db, int(user.get("sub")))
    return {"success": True, "applications": items}


@router.get("/stats")
def application_stats(db: Session = Depends(get_db), user=Depends(recruiter_only)):
    return {"success": True, "stats": application_service.application_stats(db, int(user.get("sub")))}


@router.get("/job/{job_id:int}")
def list_job_applications(job_id: int, db: Session = Depends(get_db), user=Depends(recruiter_only)):
    items = application_service.list_job_applications(db, job_id, int(user.get("sub")))
    return {"success": True, "applications": items}


@router.get("/{application_id:int}")
def get_application(application_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    app = application_service.get_application_for_user(db, application_id, user)
    return {"success": True, "application": application_service.application_to_public(app)}


@router.patch("/{application_id:int}/status")
def update_application_status(
    application_id: int,
    payload: ApplicationStatusUpdate,
    db: Session = Depends(get_db),
    user=Depends(recruiter_only),
):
    app = application_service.update_application_status(
        db, application_id, int(user.get("sub")), payload.status, payload.notes
    )
    return {"success": True, "application": application_service.application_to_public(app)}


@router.delete("/{application_id:int}")
def withdraw_application(application_id: int, db: Session = Depends(get_db), user=Depends(student_only)):
    application_service.withdraw_application(db, application_id, int(user.get("sub")))
    return {"success": True, "deleted_application_id": application_id}
