from pathlib import Path
import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.students import ProfileEntry, SkillSearchRequest, StudentProfileUpdate
from ..services import students as student_service
from ..utils.error_handlers import get_error_message
from ..utils.roles import staff_only, student_only
from ..utils.validation import sanitize_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/students", tags=["Students"])


@router.get("/me")
def get_my_profile(db: Session = Depends(get_db), user=Depends(student_only)):
    profile = student_service.require_student_profile(db, int(user.get("sub")))
    return {"success": True, "profile": student_service.profile_to_public(profile)}


@router.put("/me")
def save_my_profile(
    payload: StudentProfileUpdate,
    db: Session = Depends(get_db),
    user=Depends(student_only),
):
    profile = student_service.save_student_profile(db, int(user.get("sub")), payload.to_data())
    return {"success": True, "profile": student_service.profile_to_public(profile)}


@router.post("/me/resume", status_code=201)
async def upload_resume(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user=Depends(student_only),
):
    if not file or not file.filename:
        raise HTTPException(status_code=400, detail=get_error_message("invalid_file_type"))

    original_filename = sanitize_filename(Path(file.filename).name)
    try:
        content = await file.read()
    finally:
        await file.close()

    profile = student_service.upload_resume(
        db,
        int(user.get("sub")),
        filename=original_filename,
        content_type=file.content_type,
        content=content,
    )
    return {"success": True, "resume": student_service.resume_to_public(profile)}


@router.delete("/me/resume")
def delete_resume(db: Session = Depends(get_db), user=Depends(student_only)):
    profile = student_service.delete_resume(db, int(user.get("sub")))
    return {
        "success": True,
        "profile_completeness": profile.profile_completeness,
    }


@router.post("/me/{kind}", status_code=201)
def add_profile_entry(
    kind: str,
    payload: ProfileEntry,
    db: Session = Depends(get_db),
    user=Depends(student_only),
):
    entry = student_service.add_entry(db, int(user.get("sub")), kind, payload.model_dump(exclude={"id"}))
    return {"success": True, "entry": entry}


@router.patch("/me/{kind}/{entry_id}")
def update_profile_entry(
    kind: str,
    entry_id: str,
    payload: ProfileEntry,
    db: Session = Depends(get_db),
    user=Depends(student_only),
):
    updates = payload.model_dump(exclude_unset=True, exclude={"id"})
    entry = student_service.update_entry(db, int(user.get("sub")), kind, entry_id, updates)
    return {"success": True, "entry": entry}


@router.delete("/me/{kind}/{entry_id}")
def remove_profile_entry(
    kind: str,
    entry_id: str,
    db: Session = Depends(get_db),
    user=Depends(student_only),
):
    student_service.remove_entry(db, int(user.get("sub")), kind, entry_id)
    return {"success": True, "deleted_entry_id": entry_id}


@router.post("/search")
def search_students(
    payload: SkillSearchRequest,
    db: Session = Depends(get_db),
    user=Depends(staff_only),
):
    profiles = student_service.search_students_by_skills(db, payload.skills)
    return {
        "success": True,
        "students": [student_service.profile_to_public(p) for p in profiles],
    }


@router.get("/{user_id:int}")
def get_student(user_id: int, db: Session = Depends(get_db), user=Depends(staff_only)):
    profile = student_service.require_student_profile(db, user_id)
    # Recruiters only see profiles the student made public; admins see all.
    if user.get("role") != "admin" and not profile.is_profile_public:
        raise HTTPException(status_code=404, detail=get_error_message("student_not_found"))
    return {"success": True, "profile": student_service.profile_to_public(profile)}
