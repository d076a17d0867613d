import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.admin import ContentDelete, DisableUpdate, RoleUpdate
from ..services import admin as admin_service
from ..services.companies import company_to_public
from ..services.jobs import job_to_public
from ..services.users import get_user, user_to_public
from ..utils.roles import admin_only

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/analytics")
def platform_analytics(db: Session = Depends(get_db), user=Depends(admin_only)):
    return {"success": True, "analytics": admin_service.platform_analytics(db)}


@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db), user=Depends(admin_only)):
    stats = admin_service.dashboard_stats(db)
    stats["recent_users"] = [user_to_public(u) for u in stats["recent_users"]]
    return {"success": True, **stats}


@router.get("/users")
def list_users(
    role: str | None = Query(default=None),
    status: str | None = Query(default=None, description="active/disabled"),
    search: str | None = Query(default=None),
    page_size: int = Query(default=50, ge=1, le=admin_service.MAX_PAGE_SIZE),
    cursor: int | None = Query(default=None),
    db: Session = Depends(get_db),
    user=Depends(admin_only),
):
    result = admin_service.list_users(
        db, role=role, status=status, search=search, page_size=page_size, cursor=cursor
    )
    return {
        "success": True,
        "users": [user_to_public(u) for u in result["users"]],
        "has_more": result["has_more"],
        "next_cursor": result["next_cursor"],
    }


@router.get("/users/{user_id:int}")
def get_user_details(user_id: int, db: Session = Depends(get_db), user=Depends(admin_only)):
    return {"success": True, "user": user_to_public(get_user(db, user_id))}


@router.patch("/users/{user_id:int}/role")
def update_user_role(
    user_id: int,
    payload: RoleUpdate,
    db: Session = Depends(get_db),
    user=Depends(admin_only),
):
    updated = admin_service.update_user_role(db, int(user.get("sub")), user_id, payload.role, payload.reason)
    return {"success": True, "user": user_to_public(updated)}


@router.patch("/users/{user_id:int}/disabled")
def set_user_disabled(
    user_id: int,
    payload: DisableUpdate,
    db: Session = Depends(get_db),
    user=Depends(admin_only),
):
    updated = admin_service.set_user_disabled(
        db, int(user.get("sub")), user_id, payload.disabled, payload.reason
    )
    return {"success": True, "user": user_to_public(updated)}


@router.post("/content/delete")
def delete_content(payload: ContentDelete, db: Session = Depends(get_db), user=Depends(admin_only)):
    admin_service.delete_content(
        db, int(user.get("sub")), payload.content_type, payload.content_id, payload.reason
    )
    return {"success": True, "deleted": {"type": payload.content_type, "id": payload.content_id}}


@router.get("/content/search")
def search_content(
    term: str = Query(..., min_length=1),
    content_type: str = Query(..., description="job/company/user"),
    db: Session = Depends(get_db),
    user=Depends(admin_only),
):
    results = admin_service.search_content(db, term, content_type)
    to_public = {"job": job_to_public, "company": company_to_public, "user": user_to_public}[content_type]
    return {"success": True, "results": [to_public(r) for r in results]}


@router.get("/audit-log")
def audit_log(
    page_size: int = Query(default=50, ge=1, le=admin_service.MAX_PAGE_SIZE),
    cursor: int | None = Query(default=None),
    db: Session = Depends(get_db),
    user=Depends(admin_only),
):
    result = admin_service.audit_log(db, page_size=page_size, cursor=cursor)
    return {
        "success": True,
        "entries": [admin_service.audit_entry_to_public(e) for e in result["entries"]],
        "has_more": result["has_more"],
        "next_cursor": result["next_cursor"],
    }
