"""
Admin-only operations: platform analytics, account management, content
removal and the audit trail.
"""
import logging
from datetime import datetime, timedelta

from sqlalchemy import and_, case, func, or_
from sqlalchemy.orm import Session

from ..models.application import Application
from ..models.audit_log import AuditLogEntry
from ..models.company import Company
from ..models.job import Job
from ..models.user import User
from ..utils.error_handlers import NotFoundError, ValidationError, get_error_message
from ..utils.timeutils import iso, utcnow
from ..utils.validation import APPLICATION_STATUSES, ROLES, validate_integer_field, validate_role
from .users import get_user

logger = logging.getLogger(__name__)

CONTENT_TYPES = ("job", "company", "user")
MAX_PAGE_SIZE = 100


def _count(db: Session, model, *criteria) -> int:
    q = db.query(func.count(model.id))
    if criteria:
        q = q.filter(*criteria)
    return q.scalar() or 0


def platform_analytics(db: Session, now: datetime | None = None) -> dict:
    """
    Fresh counts on every call. Queries run one after another on the request
    session; role and status partitions sum to their totals as long as rows
    only use the documented values.
    """
    now = now or utcnow()
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)

    users = {"total": _count(db, User)}
    for role in ROLES:
        users[f"{role}s"] = _count(db, User, User.role == role)
    users["new_this_week"] = _count(db, User, User.created_at >= week_ago)
    users["new_this_month"] = _count(db, User, User.created_at >= month_ago)

    total_jobs = _count(db, Job)
    total_apps = _count(db, Application)

    jobs = {
        "total": total_jobs,
        "active": _count(db, Job, Job.status == "active"),
        "closed": _count(db, Job, Job.status == "closed"),
        "draft": _count(db, Job, Job.status == "draft"),
        "posted_this_week": _count(db, Job, Job.posted_at >= week_ago),
        "posted_this_month": _count(db, Job, Job.posted_at >= month_ago),
        "average_applications": round(total_apps / total_jobs, 1) if total_jobs else 0,
    }

    applications = {"total": total_apps}
    for status in APPLICATION_STATUSES:
        applications[status] = _count(db, Application, Application.status == status)
    applications["submitted_this_week"] = _count(db, Application, Application.applied_at >= week_ago)
    applications["submitted_this_month"] = _count(db, Application, Application.applied_at >= month_ago)

    with_active_jobs = (
        db.query(func.count(func.distinct(Job.company_id)))
        .filter(Job.status == "active")
        .scalar()
    ) or 0
    companies = {
        "total": _count(db, Company),
        "with_active_jobs": with_active_jobs,
        "created_this_week": _count(db, Company, Company.created_at >= week_ago),
        "created_this_month": _count(db, Company, Company.created_at >= month_ago),
    }

    return {
        "users": users,
        "jobs": jobs,
        "applications": applications,
        "companies": companies,
        "generated_at": iso(now),
    }


def dashboard_stats(db: Session) -> dict:
    analytics = platform_analytics(db)

    recent_users = db.query(User).order_by(User.created_at.desc(), User.id.desc()).limit(5).all()
    recent_jobs = db.query(Job).order_by(Job.posted_at.desc(), Job.id.desc()).limit(5).all()

    return {
        "total_users": analytics["users"]["total"],
        "total_jobs": analytics["jobs"]["total"],
        "total_applications": analytics["applications"]["total"],
        "total_companies": analytics["companies"]["total"],
        "recent_users": recent_users,
        "recent_jobs": [
            {
                "id": job.id,
                "title": job.title,
                "company_name": job.company_name,
                "posted_at": iso(job.posted_at),
                "application_count": _count(db, Application, Application.job_id == job.id),
            }
            for job in recent_jobs
        ],
    }


def _after_cursor(db: Session, model, time_column, cursor: int | None):
    """Keyset condition for `ORDER BY time_column DESC, id DESC` after row `cursor`."""
    if cursor is None:
        return None
    anchor = db.query(time_column, model.id).filter(model.id == cursor).first()
    if anchor is None:
        raise ValidationError("Invalid pagination cursor")
    anchor_time = anchor[0]
    return or_(time_column < anchor_time, and_(time_column == anchor_time, model.id < anchor.id))


def list_users(
    db: Session,
    *,
    role: str | None = None,
    status: str | None = None,
    search: str | None = None,
    page_size: int = 50,
    cursor: int | None = None,
) -> dict:
    page_size = validate_integer_field(page_size, "Page size", min_value=1, max_value=MAX_PAGE_SIZE)

    q = db.query(User)
    if role:
        q = q.filter(User.role == validate_role(role))
    if status:
        if status not in ("active", "disabled"):
            raise ValidationError("Invalid status. Must be one of: active, disabled")
        q = q.filter(User.disabled.is_(status == "disabled"))
    condition = _after_cursor(db, User, User.created_at, cursor)
    if condition is not None:
        q = q.filter(condition)

    rows = q.order_by(User.created_at.desc(), User.id.desc()).limit(page_size + 1).all()
    page = rows[:page_size]

    users = page
    term = (search or "").strip().lower()
    if term:
        users = [
            u for u in page
            if term in (u.display_name or "").lower() or term in (u.email or "").lower()
        ]

    return {
        "users": users,
        "has_more": len(rows) > page_size,
        "next_cursor": page[-1].id if page else None,
    }


def log_audit_action(
    db: Session,
    admin_id: int,
    action: str,
    target_type: str,
    target_id: int,
    details: dict | None = None,
) -> None:
    """Best-effort: a failure here is logged and never undoes the admin action."""
    try:
        admin = db.query(User).filter(User.id == admin_id).first()
        entry = AuditLogEntry(
            admin_id=admin_id,
            admin_name=(admin.display_name if admin else None) or "Unknown Admin",
            action=action,
            target_type=target_type,
            target_id=target_id,
            details=details or {},
            timestamp=utcnow(),
        )
        db.add(entry)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.warning("Error logging audit action %s on %s:%s: %s", action, target_type, target_id, e)


def update_user_role(db: Session, admin_id: int, user_id: int, role: str, reason: str | None = None) -> User:
    new_role = validate_role(role)
    if user_id == admin_id:
        raise ValidationError("You cannot change your own role")
    user = get_user(db, user_id)
    previous = user.role
    user.role = new_role
    user.updated_at = utcnow()
    db.commit()
    db.refresh(user)

    log_audit_action(db, admin_id, "role_change", "user", user_id, {
        "previous_role": previous,
        "new_role": new_role,
        "reason": reason,
    })
    return user


def set_user_disabled(db: Session, admin_id: int, user_id: int, disabled: bool, reason: str | None = None) -> User:
    if user_id == admin_id and disabled:
        raise ValidationError("You cannot disable your own account")
    user = get_user(db, user_id)
    user.disabled = bool(disabled)
    user.disabled_at = utcnow() if disabled else None
    user.disabled_reason = reason if disabled else None
    user.updated_at = utcnow()
    db.commit()
    db.refresh(user)

    log_audit_action(
        db, admin_id, "disable_user" if disabled else "enable_user", "user", user_id, {"reason": reason}
    )
    return user


def _delete_user_rows(db: Session, user: User) -> None:
    """Stage removal of a user and every row that references them."""
    db.query(Application).filter(Application.reviewed_by == user.id).update(
        {Application.reviewed_by: None}, synchronize_session=False
    )
    per_job = (
        db.query(Application.job_id, func.count(Application.id))
        .filter(Application.student_id == user.id)
        .group_by(Application.job_id)
        .all()
    )
    for job_id, n in per_job:
        db.query(Job).filter(Job.id == job_id).update(
            {Job.application_count: case((Job.application_count > n, Job.application_count - n), else_=0)},
            synchronize_session=False,
        )
    for app in db.query(Application).filter(Application.student_id == user.id).all():
        db.delete(app)
    for company in db.query(Company).filter(Company.owner_id == user.id).all():
        db.delete(company)
    # Postings made under someone else's company
    for job in db.query(Job).filter(Job.posted_by == user.id).all():
        db.delete(job)
    db.delete(user)


def delete_content(
    db: Session,
    admin_id: int,
    content_type: str,
    content_id: int,
    reason: str | None = None,
) -> None:
    """Delete a job (with applications), company (with jobs) or user in one commit."""
    if content_type not in CONTENT_TYPES:
        raise ValidationError(f"Invalid content type. Must be one of: {', '.join(CONTENT_TYPES)}")

    if content_type == "job":
        target = db.query(Job).filter(Job.id == content_id).first()
        if not target:
            raise NotFoundError(get_error_message("job_not_found"))
        db.delete(target)
    elif content_type == "company":
        target = db.query(Company).filter(Company.id == content_id).first()
        if not target:
            raise NotFoundError(get_error_message("company_not_found"))
        db.delete(target)
    else:
        if content_id == admin_id:
            raise ValidationError("You cannot delete your own account")
        _delete_user_rows(db, get_user(db, content_id))

    db.commit()
    logger.info("Admin %s deleted %s %s", admin_id, content_type, content_id)

    log_audit_action(db, admin_id, "delete_content", content_type, content_id, {"reason": reason})


def audit_log(db: Session, page_size: int = 50, cursor: int | None = None) -> dict:
    page_size = validate_integer_field(page_size, "Page size", min_value=1, max_value=MAX_PAGE_SIZE)

    q = db.query(AuditLogEntry)
    condition = _after_cursor(db, AuditLogEntry, AuditLogEntry.timestamp, cursor)
    if condition is not None:
        q = q.filter(condition)
    rows = q.order_by(AuditLogEntry.timestamp.desc(), AuditLogEntry.id.desc()).limit(page_size + 1).all()
    page = rows[:page_size]
    return {
        "entries": page,
        "has_more": len(rows) > page_size,
        "next_cursor": page[-1].id if page else None,
    }


def audit_entry_to_public(entry: AuditLogEntry) -> dict:
    return {
        "id": entry.id,
        "admin_id": entry.admin_id,
        "admin_name": entry.admin_name,
        "action": entry.action,
        "target_type": entry.target_type,
        "target_id": entry.target_id,
        "details": entry.details or {},
        "timestamp": iso(entry.timestamp),
    }


def search_content(db: Session, term: str, content_type: str) -> list:
    if content_type not in CONTENT_TYPES:
        raise ValidationError(f"Invalid content type. Must be one of: {', '.join(CONTENT_TYPES)}")
    needle = (term or "").strip().lower()
    if not needle:
        return []

    def hit(*values) -> bool:
        return any(needle in (v or "").lower() for v in values)

    if content_type == "job":
        return [j for j in db.query(Job).all() if hit(j.title, j.description, j.company_name)]
    if content_type == "company":
        return [c for c in db.query(Company).all() if hit(c.name, c.description)]
    return [u for u in db.query(User).all() if hit(u.display_name, u.email)]
