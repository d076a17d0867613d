from .application import Application
from .audit_log import AuditLogEntry
from .company import Company
from .job import Job
from .student_profile import StudentProfile
from .user import User

__all__ = ["Application", "AuditLogEntry", "Company", "Job", "StudentProfile", "User"]
