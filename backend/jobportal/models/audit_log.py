from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.types import JSON

from ..database import Base
from ..utils.timeutils import utcnow


class AuditLogEntry(Base):
    """Append-only record of admin actions."""
    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, index=True)
    admin_id = Column(Integer, nullable=False, index=True)
    admin_name = Column(String(255), nullable=False)
    action = Column(String(50), nullable=False)  # role_change | disable_user | enable_user | delete_content
    target_type = Column(String(20), nullable=False)  # user | job | company
    target_id = Column(Integer, nullable=False)
    details = Column(JSON, nullable=True)
    timestamp = Column(DateTime(timezone=True), default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<AuditLogEntry(action={self.action}, target={self.target_type}:{self.target_id})>"
