from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from ..database import Base
from ..utils.timeutils import utcnow


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("student_id", "job_id", name="uq_applications_student_job"),
    )

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Denormalized display fields
    job_title = Column(String(150), nullable=True)
    company_name = Column(String(255), nullable=True)
    company_logo_url = Column(String(1000), nullable=True)
    student_name = Column(String(255), nullable=True)
    student_email = Column(String(255), nullable=True)

    # Resume snapshot taken at submission time
    resume_url = Column(String(1000), nullable=False)
    resume_filename = Column(String(255), nullable=True)
    resume_provider = Column(String(20), nullable=True)

    cover_letter = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)  # pending | reviewed | accepted | rejected
    applied_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    notes = Column(Text, nullable=True)

    job = relationship("Job", back_populates="applications")
