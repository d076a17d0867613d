from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.types import JSON

from ..database import Base
from ..utils.timeutils import utcnow


class Job(Base):
    __tablename__ = "jobs"
    __table_args__ = (
        Index("ix_jobs_status_posted", "status", "posted_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    # Denormalized from Company at creation time
    company_name = Column(String(255), nullable=True)
    company_logo_url = Column(String(1000), nullable=True)
    posted_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=True)  # full-time | part-time | internship | contract
    experience_level = Column(String(20), nullable=True)  # entry | mid | senior
    location = Column(String(100), nullable=True)
    salary_min = Column(Integer, nullable=True)
    salary_max = Column(Integer, nullable=True)
    salary_currency = Column(String(5), nullable=True)
    skills = Column(JSON, nullable=False, default=list)

    status = Column(String(20), nullable=False, default="draft")  # draft | active | closed
    application_count = Column(Integer, nullable=False, default=0)
    deadline = Column(DateTime(timezone=True), nullable=True)
    posted_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    company = relationship("Company", back_populates="jobs")
    # Deleting a job should also remove dependent applications at ORM level.
    applications = relationship("Application", back_populates="job", cascade="all, delete-orphan")
