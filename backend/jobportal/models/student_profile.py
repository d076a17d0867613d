from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.types import JSON

from ..database import Base
from ..utils.timeutils import utcnow


class StudentProfile(Base):
    __tablename__ = "student_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    phone = Column(String(30), nullable=True)
    bio = Column(Text, nullable=True)

    # Academic info
    university = Column(String(255), nullable=True)
    major = Column(String(255), nullable=True)
    graduation_year = Column(Integer, nullable=True)

    skills = Column(JSON, nullable=False, default=list)
    # Embedded records: [{"id": "edu_...", ..., "start_date": "2021-09-01", "end_date": null}]
    education = Column(JSON, nullable=False, default=list)
    experience = Column(JSON, nullable=False, default=list)
    projects = Column(JSON, nullable=False, default=list)
    preferred_job_types = Column(JSON, nullable=False, default=list)
    preferred_locations = Column(JSON, nullable=False, default=list)

    # Resume reference (file lives in object storage)
    resume_url = Column(String(1000), nullable=True)
    resume_path = Column(String(500), nullable=True)
    resume_filename = Column(String(255), nullable=True)
    resume_size_bytes = Column(Integer, nullable=True)
    resume_uploaded_at = Column(DateTime(timezone=True), nullable=True)
    resume_provider = Column(String(20), nullable=True)

    profile_completeness = Column(Integer, nullable=False, default=20)
    is_profile_public = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="student_profile")
