from typing import Any

from pydantic import BaseModel, Field


class ProfileEntry(BaseModel):
    """Education, experience or project record. Extra keys are kept as-is."""
    model_config = {"extra": "allow"}

    id: str | None = None
    start_date: str | None = None
    end_date: str | None = None


class StudentProfileUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    bio: str | None = None
    university: str | None = None
    major: str | None = None
    graduation_year: int | None = None
    skills: list[str] | None = None
    education: list[ProfileEntry] | None = None
    experience: list[ProfileEntry] | None = None
    projects: list[ProfileEntry] | None = None
    preferred_job_types: list[str] | None = None
    preferred_locations: list[str] | None = None
    is_profile_public: bool | None = None

    def to_data(self) -> dict[str, Any]:
        # Only fields the client actually sent are applied.
        return self.model_dump(exclude_unset=True)


class SkillSearchRequest(BaseModel):
    skills: list[str] = Field(default_factory=list)
