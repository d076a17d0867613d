from pydantic import BaseModel, Field


class JobCreate(BaseModel):
    company_id: int
    title: str = Field(min_length=2, max_length=150)
    description: str | None = Field(default=None, max_length=5000)
    type: str | None = None  # full-time / part-time / internship / contract
    experience_level: str | None = None  # entry / mid / senior
    location: str | None = Field(default=None, max_length=100)
    salary_min: int | None = None
    salary_max: int | None = None
    salary_currency: str | None = Field(default=None, max_length=5)
    skills: list[str] = Field(default_factory=list)
    deadline: str | None = None  # ISO datetime string
    status: str | None = None  # draft (default) / active / closed


class JobUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=2, max_length=150)
    description: str | None = Field(default=None, max_length=5000)
    type: str | None = None
    experience_level: str | None = None
    location: str | None = Field(default=None, max_length=100)
    salary_min: int | None = None
    salary_max: int | None = None
    salary_currency: str | None = Field(default=None, max_length=5)
    skills: list[str] | None = None
    deadline: str | None = None
    status: str | None = None


class JobStatusUpdate(BaseModel):
    status: str
