from pydantic import BaseModel


class ApplicationCreate(BaseModel):
    job_id: int
    cover_letter: str = ""


class ApplicationStatusUpdate(BaseModel):
    status: str
    notes: str | None = None
