from pydantic import BaseModel


class RoleUpdate(BaseModel):
    role: str
    reason: str | None = None


class DisableUpdate(BaseModel):
    disabled: bool
    reason: str | None = None


class ContentDelete(BaseModel):
    content_type: str  # job / company / user
    content_id: int
    reason: str | None = None
