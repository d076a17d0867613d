from pydantic import BaseModel


class SignupRequest(BaseModel):
    email: str
    password: str
    display_name: str
    role: str  # student / recruiter


class LoginRequest(BaseModel):
    email: str
    password: str
    role: str | None = None  # optional role gate (account type selected on the login form)


class UpdateMeRequest(BaseModel):
    display_name: str | None = None
    photo_url: str | None = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class PasswordResetRequest(BaseModel):
    email: str


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str


class VerifyEmailRequest(BaseModel):
    token: str


class PasswordStrengthRequest(BaseModel):
    password: str = ""
