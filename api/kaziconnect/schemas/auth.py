from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from kaziconnect.schemas.common import Envelope
from kaziconnect.schemas.profiles import UserProfile
from kaziconnect.schemas.validators import check_password_strength, normalize_email, normalize_phone

RegistrableRole = Literal["job-seeker", "employer"]


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    role: RegistrableRole
    full_name: str | None = Field(default=None, min_length=3, max_length=100)
    company_name: str | None = Field(default=None, max_length=150)
    phone: str | None = None
    industry: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=100)

    model_config = {"str_strip_whitespace": True}

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, value: object) -> object:
        return normalize_email(value)

    @field_validator("password")
    @classmethod
    def _check_password(cls, value: str) -> str:
        return check_password_strength(value)

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, value: str | None) -> str | None:
        return normalize_phone(value)

    @model_validator(mode="after")
    def _require_company_for_employers(self) -> "RegisterRequest":
        if self.role == "employer" and not self.company_name:
            raise ValueError("Company name is required for employers")
        return self


class LoginRequest(BaseModel):
    # Email or username.
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def _check_password(cls, value: str) -> str:
        return check_password_strength(value)


class AuthOut(Envelope):
    token: str
    user: UserProfile
