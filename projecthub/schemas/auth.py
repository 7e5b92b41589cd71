from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime

from projecthub.models.user import DEFAULT_ROLE


def check_email(value: str) -> str:
    """Light shape check: something@something, no whitespace. Any domain is allowed."""
    local, sep, domain = value.partition("@")
    if not sep or not local or not domain or any(ch.isspace() for ch in value):
        raise ValueError("must look like name@domain")
    return value


class UserRegister(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)
    role: Optional[str] = Field(None, max_length=50)

    @field_validator("email")
    @classmethod
    def email_shape(cls, v: str) -> str:
        return check_email(v)

    @property
    def effective_role(self) -> str:
        return self.role or DEFAULT_ROLE


class UserSignin(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


class RegisterResponse(BaseModel):
    success: bool = True
    message: str


class SigninResponse(BaseModel):
    message: str
    token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    role: str
    created_at: datetime
