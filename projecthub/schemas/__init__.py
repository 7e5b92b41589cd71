from projecthub.schemas.auth import (
    UserRegister,
    UserSignin,
    RegisterResponse,
    SigninResponse,
    UserResponse,
)
from projecthub.schemas.project import (
    ProjectCreate,
    ProjectResponse,
    ProjectMessageResponse,
    MessageResponse,
    ProjectStats,
)

__all__ = [
    "UserRegister",
    "UserSignin",
    "RegisterResponse",
    "SigninResponse",
    "UserResponse",
    "ProjectCreate",
    "ProjectResponse",
    "ProjectMessageResponse",
    "MessageResponse",
    "ProjectStats",
]
