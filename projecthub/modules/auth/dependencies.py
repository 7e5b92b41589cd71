from fastapi import Depends, Request
from fastapi.openapi.models import HTTPBearer as HTTPBearerModel
from fastapi.security.base import SecurityBase
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.core.database import get_db
from projecthub.core.exceptions import (
    NoTokenError,
    MalformedTokenError,
    InvalidTokenError,
    TokenVerificationError,
)
from projecthub.core.logging_config import logger, set_user_id
from projecthub.core.security import TokenService
from projecthub.models.user import User
from projecthub.services.change_notifier import ChangeNotifier
from projecthub.services.project_service import ProjectService
from projecthub.services.project_store import ProjectStore
from projecthub.services.user_store import UserStore


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_notifier(request: Request) -> ChangeNotifier:
    return request.app.state.notifier


class BearerTokenAuth(SecurityBase):
    """
    Access gate for protected routes.

    Reads ``Authorization: Bearer <token>``, verifies the token and returns the
    user id it carries. The id is also stored on ``request.state.user_id`` and
    in the logging context. Failures:

    - header absent: NoTokenError
    - header not "<scheme> <token>", or scheme other than Bearer: MalformedTokenError
    - verification failed (bad signature, expired, unreadable): InvalidTokenError
    """

    def __init__(self, header_name: str = "Authorization", scheme_name: str = "BearerAuth"):
        self.header_name = header_name
        self.model = HTTPBearerModel(bearerFormat="JWT")
        self.scheme_name = scheme_name

    async def __call__(self, request: Request) -> str:
        header = request.headers.get(self.header_name)
        if not header:
            raise NoTokenError()

        parts = header.split()
        if len(parts) != 2:
            raise MalformedTokenError()

        scheme, token = parts
        if scheme.lower() != "bearer":
            raise MalformedTokenError("Unsupported authorization scheme")

        token_service = get_token_service(request)
        try:
            user_id = token_service.verify(token)
        except TokenVerificationError as e:
            logger.log_auth_event(
                event="token",
                success=False,
                reason=e.reason,
                http_path=request.url.path
            )
            raise InvalidTokenError(reason=e.reason)

        request.state.user_id = user_id
        set_user_id(user_id)
        return user_id


bearer_auth = BearerTokenAuth()


async def get_current_user_id(user_id: str = Depends(bearer_auth)) -> str:
    """Authenticated caller's user id"""
    return user_id


async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Authenticated caller's user record"""
    user = await UserStore(db).find_by_id(user_id)
    if user is None:
        raise InvalidTokenError(reason="unknown_user")
    return user


async def get_project_service(
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier)
) -> ProjectService:
    return ProjectService(ProjectStore(db), notifier)
