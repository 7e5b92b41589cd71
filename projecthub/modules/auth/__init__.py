from projecthub.modules.auth.dependencies import (
    BearerTokenAuth,
    bearer_auth,
    get_current_user_id,
    get_current_user,
    get_project_service,
    get_token_service,
    get_notifier,
)

__all__ = [
    "BearerTokenAuth",
    "bearer_auth",
    "get_current_user_id",
    "get_current_user",
    "get_project_service",
    "get_token_service",
    "get_notifier",
]
