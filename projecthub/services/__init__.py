from projecthub.services.user_store import UserStore
from projecthub.services.project_store import ProjectStore
from projecthub.services.project_service import ProjectService
from projecthub.services.change_notifier import (
    ChangeNotifier,
    ChangeAction,
    NullNotifier,
    WebSocketNotifier,
    PROJECTS_SCOPE,
)

__all__ = [
    "UserStore",
    "ProjectStore",
    "ProjectService",
    "ChangeNotifier",
    "ChangeAction",
    "NullNotifier",
    "WebSocketNotifier",
    "PROJECTS_SCOPE",
]
