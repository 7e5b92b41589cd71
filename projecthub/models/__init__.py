from projecthub.models.user import User, DEFAULT_ROLE
from projecthub.models.project import Project, ProjectStatus

__all__ = ["User", "DEFAULT_ROLE", "Project", "ProjectStatus"]
