"""
Project Service - ownership-scoped project operations

Every method takes the caller's user id (from the access dependency) and only
ever touches that user's projects. Successful mutations fire a change
notification after the row has been committed.
"""

from datetime import datetime
from typing import Callable, List, Optional

from projecthub.core.exceptions import (
    ProjectAlreadyCompletedError,
    ProjectNotFoundError,
    ValidationError,
)
from projecthub.core.logging_config import logger
from projecthub.core.types import is_valid_uuid
from projecthub.models.project import Project, ProjectStatus
from projecthub.schemas.project import ProjectCreate, ProjectStats
from projecthub.services.change_notifier import ChangeAction, ChangeNotifier, NullNotifier, PROJECTS_SCOPE
from projecthub.services.project_store import ProjectStore


class ProjectService:
    """
    Create/list/complete/delete for the projects of one caller.

    Status rules: a project starts Active unless told otherwise, may move from
    Active or On Hold to Completed exactly once, and no other transition is
    offered.
    """

    def __init__(
        self,
        store: ProjectStore,
        notifier: Optional[ChangeNotifier] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.store = store
        self.notifier = notifier or NullNotifier()
        self._clock = clock

    async def create(self, owner_id: str, data: ProjectCreate) -> Project:
        for field_name in ("title", "description", "category"):
            if not getattr(data, field_name, None):
                raise ValidationError(
                    "Title, description, and category are required",
                    field=field_name
                )

        project = await self.store.insert(
            owner_id=owner_id,
            title=data.title,
            description=data.description,
            category=data.category,
            status=data.status or ProjectStatus.ACTIVE,
            created_at=self._clock(),
        )

        logger.log_project_event("created", project.id, owner_id, status=project.status.value)
        self.notifier.notify_changed(PROJECTS_SCOPE, ChangeAction.CREATED)
        return project

    async def list(self, owner_id: str) -> List[Project]:
        return await self.store.list_for_owner(owner_id)

    async def get(self, owner_id: str, project_id: str) -> Project:
        self._check_id(project_id)
        project = await self.store.get_owned(project_id, owner_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    async def complete_by_id(self, owner_id: str, project_id: str) -> Project:
        """
        Mark a project Completed and stamp its completion date.

        Raises:
            ProjectNotFoundError: no such project for this owner
            ProjectAlreadyCompletedError: status is already Completed; the
                original completion date is left untouched
        """
        self._check_id(project_id)
        updated = await self.store.mark_completed(project_id, owner_id, self._clock())
        project = await self.store.get_owned(project_id, owner_id)

        if project is None:
            raise ProjectNotFoundError(project_id)
        if not updated:
            raise ProjectAlreadyCompletedError(project_id)

        logger.log_project_event("completed", project.id, owner_id)
        self.notifier.notify_changed(PROJECTS_SCOPE, ChangeAction.COMPLETED)
        return project

    async def delete_by_id(self, owner_id: str, project_id: str) -> None:
        self._check_id(project_id)
        deleted = await self.store.delete_owned(project_id, owner_id)
        if not deleted:
            raise ProjectNotFoundError(project_id)

        logger.log_project_event("deleted", project_id, owner_id)
        self.notifier.notify_changed(PROJECTS_SCOPE, ChangeAction.DELETED)

    async def stats(self, owner_id: str) -> ProjectStats:
        """Dashboard aggregates: counts per status, per category, completions per month"""
        by_status = await self.store.count_by_status(owner_id)
        by_category = await self.store.count_by_category(owner_id)

        completed_by_month: dict = {}
        for completed_at in await self.store.completion_dates(owner_id):
            month = completed_at.strftime("%Y-%m")
            completed_by_month[month] = completed_by_month.get(month, 0) + 1

        return ProjectStats(
            total=sum(by_status.values()),
            by_status={status.value: by_status.get(status, 0) for status in ProjectStatus},
            by_category=by_category,
            completed_by_month=completed_by_month,
        )

    @staticmethod
    def _check_id(project_id: str) -> None:
        # Ids are generated UUIDs; anything else cannot exist
        if not is_valid_uuid(project_id):
            raise ProjectNotFoundError(project_id)
