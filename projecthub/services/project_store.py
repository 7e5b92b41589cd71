"""
Project store: persistence for project records, always scoped to an owner.

Every query filters by (id, owner) so a project belonging to someone else is
indistinguishable from a missing one.
"""

from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from projecthub.models.project import Project, ProjectStatus


def _next_seq():
    """Scalar subquery rendered into the INSERT: one past the highest seq so far"""
    existing = aliased(Project)
    return select(func.coalesce(func.max(existing.seq), 0) + 1).scalar_subquery()


class ProjectStore:
    """Reads and writes rows of the ``projects`` table for one owner at a time"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert(
        self,
        owner_id: str,
        title: str,
        description: str,
        category: str,
        status: ProjectStatus,
        created_at: datetime,
    ) -> Project:
        project = Project(
            user_id=owner_id,
            title=title,
            description=description,
            category=category,
            status=status,
            created_at=created_at,
            completion_date=created_at if status == ProjectStatus.COMPLETED else None,
        )
        project.seq = _next_seq()
        self.db.add(project)
        await self.db.commit()
        await self.db.refresh(project)
        return project

    async def list_for_owner(self, owner_id: str) -> List[Project]:
        """All projects of ``owner_id``, newest first"""
        result = await self.db.execute(
            select(Project)
            .where(Project.user_id == owner_id)
            .order_by(Project.created_at.desc(), Project.seq.desc())
        )
        return list(result.scalars().all())

    async def get_owned(self, project_id: str, owner_id: str) -> Optional[Project]:
        result = await self.db.execute(
            select(Project)
            .where(Project.id == project_id, Project.user_id == owner_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def mark_completed(self, project_id: str, owner_id: str, completed_at: datetime) -> bool:
        """
        Flip an owned, not-yet-completed project to Completed.

        Runs as one conditional UPDATE so concurrent callers cannot both
        succeed. Returns False when no row matched (missing, not owned, or
        already completed).
        """
        result = await self.db.execute(
            update(Project)
            .where(
                Project.id == project_id,
                Project.user_id == owner_id,
                Project.status != ProjectStatus.COMPLETED,
            )
            .values(status=ProjectStatus.COMPLETED, completion_date=completed_at)
        )
        await self.db.commit()
        return result.rowcount == 1

    async def delete_owned(self, project_id: str, owner_id: str) -> bool:
        """Delete an owned project; False when no row matched"""
        result = await self.db.execute(
            delete(Project).where(Project.id == project_id, Project.user_id == owner_id)
        )
        await self.db.commit()
        return result.rowcount == 1

    async def count_by_status(self, owner_id: str) -> Dict[ProjectStatus, int]:
        result = await self.db.execute(
            select(Project.status, func.count(Project.id))
            .where(Project.user_id == owner_id)
            .group_by(Project.status)
        )
        return {status: count for status, count in result.all()}

    async def count_by_category(self, owner_id: str) -> Dict[str, int]:
        result = await self.db.execute(
            select(Project.category, func.count(Project.id))
            .where(Project.user_id == owner_id)
            .group_by(Project.category)
            .order_by(Project.category)
        )
        return {category: count for category, count in result.all()}

    async def completion_dates(self, owner_id: str) -> List[datetime]:
        result = await self.db.execute(
            select(Project.completion_date)
            .where(
                Project.user_id == owner_id,
                Project.status == ProjectStatus.COMPLETED,
                Project.completion_date.is_not(None),
            )
            .order_by(Project.completion_date)
        )
        return list(result.scalars().all())
