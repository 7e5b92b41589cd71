from fastapi import APIRouter, Depends, status
from typing import List

from projecthub.modules.auth.dependencies import get_current_user_id, get_project_service
from projecthub.schemas.project import (
    ProjectCreate,
    ProjectResponse,
    ProjectMessageResponse,
    MessageResponse,
    ProjectStats,
)
from projecthub.services.project_service import ProjectService


router = APIRouter(prefix="/projects", tags=["Projects"])


@router.post("", response_model=ProjectMessageResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    user_id: str = Depends(get_current_user_id),
    service: ProjectService = Depends(get_project_service)
):
    """Create a project owned by the caller (status defaults to Active)"""
    project = await service.create(user_id, project_data)
    return ProjectMessageResponse(
        message="Project added",
        project=ProjectResponse.model_validate(project)
    )


@router.get("", response_model=List[ProjectResponse])
async def list_projects(
    user_id: str = Depends(get_current_user_id),
    service: ProjectService = Depends(get_project_service)
):
    """List the caller's projects, newest first"""
    return await service.list(user_id)


@router.get("/stats", response_model=ProjectStats)
async def project_stats(
    user_id: str = Depends(get_current_user_id),
    service: ProjectService = Depends(get_project_service)
):
    """Dashboard counts for the caller's projects"""
    return await service.stats(user_id)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ProjectService = Depends(get_project_service)
):
    return await service.get(user_id, project_id)


@router.put("/{project_id}/complete", response_model=ProjectMessageResponse)
async def complete_project(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ProjectService = Depends(get_project_service)
):
    """Mark a project as completed and stamp its completion date"""
    project = await service.complete_by_id(user_id, project_id)
    return ProjectMessageResponse(
        message="Project marked as completed",
        project=ProjectResponse.model_validate(project)
    )


@router.delete("/{project_id}", response_model=MessageResponse)
async def delete_project(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ProjectService = Depends(get_project_service)
):
    await service.delete_by_id(user_id, project_id)
    return MessageResponse(message="Project deleted")
