from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, Dict
from datetime import datetime

from projecthub.models.project import ProjectStatus


class CamelModel(BaseModel):
    """Emits camelCase for the React client, accepts either case on input"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProjectCreate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, max_length=255)
    # Omitted or null means Active
    status: Optional[ProjectStatus] = None


class ProjectResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    category: str
    status: ProjectStatus
    owner_id: str
    created_at: datetime
    completion_date: Optional[datetime] = None


class ProjectMessageResponse(BaseModel):
    message: str
    project: ProjectResponse


class MessageResponse(BaseModel):
    message: str


class ProjectStats(CamelModel):
    total: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
    by_category: Dict[str, int] = Field(default_factory=dict)
    completed_by_month: Dict[str, int] = Field(default_factory=dict)
