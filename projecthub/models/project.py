from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from projecthub.core.database import Base
from projecthub.core.types import GUID, generate_uuid


class ProjectStatus(str, enum.Enum):
    """Project status"""
    ACTIVE = "Active"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"


class Project(Base):
    """
    Project model.

    ``user_id`` is the owner and never changes after insert.
    ``completion_date`` is set exactly when ``status`` is COMPLETED.
    """
    __tablename__ = "projects"

    __table_args__ = (
        Index('ix_projects_user_created', 'user_id', 'created_at', 'seq'),  # List query: owner + newest first
        Index('ix_projects_user_status', 'user_id', 'status'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    # Insertion order; breaks ties between equal created_at values
    seq = Column(Integer, nullable=False)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(255), nullable=False)
    status = Column(SQLEnum(ProjectStatus), default=ProjectStatus.ACTIVE, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completion_date = Column(DateTime, nullable=True)

    owner = relationship("User", back_populates="projects")

    @property
    def owner_id(self) -> str:
        return self.user_id

    @property
    def is_completed(self) -> bool:
        return self.status == ProjectStatus.COMPLETED

    def __repr__(self):
        return f"<Project {self.title}>"
