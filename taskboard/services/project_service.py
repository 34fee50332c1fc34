from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from taskboard.models.project import Project
from taskboard.logs import debug_logger, log_function


class ProjectService:
    """CRUD operations service for Project model"""

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        name: str,
        key: str,
        description: Optional[str] = None,
        created_by: Optional[str] = None
    ) -> Project:
        """Create a new project"""
        project = Project(
            name=name,
            key=key.upper(),
            description=description,
            created_by=created_by
        )
        db.add(project)
        await db.commit()
        await db.refresh(project)

        debug_logger.info(f"Created project {project.id} ({project.key})")
        return project

    @staticmethod
    async def get_by_id(db: AsyncSession, project_id: str) -> Optional[Project]:
        """Get a project by ID"""
        result = await db.execute(select(Project).where(Project.id == project_id))
        return result.scalars().first()
