from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.database import get_async_session
from taskboard.api.dependencies.auth import get_current_user_id
from taskboard.services.project_service import ProjectService
from taskboard.schemas.project import ProjectCreate, ProjectRead

router = APIRouter(
    prefix="/projects",
    tags=["projects"],
)


async def get_project_or_404(project_id: str, db: AsyncSession):
    project = await ProjectService.get_by_id(db, project_id)
    if not project:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Project not found"
        )
    return project


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    """Create a new project"""
    return await ProjectService.create(
        db=db,
        name=project_data.name,
        key=project_data.key,
        description=project_data.description,
        created_by=user_id
    )


@router.get("/{project_id}", response_model=ProjectRead)
async def read_project(
    project_id: str,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    """Get a project by ID"""
    return await get_project_or_404(project_id, db)
