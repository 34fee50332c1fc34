from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class ProjectCreate(BaseModel):
    """Schema for project creation"""
    name: str
    key: str
    description: Optional[str] = None


class ProjectRead(ProjectCreate):
    """Schema for project representation"""
    id: str
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
