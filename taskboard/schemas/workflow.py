from typing import List, Literal, Optional
from pydantic import BaseModel, Field

StatusCategory = Literal["todo", "in_progress", "done", "blocked"]


class WorkflowStatusBase(BaseModel):
    name: str
    category: StatusCategory = "todo"
    color: str = "#64748b"
    description: Optional[str] = None


class WorkflowStatusCreate(WorkflowStatusBase):
    id: Optional[str] = None


class WorkflowStatusRead(WorkflowStatusBase):
    id: str
    board_id: Optional[str] = None

    class Config:
        from_attributes = True


class WorkflowRuleWrite(BaseModel):
    """Create-or-update payload; fields left out keep their stored value on update"""
    id: Optional[str] = None
    name: Optional[str] = None
    from_status: Optional[str] = Field(default=None, alias="fromStatus")
    to_status: Optional[str] = Field(default=None, alias="toStatus")
    conditions: Optional[List[str]] = None
    validators: Optional[List[str]] = None
    post_actions: Optional[List[str]] = Field(default=None, alias="postActions")
    required_role: Optional[str] = Field(default=None, alias="requiredRole")
    description: Optional[str] = None

    class Config:
        populate_by_name = True


class WorkflowRuleRead(BaseModel):
    id: str
    board_id: Optional[str] = None
    name: str = ""
    from_status: str = Field(default="", alias="fromStatus")
    to_status: str = Field(default="", alias="toStatus")
    conditions: List[str] = []
    validators: List[str] = []
    post_actions: List[str] = Field(default=[], alias="postActions")
    required_role: Optional[str] = Field(default=None, alias="requiredRole")
    description: Optional[str] = None

    class Config:
        from_attributes = True
        populate_by_name = True


class WorkflowRuleList(BaseModel):
    rules: List[WorkflowRuleRead]


class WorkflowStatusList(BaseModel):
    statuses: List[WorkflowStatusRead]


class TransitionCheck(BaseModel):
    """Ask whether a status change would be allowed"""
    from_status: str = Field(alias="fromStatus")
    to_status: str = Field(alias="toStatus")
    task_id: Optional[str] = None
    role: Optional[str] = None
    satisfied_conditions: List[str] = []

    class Config:
        populate_by_name = True
