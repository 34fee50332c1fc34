from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.database import get_async_session
from taskboard.api.dependencies.auth import get_current_user_id
from taskboard.api.v1.boards import get_board_or_404
from taskboard.core.exceptions import DuplicateIdError
from taskboard.engine.workflow import TransitionContext, TransitionDecision, is_transition_allowed
from taskboard.services.task_service import TaskService
from taskboard.services.workflow_service import WorkflowService
from taskboard.schemas.task import TaskRead
from taskboard.schemas.workflow import (
    TransitionCheck,
    WorkflowRuleList,
    WorkflowRuleRead,
    WorkflowRuleWrite,
    WorkflowStatusCreate,
    WorkflowStatusList,
    WorkflowStatusRead,
)
from taskboard.logs import api_logger

router = APIRouter(
    prefix="/boards/{board_id}/workflow",
    tags=["workflow"],
)


@router.get("/rules", response_model=WorkflowRuleList)
async def read_rules(
    board_id: str,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    await get_board_or_404(board_id, db)
    rules = await WorkflowService.get_rules(db, board_id)
    return {"rules": [WorkflowRuleRead.model_validate(rule) for rule in rules]}


@router.post("/rules", response_model=WorkflowRuleRead, status_code=status.HTTP_201_CREATED)
async def create_rule(
    board_id: str,
    rule_data: WorkflowRuleWrite,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    """Create a rule, or merge into the rule whose id is given"""
    await get_board_or_404(board_id, db)
    try:
        rule = await WorkflowService.create_or_update_rule(db, board_id, rule_data)
    except DuplicateIdError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    api_logger.info(f"Workflow rule {rule.id} saved on board {board_id} by user {user_id}")
    return WorkflowRuleRead.model_validate(rule)


@router.put("/rules/{rule_id}", response_model=WorkflowRuleRead)
async def update_rule(
    board_id: str,
    rule_id: str,
    rule_data: WorkflowRuleWrite,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    """Merge the given fields over an existing rule"""
    await get_board_or_404(board_id, db)
    if not await WorkflowService.get_rule(db, board_id, rule_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Workflow rule not found"
        )
    rule_data.id = rule_id
    rule = await WorkflowService.create_or_update_rule(db, board_id, rule_data)
    return WorkflowRuleRead.model_validate(rule)


@router.delete("/rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rule(
    board_id: str,
    rule_id: str,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    await get_board_or_404(board_id, db)
    if not await WorkflowService.delete_rule(db, board_id, rule_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Workflow rule not found"
        )
    api_logger.info(f"Workflow rule {rule_id} deleted from board {board_id} by user {user_id}")


@router.get("/statuses", response_model=WorkflowStatusList)
async def read_statuses(
    board_id: str,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    await get_board_or_404(board_id, db)
    statuses = await WorkflowService.get_statuses(db, board_id)
    return {"statuses": statuses}


@router.post("/statuses", response_model=WorkflowStatusRead, status_code=status.HTTP_201_CREATED)
async def create_status(
    board_id: str,
    status_data: WorkflowStatusCreate,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    await get_board_or_404(board_id, db)
    try:
        return await WorkflowService.create_or_update_status(db, board_id, status_data)
    except DuplicateIdError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.put("/statuses/{status_id}", response_model=WorkflowStatusRead)
async def update_status(
    board_id: str,
    status_id: str,
    status_data: WorkflowStatusCreate,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    await get_board_or_404(board_id, db)
    if not await WorkflowService.get_status(db, board_id, status_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Workflow status not found"
        )
    status_data.id = status_id
    return await WorkflowService.create_or_update_status(db, board_id, status_data)


@router.delete("/statuses/{status_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_status(
    board_id: str,
    status_id: str,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    await get_board_or_404(board_id, db)
    if not await WorkflowService.delete_status(db, board_id, status_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Workflow status not found"
        )


@router.post("/check", response_model=TransitionDecision)
async def check_transition(
    board_id: str,
    check: TransitionCheck,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    """Would the board's rules let a task change from ``fromStatus`` to ``toStatus``?"""
    await get_board_or_404(board_id, db)
    rules = [WorkflowRuleRead.model_validate(rule) for rule in await WorkflowService.get_rules(db, board_id)]

    task = None
    if check.task_id:
        row = await TaskService.get_by_id(db, check.task_id, board_id=board_id)
        if not row:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Task not found"
            )
        task = TaskRead.model_validate(row)

    context = TransitionContext(role=check.role, task=task, satisfied_conditions=set(check.satisfied_conditions))
    return is_transition_allowed(rules, check.from_status, check.to_status, context)
