from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError

from taskboard.core import utcnow
from taskboard.core.exceptions import DuplicateIdError
from taskboard.models.workflow import WorkflowRule, WorkflowStatus
from taskboard.schemas.workflow import WorkflowRuleWrite, WorkflowStatusCreate
from taskboard.logs import debug_logger, log_function

RULE_DEFAULTS = {
    "name": "",
    "from_status": "",
    "to_status": "",
    "conditions": [],
    "validators": [],
    "post_actions": [],
}


class WorkflowService:
    """Workflow catalog of a board.

    Only the workflow tables are read or written here; tasks and the board's
    column config are never touched.
    """

    @staticmethod
    async def _insert(db: AsyncSession, row, kind: str, entity_id: Optional[str]) -> None:
        """Add a new row; a client-chosen id that is already taken (on any board) is a conflict"""
        db.add(row)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            if entity_id:
                debug_logger.warning(f"{kind} id {entity_id} already exists")
                raise DuplicateIdError(kind, entity_id)
            raise

    @staticmethod
    async def get_rules(db: AsyncSession, board_id: str) -> List[WorkflowRule]:
        query = select(WorkflowRule).where(WorkflowRule.board_id == board_id).order_by(WorkflowRule.created_at)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_rule(db: AsyncSession, board_id: str, rule_id: str) -> Optional[WorkflowRule]:
        query = select(WorkflowRule).where(WorkflowRule.id == rule_id, WorkflowRule.board_id == board_id)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    @log_function()
    async def create_or_update_rule(db: AsyncSession, board_id: str, data: WorkflowRuleWrite) -> WorkflowRule:
        """Insert a rule, or merge the given fields over the stored rule with the same id"""
        fields = data.model_dump(exclude_unset=True, exclude_none=True, exclude={"id"})

        rule = await WorkflowService.get_rule(db, board_id, data.id) if data.id else None
        if rule is None:
            values = {**RULE_DEFAULTS, **fields}
            if data.id:
                values["id"] = data.id
            rule = WorkflowRule(board_id=board_id, **values)
            debug_logger.info(f"Creating workflow rule {values.get('name')!r} on board {board_id}")
            await WorkflowService._insert(db, rule, "Workflow rule", data.id)
        else:
            for key, value in fields.items():
                setattr(rule, key, value)
            rule.updated_at = utcnow()
            debug_logger.info(f"Updating workflow rule {rule.id} on board {board_id}: {sorted(fields)}")
            await db.commit()

        await db.refresh(rule)
        return rule

    @staticmethod
    @log_function()
    async def delete_rule(db: AsyncSession, board_id: str, rule_id: str) -> bool:
        rule = await WorkflowService.get_rule(db, board_id, rule_id)
        if not rule:
            return False
        await db.execute(delete(WorkflowRule).where(WorkflowRule.id == rule_id))
        await db.commit()
        return True

    @staticmethod
    async def get_statuses(db: AsyncSession, board_id: str) -> List[WorkflowStatus]:
        query = select(WorkflowStatus).where(WorkflowStatus.board_id == board_id).order_by(WorkflowStatus.created_at)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_status(db: AsyncSession, board_id: str, status_id: str) -> Optional[WorkflowStatus]:
        query = select(WorkflowStatus).where(WorkflowStatus.id == status_id, WorkflowStatus.board_id == board_id)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    @log_function()
    async def create_or_update_status(db: AsyncSession, board_id: str, data: WorkflowStatusCreate) -> WorkflowStatus:
        fields = data.model_dump(exclude={"id"})

        status = await WorkflowService.get_status(db, board_id, data.id) if data.id else None
        if status is None:
            status = WorkflowStatus(board_id=board_id, **fields)
            if data.id:
                status.id = data.id
            await WorkflowService._insert(db, status, "Workflow status", data.id)
        else:
            for key, value in data.model_dump(exclude_unset=True, exclude={"id"}).items():
                setattr(status, key, value)
            status.updated_at = utcnow()
            await db.commit()

        await db.refresh(status)
        return status

    @staticmethod
    @log_function()
    async def delete_status(db: AsyncSession, board_id: str, status_id: str) -> bool:
        status = await WorkflowService.get_status(db, board_id, status_id)
        if not status:
            return False
        await db.execute(delete(WorkflowStatus).where(WorkflowStatus.id == status_id))
        await db.commit()
        return True
