import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.v1.workflow import (
    check_transition,
    create_rule,
    create_status,
    delete_rule,
    delete_status,
    read_statuses,
    update_rule,
    update_status,
)
from taskboard.core.exceptions import DuplicateIdError
from taskboard.engine.workflow import RejectionReason
from taskboard.models.board import Board
from taskboard.models.workflow import WorkflowRule, WorkflowStatus
from taskboard.schemas.workflow import TransitionCheck, WorkflowRuleWrite, WorkflowStatusCreate
from taskboard.services.workflow_service import WorkflowService


@pytest.fixture
def mock_db():
    return AsyncMock(spec=AsyncSession)


@pytest.fixture
def mock_board():
    board = MagicMock(spec=Board)
    board.id = "b1"
    return board


def make_rule_row(rule_id="r1", **fields):
    values = {
        "id": rule_id, "board_id": "b1", "name": "Start", "from_status": "todo", "to_status": "in_progress",
        "conditions": [], "validators": [], "post_actions": [], "required_role": None, "description": None,
    }
    values.update(fields)
    return WorkflowRule(**values)


class TestRuleEndpoints:
    """Tests for workflow rule endpoints"""

    @pytest.mark.asyncio
    async def test_create_rule(self, mock_db, mock_board):
        row = make_rule_row()
        rule_data = WorkflowRuleWrite(name="Start", fromStatus="todo", toStatus="in_progress")
        with patch('taskboard.api.v1.workflow.get_board_or_404', return_value=mock_board), \
             patch('taskboard.api.v1.workflow.WorkflowService.create_or_update_rule', return_value=row) as mock_save:
            result = await create_rule("b1", rule_data, mock_db, "u1")

        mock_save.assert_called_once_with(mock_db, "b1", rule_data)
        assert result.id == "r1"
        assert result.from_status == "todo"
        assert result.model_dump(by_alias=True)["toStatus"] == "in_progress"

    @pytest.mark.asyncio
    async def test_update_missing_rule(self, mock_db, mock_board):
        with patch('taskboard.api.v1.workflow.get_board_or_404', return_value=mock_board), \
             patch('taskboard.api.v1.workflow.WorkflowService.get_rule', return_value=None):
            with pytest.raises(HTTPException) as exc_info:
                await update_rule("b1", "r9", WorkflowRuleWrite(name="x"), mock_db, "u1")

        assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_update_uses_path_id(self, mock_db, mock_board):
        row = make_rule_row(required_role="admin")
        with patch('taskboard.api.v1.workflow.get_board_or_404', return_value=mock_board), \
             patch('taskboard.api.v1.workflow.WorkflowService.get_rule', return_value=row), \
             patch('taskboard.api.v1.workflow.WorkflowService.create_or_update_rule', return_value=row) as mock_save:
            await update_rule("b1", "r1", WorkflowRuleWrite(requiredRole="admin"), mock_db, "u1")

        saved = mock_save.call_args.args[2]
        assert saved.id == "r1"
        assert saved.required_role == "admin"

    @pytest.mark.asyncio
    async def test_delete_missing_rule(self, mock_db, mock_board):
        with patch('taskboard.api.v1.workflow.get_board_or_404', return_value=mock_board), \
             patch('taskboard.api.v1.workflow.WorkflowService.delete_rule', return_value=False):
            with pytest.raises(HTTPException) as exc_info:
                await delete_rule("b1", "r9", mock_db, "u1")

        assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND


class TestCheckTransition:
    """Tests for the transition check endpoint"""

    @pytest.mark.asyncio
    async def test_no_rules_allows_everything(self, mock_db, mock_board):
        with patch('taskboard.api.v1.workflow.get_board_or_404', return_value=mock_board), \
             patch('taskboard.api.v1.workflow.WorkflowService.get_rules', return_value=[]):
            decision = await check_transition("b1", TransitionCheck(fromStatus="todo", toStatus="done"), mock_db, "u1")

        assert decision.allowed

    @pytest.mark.asyncio
    async def test_missing_pair_rejected(self, mock_db, mock_board):
        with patch('taskboard.api.v1.workflow.get_board_or_404', return_value=mock_board), \
             patch('taskboard.api.v1.workflow.WorkflowService.get_rules', return_value=[make_rule_row()]):
            decision = await check_transition("b1", TransitionCheck(fromStatus="todo", toStatus="done"), mock_db, "u1")

        assert not decision.allowed
        assert decision.reason == RejectionReason.NO_MATCHING_RULE

    @pytest.mark.asyncio
    async def test_unknown_task(self, mock_db, mock_board):
        check = TransitionCheck(fromStatus="todo", toStatus="in_progress", task_id="nope")
        with patch('taskboard.api.v1.workflow.get_board_or_404', return_value=mock_board), \
             patch('taskboard.api.v1.workflow.WorkflowService.get_rules', return_value=[]), \
             patch('taskboard.api.v1.workflow.TaskService.get_by_id', return_value=None):
            with pytest.raises(HTTPException) as exc_info:
                await check_transition("b1", check, mock_db, "u1")

        assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND


class TestStatusEndpoints:
    """Tests for workflow status endpoints"""

    @pytest.mark.asyncio
    async def test_read_statuses(self, mock_db, mock_board):
        row = WorkflowStatus(id="s1", board_id="b1", name="Review", category="in_progress", color="#f59e0b")
        with patch('taskboard.api.v1.workflow.get_board_or_404', return_value=mock_board), \
             patch('taskboard.api.v1.workflow.WorkflowService.get_statuses', return_value=[row]):
            result = await read_statuses("b1", mock_db, "u1")

        assert result == {"statuses": [row]}

    @pytest.mark.asyncio
    async def test_update_missing_status(self, mock_db, mock_board):
        with patch('taskboard.api.v1.workflow.get_board_or_404', return_value=mock_board), \
             patch('taskboard.api.v1.workflow.WorkflowService.get_status', return_value=None):
            with pytest.raises(HTTPException) as exc_info:
                await update_status("b1", "s9", WorkflowStatusCreate(name="Review"), mock_db, "u1")

        assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_update_uses_path_id(self, mock_db, mock_board):
        row = WorkflowStatus(id="s1", board_id="b1", name="Review", category="todo", color="#64748b")
        with patch('taskboard.api.v1.workflow.get_board_or_404', return_value=mock_board), \
             patch('taskboard.api.v1.workflow.WorkflowService.get_status', return_value=row), \
             patch('taskboard.api.v1.workflow.WorkflowService.create_or_update_status', return_value=row) as mock_save:
            await update_status("b1", "s1", WorkflowStatusCreate(name="Review"), mock_db, "u1")

        assert mock_save.call_args.args[2].id == "s1"

    @pytest.mark.asyncio
    async def test_delete_missing_status(self, mock_db, mock_board):
        with patch('taskboard.api.v1.workflow.get_board_or_404', return_value=mock_board), \
             patch('taskboard.api.v1.workflow.WorkflowService.delete_status', return_value=False):
            with pytest.raises(HTTPException) as exc_info:
                await delete_status("b1", "s9", mock_db, "u1")

        assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND


class TestWorkflowService:
    """Tests for WorkflowService.create_or_update_rule"""

    @pytest.mark.asyncio
    async def test_new_rule_gets_defaults(self, mock_db):
        rule = await WorkflowService.create_or_update_rule(
            mock_db, "b1", WorkflowRuleWrite(name="Start", fromStatus="todo", toStatus="in_progress")
        )

        assert rule.board_id == "b1"
        assert rule.from_status == "todo"
        assert rule.conditions == []
        mock_db.add.assert_called_once_with(rule)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_existing_rule_is_merged(self, mock_db):
        row = make_rule_row(conditions=["Task must be assigned"])
        with patch.object(WorkflowService, 'get_rule', return_value=row):
            rule = await WorkflowService.create_or_update_rule(
                mock_db, "b1", WorkflowRuleWrite(id="r1", toStatus="done")
            )

        assert rule is row
        assert rule.to_status == "done"
        assert rule.from_status == "todo"
        assert rule.conditions == ["Task must be assigned"]
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_status_update_only_writes_given_fields(self, mock_db):
        row = WorkflowStatus(id="s1", board_id="b1", name="Review", category="in_progress", color="#f59e0b")
        data = WorkflowStatusCreate(name="Code review")
        data.id = "s1"
        with patch.object(WorkflowService, 'get_status', return_value=row):
            saved = await WorkflowService.create_or_update_status(mock_db, "b1", data)

        assert saved is row
        assert saved.name == "Code review"
        assert saved.category == "in_progress"
        assert saved.color == "#f59e0b"
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_taken_rule_id_is_a_conflict(self, mock_db):
        mock_db.commit.side_effect = IntegrityError("INSERT INTO workflow_rules", {}, Exception("duplicate key"))
        with patch.object(WorkflowService, 'get_rule', return_value=None):
            with pytest.raises(DuplicateIdError):
                await WorkflowService.create_or_update_rule(
                    mock_db, "b2", WorkflowRuleWrite(id="r1", name="Start", fromStatus="todo", toStatus="done")
                )

        mock_db.rollback.assert_awaited_once()
        mock_db.refresh.assert_not_called()

    @pytest.mark.asyncio
    async def test_integrity_error_without_client_id_propagates(self, mock_db):
        mock_db.commit.side_effect = IntegrityError("INSERT INTO workflow_statuses", {}, Exception("fk"))

        with pytest.raises(IntegrityError):
            await WorkflowService.create_or_update_status(mock_db, "b1", WorkflowStatusCreate(name="Review"))

        mock_db.rollback.assert_awaited_once()


class TestDuplicateIdEndpoints:
    """Tests for client-chosen ids already used elsewhere"""

    @pytest.mark.asyncio
    async def test_create_rule_with_taken_id(self, mock_db, mock_board):
        rule_data = WorkflowRuleWrite(id="r1", name="Start", fromStatus="todo", toStatus="done")
        with patch('taskboard.api.v1.workflow.get_board_or_404', return_value=mock_board), \
             patch('taskboard.api.v1.workflow.WorkflowService.create_or_update_rule',
                   side_effect=DuplicateIdError("Workflow rule", "r1")):
            with pytest.raises(HTTPException) as exc_info:
                await create_rule("b2", rule_data, mock_db, "u1")

        assert exc_info.value.status_code == status.HTTP_409_CONFLICT
        assert "r1" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_create_status_with_taken_id(self, mock_db, mock_board):
        with patch('taskboard.api.v1.workflow.get_board_or_404', return_value=mock_board), \
             patch('taskboard.api.v1.workflow.WorkflowService.create_or_update_status',
                   side_effect=DuplicateIdError("Workflow status", "s1")):
            with pytest.raises(HTTPException) as exc_info:
                await create_status("b2", WorkflowStatusCreate(id="s1", name="Review"), mock_db, "u1")

        assert exc_info.value.status_code == status.HTTP_409_CONFLICT
