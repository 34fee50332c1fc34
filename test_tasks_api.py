import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core import Settings
from taskboard.core.exceptions import UnknownColumnError
from taskboard.api.v1.boards import get_board_or_404, read_board
from taskboard.api.v1.tasks import create_task, move_task
from taskboard.models.board import Board, BoardType
from taskboard.models.task import Task
from taskboard.schemas.task import TaskCreate, TaskMove
from taskboard.schemas.workflow import WorkflowRuleRead
from taskboard.services.task_service import TaskService
from test_board_session import FakeStore, make_task

COLUMNS = {"columns": [
    {"id": "todo", "name": "To Do"},
    {"id": "in_progress", "name": "In Progress", "wipLimit": 1},
    {"id": "done", "name": "Done"},
]}


@pytest.fixture
def mock_db():
    return AsyncMock(spec=AsyncSession)


@pytest.fixture
def board():
    return Board(id="b1", project_id="p1", name="Board", type=BoardType.KANBAN, config=COLUMNS)


@pytest.fixture
def store():
    return FakeStore([make_task("T1", "todo", 0), make_task("T2", "todo", 1), make_task("T3", "in_progress", 0)])


def make_row(task_id, status, rank):
    return Task(
        id=task_id, board_id="b1", project_id="p1", status=status, position=0, rank=rank,
        title=task_id, type="task", priority="medium", assigned_to=[], labels=[], actual_hours=0,
    )


class TestGetBoard:
    """Tests for get_board_or_404 and read_board"""

    @pytest.mark.asyncio
    async def test_missing_board(self, mock_db):
        with patch('taskboard.api.v1.boards.BoardService.get_by_id', return_value=None):
            with pytest.raises(HTTPException) as exc_info:
                await get_board_or_404("nope", mock_db)

            assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND
            assert "Board not found" in str(exc_info.value.detail)

    @pytest.mark.asyncio
    async def test_board_view_orders_columns_and_keeps_unmapped(self, mock_db, board):
        rows = [
            make_row("late", "todo", "k"),
            make_row("early", "todo", "F"),
            make_row("gone", "archived", "V"),
        ]
        with patch('taskboard.api.v1.boards.get_board_or_404', return_value=board), \
             patch('taskboard.api.v1.boards.TaskService.get_by_board', return_value=rows):
            view = await read_board("b1", mock_db, "u1")

        assert [c.id for c in view.column_views] == ["todo", "in_progress", "done"]
        assert [t.id for t in view.column_views[0].tasks] == ["early", "late"]
        assert view.column_views[1].wip_limit == 1
        assert [t.id for t in view.unmapped_tasks] == ["gone"]


class TestMoveTask:
    """Tests for the move endpoint"""

    async def _move(self, mock_db, board, store, move, settings=None):
        with patch('taskboard.api.v1.tasks.get_board_or_404', return_value=board), \
             patch('taskboard.api.v1.tasks.SqlTaskStore', return_value=store), \
             patch('taskboard.api.v1.tasks.get_settings', return_value=settings or Settings()):
            return await move_task("b1", "T1", move, mock_db, "u1")

    @pytest.mark.asyncio
    async def test_move_to_other_column(self, mock_db, board, store):
        result = await self._move(mock_db, board, store, TaskMove(column_id="done", index=0))

        assert result.task.status == "done"
        assert result.task.position == 0
        assert result.task.updated_by == "u1"
        assert result.from_column_id == "todo"
        assert result.to_column_id == "done"
        assert not result.noop
        assert [u[0] for u in store.updates] == ["T1"]

    @pytest.mark.asyncio
    async def test_unreadable_board_is_a_store_error(self, mock_db, board, store):
        store.fail_reads = True

        with pytest.raises(HTTPException) as exc_info:
            await self._move(mock_db, board, store, TaskMove(column_id="done", index=0))

        assert exc_info.value.status_code == status.HTTP_502_BAD_GATEWAY
        assert exc_info.value.detail == "Failed to load tasks"
        assert store.updates == []

    @pytest.mark.asyncio
    async def test_noop_move(self, mock_db, board, store):
        result = await self._move(mock_db, board, store, TaskMove(column_id="todo", index=0))

        assert result.noop
        assert store.updates == []

    @pytest.mark.asyncio
    async def test_task_from_other_board(self, mock_db, board, store):
        with patch('taskboard.api.v1.tasks.get_board_or_404', return_value=board), \
             patch('taskboard.api.v1.tasks.SqlTaskStore', return_value=store), \
             patch('taskboard.api.v1.tasks.get_settings', return_value=Settings()):
            with pytest.raises(HTTPException) as exc_info:
                await move_task("b1", "elsewhere", TaskMove(column_id="done", index=0), mock_db, "u1")

        assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    @pytest.mark.parametrize("move", [
        TaskMove(column_id="nope", index=0),
        TaskMove(column_id="done", index=-1),
    ])
    async def test_bad_destination(self, mock_db, board, store, move):
        with pytest.raises(HTTPException) as exc_info:
            await self._move(mock_db, board, store, move)

        assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST
        assert store.updates == []

    @pytest.mark.asyncio
    async def test_wip_limit(self, mock_db, board, store):
        with pytest.raises(HTTPException) as exc_info:
            await self._move(mock_db, board, store, TaskMove(column_id="in_progress", index=0))

        assert exc_info.value.status_code == status.HTTP_409_CONFLICT
        assert exc_info.value.detail["reason"] == "wip_limit_reached"

    @pytest.mark.asyncio
    async def test_workflow_rejection(self, mock_db, board, store):
        store.rules = [WorkflowRuleRead(id="r1", name="Ship", fromStatus="todo", toStatus="done", requiredRole="admin")]

        with pytest.raises(HTTPException) as exc_info:
            await self._move(mock_db, board, store, TaskMove(column_id="done", index=0, role="member"))

        assert exc_info.value.status_code == status.HTTP_409_CONFLICT
        assert exc_info.value.detail["reason"] == "role_required"

        result = await self._move(mock_db, board, store, TaskMove(column_id="done", index=0, role="admin"))
        assert result.task.status == "done"

    @pytest.mark.asyncio
    async def test_store_failure(self, mock_db, board, store):
        store.fail_updates = True

        with pytest.raises(HTTPException) as exc_info:
            await self._move(mock_db, board, store, TaskMove(column_id="done", index=0))

        assert exc_info.value.status_code == status.HTTP_502_BAD_GATEWAY
        assert len(store.updates) == 1


class TestCreateTask:
    """Tests for task creation"""

    @pytest.mark.asyncio
    async def test_create_notifies_board(self, mock_db, board):
        created = make_row("new", "todo", "V")
        with patch('taskboard.api.v1.tasks.get_board_or_404', return_value=board), \
             patch('taskboard.api.v1.tasks.TaskService.create', return_value=created) as mock_create, \
             patch('taskboard.api.v1.tasks.notify_board_changed') as mock_notify:
            result = await create_task("b1", TaskCreate(title="new"), mock_db, "u1")

        assert result is created
        mock_create.assert_called_once()
        mock_notify.assert_awaited_once_with("b1")

    @pytest.mark.asyncio
    async def test_create_in_unknown_column(self, mock_db, board):
        with patch('taskboard.api.v1.tasks.get_board_or_404', return_value=board), \
             patch('taskboard.api.v1.tasks.TaskService.create', side_effect=UnknownColumnError("nope")):
            with pytest.raises(HTTPException) as exc_info:
                await create_task("b1", TaskCreate(title="new", status="nope"), mock_db, "u1")

        assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST


class TestTaskServiceCreate:
    """Tests for TaskService.create defaults"""

    @staticmethod
    def column_ranks(mock_db, ranks):
        result = MagicMock()
        result.scalars.return_value.all.return_value = ranks
        mock_db.execute.return_value = result

    @pytest.mark.asyncio
    async def test_defaults_to_bottom_of_first_column(self, mock_db, board):
        self.column_ranks(mock_db, ["F", "V"])

        task = await TaskService.create(mock_db, board, TaskCreate(title="Write docs"), created_by="u1")

        assert task.status == "todo"
        assert task.rank > "V"
        assert task.position == 2
        assert task.priority == "medium"
        assert task.type == "task"
        assert task.actual_hours == 0
        assert task.project_id == "p1"
        mock_db.add.assert_called_once_with(task)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_bottom_rank_follows_code_point_order(self, mock_db, board):
        # "k" sorts after "V" bytewise but before it in a case-insensitive collation
        ranks = ["V", "k"]
        for _ in range(3):
            self.column_ranks(mock_db, list(ranks))
            task = await TaskService.create(mock_db, board, TaskCreate(title="x"))
            ranks.append(task.rank)

        assert len(set(ranks)) == len(ranks)
        assert ranks == sorted(ranks)

    @pytest.mark.asyncio
    async def test_requested_position_is_ignored(self, mock_db, board):
        self.column_ranks(mock_db, ["F", "V"])

        task = await TaskService.create(mock_db, board, TaskCreate.model_validate({"title": "x", "position": 0}))

        assert task.position == 2
        assert task.rank > "V"

    @pytest.mark.asyncio
    async def test_unranked_rows_count_but_do_not_bound_the_rank(self, mock_db, board):
        self.column_ranks(mock_db, ["", ""])

        task = await TaskService.create(mock_db, board, TaskCreate(title="x"))

        assert task.position == 2
        assert task.rank == "V"

    @pytest.mark.asyncio
    async def test_unknown_status(self, mock_db, board):
        with pytest.raises(UnknownColumnError):
            await TaskService.create(mock_db, board, TaskCreate(title="x", status="archived"))
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_first_task_of_empty_column(self, mock_db, board):
        self.column_ranks(mock_db, [])

        task = await TaskService.create(mock_db, board, TaskCreate(title="x", status="done"))

        assert task.status == "done"
        assert task.position == 0
        assert task.rank == "V"
