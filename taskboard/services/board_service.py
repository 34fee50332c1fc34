from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete

from taskboard.core import utcnow
from taskboard.models.board import Board, BoardType
from taskboard.schemas.board import BoardConfig
from taskboard.logs import debug_logger, log_function


class BoardService:
    """CRUD operations service for Board model"""

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        project_id: str,
        name: str,
        type: BoardType = BoardType.KANBAN,
        description: Optional[str] = None,
        config: Optional[BoardConfig] = None,
        created_by: Optional[str] = None
    ) -> Board:
        """Create a new board; without a config it gets the To Do / In Progress / Done columns"""
        config = config or BoardConfig()
        board = Board(
            project_id=project_id,
            name=name,
            type=type,
            description=description,
            config=config.model_dump(by_alias=True, exclude_none=True),
            created_by=created_by
        )
        db.add(board)
        await db.commit()
        await db.refresh(board)

        debug_logger.info(f"Created board {board.id} in project {project_id} with {len(config.columns)} columns")
        return board

    @staticmethod
    async def get_by_id(db: AsyncSession, board_id: str) -> Optional[Board]:
        """Get board by id"""
        result = await db.execute(select(Board).where(Board.id == board_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_project(db: AsyncSession, project_id: str) -> List[Board]:
        """Get all boards of a project, oldest first"""
        query = select(Board).where(Board.project_id == project_id).order_by(Board.created_at)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    @log_function()
    async def update_config(db: AsyncSession, board_id: str, config: BoardConfig) -> Optional[Board]:
        """Replace the column layout.

        Tasks are left alone: a task whose column disappeared keeps its
        status and shows up as unmapped until the column comes back.
        """
        board = await BoardService.get_by_id(db, board_id)
        if not board:
            debug_logger.warning(f"Board {board_id} not found when updating config")
            return None

        board.config = config.model_dump(by_alias=True, exclude_none=True)
        board.updated_at = utcnow()
        await db.commit()
        await db.refresh(board)
        return board

    @staticmethod
    @log_function()
    async def delete(db: AsyncSession, board_id: str) -> bool:
        """Delete a board together with its tasks and workflow"""
        board = await BoardService.get_by_id(db, board_id)
        if not board:
            return False

        await db.execute(delete(Board).where(Board.id == board_id))
        await db.commit()
        return True
