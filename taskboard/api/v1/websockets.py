import json
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.database import get_async_session
from taskboard.services.board_service import BoardService
from taskboard.services.websocket_service import manager
from taskboard.logs.server_log import api_logger
from taskboard.schemas.websocket import WebSocketEventType, WebSocketMessage

router = APIRouter(tags=["websockets"])


def error_message(message: str, code: int) -> str:
    return WebSocketMessage(event=WebSocketEventType.ERROR, data={"message": message, "code": code}).model_dump_json()


@router.websocket("/ws/updates")
async def websocket_endpoint(
    websocket: WebSocket,
    user_id: Optional[str] = None,
    db: AsyncSession = Depends(get_async_session)
):
    """
    WebSocket endpoint for board change notifications.

    ws://example.com/api/v1/ws/updates?user_id=<id>

    Commands from client:
    - {"command": "subscribe", "data": {"board_id": "..."}}
    - {"command": "unsubscribe", "data": {"board_id": "..."}}
    - {"command": "ping", "data": {}}

    Subscribers receive {"event": "board_changed", "data": {"board_id": "..."}}
    and are expected to refetch the board.
    """
    client_host = websocket.client.host if websocket.client else "unknown"

    if not user_id:
        api_logger.warning(f"WebSocket: Connection without user_id from {client_host}")
        await websocket.accept()
        await websocket.send_text(error_message("Missing user_id", 401))
        await websocket.close(code=1008)  # Policy violation
        return

    await manager.connect(websocket, user_id)
    welcome_message = WebSocketMessage(
        event=WebSocketEventType.PING,
        data={"message": "Connected to the updates stream"}
    )
    await websocket.send_text(welcome_message.model_dump_json())

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message_data = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_text(error_message("Invalid message format", 400))
                continue

            if not isinstance(message_data, dict) or "command" not in message_data:
                await websocket.send_text(error_message("Invalid message format", 400))
                continue

            command = message_data.get("command")
            board_id = (message_data.get("data") or {}).get("board_id")
            api_logger.info(f"WebSocket: Received command '{command}' from user {user_id}")

            if command == "ping":
                pong_message = WebSocketMessage(event=WebSocketEventType.PONG, data={})
                await websocket.send_text(pong_message.model_dump_json())

            elif command in ("subscribe", "unsubscribe"):
                if not board_id:
                    await websocket.send_text(error_message("Missing board_id", 400))
                    api_logger.warning(f"WebSocket: User {user_id} sent {command} without board_id")
                    continue

                if command == "subscribe":
                    if not await BoardService.get_by_id(db, str(board_id)):
                        await websocket.send_text(error_message("Board not found", 404))
                        continue
                    manager.subscribe_to_board(user_id, str(board_id))
                    reply = f"Subscribed to board {board_id}"
                else:
                    manager.unsubscribe_from_board(user_id, str(board_id))
                    reply = f"Unsubscribed from board {board_id}"

                await websocket.send_text(
                    WebSocketMessage(event=WebSocketEventType.PING, data={"message": reply}).model_dump_json()
                )

            else:
                await websocket.send_text(error_message(f"Unknown command: {command}", 400))
                api_logger.warning(f"WebSocket: User {user_id} sent unknown command: {command}")

    except WebSocketDisconnect:
        manager.disconnect(websocket, user_id)
        api_logger.info(f"WebSocket: User {user_id} disconnected (normal)")

    except Exception as e:
        api_logger.error(f"WebSocket: Error in connection for user {user_id}: {str(e)}")
        manager.disconnect(websocket, user_id)
        try:
            await websocket.send_text(error_message(f"Error: {str(e)}", 500))
            await websocket.close(code=1011)  # Internal error
        except Exception as close_error:
            api_logger.error(f"WebSocket: Error sending error message: {str(close_error)}")
