import inspect
from typing import Callable, Dict, List, Set

from fastapi import WebSocket

from taskboard.schemas.websocket import WebSocketEventType, WebSocketMessage
from taskboard.logs.server_log import api_logger

ChangeListener = Callable[[], object]


class ConnectionManager:
    """Board change hub.

    Fans a payload-free ``board_changed`` event out to websocket clients and
    to in-process listeners. Receivers are expected to refetch the board.
    """

    def __init__(self):
        # {user_id: set(connections)}
        self.active_connections: Dict[str, Set[WebSocket]] = {}
        # {board_id: set(user_ids)}
        self.board_subscribers: Dict[str, Set[str]] = {}
        # {board_id: [callbacks]}
        self.listeners: Dict[str, List[ChangeListener]] = {}

    async def connect(self, websocket: WebSocket, user_id: str):
        """Connect a new WebSocket client"""
        await websocket.accept()
        if user_id not in self.active_connections:
            self.active_connections[user_id] = set()
        self.active_connections[user_id].add(websocket)

        client_host = websocket.client.host if websocket.client else "unknown"
        api_logger.info(f"WebSocket: User {user_id} connected from {client_host}")

    def disconnect(self, websocket: WebSocket, user_id: str):
        """Disconnect a WebSocket client; its last connection also drops its subscriptions"""
        if user_id in self.active_connections:
            self.active_connections[user_id].discard(websocket)
            if not self.active_connections[user_id]:
                del self.active_connections[user_id]
                for board_id in list(self.board_subscribers):
                    self.unsubscribe_from_board(user_id, board_id)

            client_host = websocket.client.host if websocket.client else "unknown"
            api_logger.info(f"WebSocket: User {user_id} disconnected from {client_host}")

    def subscribe_to_board(self, user_id: str, board_id: str):
        """Subscribe a user to change events of a board"""
        if board_id not in self.board_subscribers:
            self.board_subscribers[board_id] = set()
        self.board_subscribers[board_id].add(user_id)
        api_logger.info(f"WebSocket: User {user_id} subscribed to board {board_id}")

    def unsubscribe_from_board(self, user_id: str, board_id: str):
        if board_id in self.board_subscribers and user_id in self.board_subscribers[board_id]:
            self.board_subscribers[board_id].discard(user_id)
            if not self.board_subscribers[board_id]:
                del self.board_subscribers[board_id]
            api_logger.info(f"WebSocket: User {user_id} unsubscribed from board {board_id}")

    def add_listener(self, board_id: str, on_change: ChangeListener) -> Callable[[], None]:
        """Register an in-process callback; returns the function that removes it"""
        self.listeners.setdefault(board_id, []).append(on_change)

        def unsubscribe():
            callbacks = self.listeners.get(board_id)
            if callbacks and on_change in callbacks:
                callbacks.remove(on_change)
                if not callbacks:
                    del self.listeners[board_id]

        return unsubscribe

    async def broadcast_to_board(self, board_id: str, message: WebSocketMessage):
        """Broadcast a message to all users subscribed to a board"""
        if board_id not in self.board_subscribers:
            return

        json_message = message.model_dump_json()
        subscribers = list(self.board_subscribers[board_id])
        api_logger.info(f"WebSocket: Broadcasting event '{message.event.value}' to {len(subscribers)} subscribers of board {board_id}")

        for user_id in subscribers:
            await self.send_to_user(user_id, json_message)

    async def send_to_user(self, user_id: str, message: str):
        """Send a message to a specific user on all their connections"""
        if user_id not in self.active_connections:
            return

        disconnected_websockets = set()
        for websocket in list(self.active_connections[user_id]):
            try:
                await websocket.send_text(message)
            except Exception as e:
                api_logger.error(f"WebSocket: Failed to send message to user {user_id}: {str(e)}")
                disconnected_websockets.add(websocket)

        for websocket in disconnected_websockets:
            self.active_connections[user_id].discard(websocket)

        if not self.active_connections[user_id]:
            del self.active_connections[user_id]

    async def board_changed(self, board_id: str):
        """Tell everyone watching a board that it changed; no payload beyond the board id"""
        message = WebSocketMessage(event=WebSocketEventType.BOARD_CHANGED, data={"board_id": board_id})
        await self.notify_listeners(board_id)
        await self.broadcast_to_board(board_id, message)
        api_logger.info(f"WebSocket: Notified board_changed for board {board_id}")

    async def notify_listeners(self, board_id: str):
        for on_change in list(self.listeners.get(board_id, [])):
            try:
                result = on_change()
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                # One broken listener must not starve the others
                api_logger.error(f"Board {board_id}: change listener failed: {str(e)}")


# Create global connection manager
manager = ConnectionManager()


def subscribe_to_board_changes(board_id: str, on_change: ChangeListener) -> Callable[[], None]:
    return manager.add_listener(board_id, on_change)


async def notify_board_changed(board_id: str):
    await manager.board_changed(board_id)
