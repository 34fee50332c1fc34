from pydantic import BaseModel
from typing import Dict, Any, Optional
from enum import Enum


class WebSocketEventType(str, Enum):
    """Types of WebSocket events"""
    BOARD_CHANGED = "board_changed"
    ERROR = "error"
    PING = "ping"
    PONG = "pong"


class WebSocketMessage(BaseModel):
    """Base message for WebSocket communication"""
    event: WebSocketEventType
    data: Dict[str, Any]


class WebSocketCommand(BaseModel):
    """Commands from client to server"""
    command: str
    data: Dict[str, Any] = {}


class WebSocketErrorMessage(BaseModel):
    """Error message for WebSocket communication"""
    message: str
    code: Optional[int] = None
