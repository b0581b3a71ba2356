"""
외부 워크플로 웹훅 전송 스키마
"""
from pydantic import BaseModel
from typing import Any, Dict, Optional

class DispatchEventRequest(BaseModel):
    event_type: Optional[str] = None
    payload: Dict[str, Any] = {}

class DispatchEventResponse(BaseModel):
    success: bool = True
    dispatched: int
    delivered: int
