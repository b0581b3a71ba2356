"""
Spoke 배송 웹훅 Pydantic 스키마
"""
from pydantic import BaseModel
from typing import Optional

class SpokeWebhookResponse(BaseModel):
    success: Optional[bool] = None
    message: Optional[str] = None
