"""推送消息与结果。"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class PushMessage(BaseModel):
    """一条发往单个设备的推送。"""
    to: str = Field(..., description="设备推送 token")
    title: str
    body: str
    data: Dict[str, Any] = Field(default_factory=dict)
    sound: Optional[str] = "default"
    priority: Optional[str] = "high"


class PushResult(BaseModel):
    success: bool
    provider_response: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None
