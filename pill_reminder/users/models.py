"""用户配置与角色数据模型。"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    """用户角色：服药方每天确认吃药，提醒方在未确认时收到告警。"""
    PILL_TAKER = "pill_taker"                   # 服药方
    REMINDER_RECIPIENT = "reminder_recipient"   # 提醒方


class Platform(str, Enum):
    ANDROID = "android"
    IOS = "ios"


class UserConfig(BaseModel):
    """用户配置（users_config 集合，一人一条）。"""
    user_id: str = Field(..., description="身份提供方给出的稳定用户 ID")
    role: UserRole = Field(..., description="角色")
    push_token: Optional[str] = Field(None, description="推送 token（提醒方需要）")
    platform: Optional[Platform] = Field(None, description="设备平台")
    updated_at: Optional[str] = Field(None, description="更新时间 ISO")

    model_config = ConfigDict(use_enum_values=True)


class DeviceRegistration(BaseModel):
    """告警检查只读的设备登记：谁、用什么 token 推送。"""
    user_id: str
    push_token: Optional[str] = None
    platform: Optional[Platform] = None

    model_config = ConfigDict(use_enum_values=True)
