"""每日服药记录数据模型。"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pill_reminder.dates import is_valid_day_key, is_valid_time_string


class PillVariant(str, Enum):
    """药片类型：有效片 / 安慰剂片（只用于周期展示，不影响提醒与告警）。"""
    ACTIVE = "active"
    PLACEBO = "placebo"


class Observation(str, Enum):
    """当天的身体观察标签。"""
    CRAMPS = "cramps"                   # 痛经
    BLEEDING = "bleeding"               # 出血
    DISCHARGE = "discharge"             # 分泌物
    BREAST_PAIN = "breast_pain"         # 乳房痛
    BACK_PAIN = "back_pain"             # 背痛
    LEG_PAIN = "leg_pain"               # 腿痛
    ACNE = "acne"                       # 痘痘
    PROTECTED_SEX = "protected_sex"
    UNPROTECTED_SEX = "unprotected_sex"


class DailyRecord(BaseModel):
    """某个本地日的服药与告警状态。不存在记录等同于 taken=False, alert_sent=False。"""
    day_key: str = Field(..., description="日期键 YYYY-MM-DD，创建后不变")
    taken: bool = Field(False, description="是否已确认服药")
    taken_at: Optional[str] = Field(None, description="服药时间 HH:MM，仅 taken 时存在")
    alert_sent: bool = Field(False, description="当天告警是否已发出；只会 False → True")
    alert_sent_at: Optional[str] = Field(None, description="告警标记时间 ISO")
    variant: Optional[PillVariant] = Field(None, description="药片类型")
    notes: List[Observation] = Field(default_factory=list, description="观察标签（去重）")
    updated_at: Optional[str] = Field(None, description="更新时间 ISO")

    model_config = ConfigDict(use_enum_values=True)

    @field_validator("day_key")
    @classmethod
    def check_day_key(cls, value: str) -> str:
        if not is_valid_day_key(value):
            raise ValueError(f"日期键格式应为 YYYY-MM-DD: {value!r}")
        return value

    @field_validator("taken_at")
    @classmethod
    def check_taken_at(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_valid_time_string(value):
            raise ValueError(f"服药时间格式应为 HH:MM: {value!r}")
        return value

    @field_validator("notes")
    @classmethod
    def dedupe_notes(cls, value: List[Observation]) -> List[Observation]:
        seen = []
        for item in value:
            if item not in seen:
                seen.append(item)
        return seen

    @model_validator(mode="after")
    def taken_at_iff_taken(self) -> "DailyRecord":
        if self.taken and not self.taken_at:
            raise ValueError("已服药的记录必须带 taken_at")
        if not self.taken and self.taken_at:
            raise ValueError("未服药的记录不能带 taken_at")
        return self

    @classmethod
    def empty(cls, day_key: str) -> "DailyRecord":
        """懒创建语义下的「空」记录。"""
        return cls(day_key=day_key)
