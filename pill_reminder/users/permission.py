"""角色判定与权限：服药方确认吃药，提醒方接收告警。"""
from typing import Optional

from pill_reminder.users.models import Platform, UserConfig, UserRole
from pill_reminder.users.store import UserConfigStore


def resolve_role(user_id: Optional[str], store: UserConfigStore) -> Optional[UserRole]:
    """当前身份扮演的角色。未登录或还没选角色返回 None（应进入选角色流程）。"""
    if not user_id:
        return None
    config = store.get(user_id)
    if config is None:
        return None
    return UserRole(config.role)


def select_role(
    user_id: str,
    role: UserRole,
    store: UserConfigStore,
    push_token: Optional[str] = None,
    platform: Optional[Platform] = None,
) -> UserConfig:
    """保存角色选择；已有的 token/平台在未传入新值时保留。"""
    existing = store.get(user_id)
    config = UserConfig(
        user_id=user_id,
        role=role,
        push_token=push_token or (existing.push_token if existing else None),
        platform=platform or (existing.platform if existing else None),
    )
    return store.save(config)


class RolePermissions:
    """功能权限检查。"""

    @staticmethod
    def can_confirm_dose(role: Optional[UserRole]) -> bool:
        """是否可以确认服药（并在本机排期提醒）。"""
        return role == UserRole.PILL_TAKER

    @staticmethod
    def receives_escalation(role: Optional[UserRole]) -> bool:
        """是否接收未服药告警推送。"""
        return role == UserRole.REMINDER_RECIPIENT

    @staticmethod
    def can_view_history(role: Optional[UserRole]) -> bool:
        """两个角色都能看历史记录。"""
        return role is not None
