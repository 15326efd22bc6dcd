"""用户、身份与角色。"""
from pill_reminder.users.identity import DeviceIdentity
from pill_reminder.users.models import DeviceRegistration, Platform, UserConfig, UserRole
from pill_reminder.users.permission import RolePermissions, resolve_role, select_role
from pill_reminder.users.store import UserConfigStore

__all__ = [
    "DeviceIdentity",
    "DeviceRegistration",
    "Platform",
    "UserConfig",
    "UserRole",
    "RolePermissions",
    "resolve_role",
    "select_role",
    "UserConfigStore",
]
