"""用户配置存储：角色、推送 token、平台。"""
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from pill_reminder.config import USERS_CONFIG_COLLECTION
from pill_reminder.storage import DocumentStore
from pill_reminder.users.models import DeviceRegistration, UserConfig, UserRole

logger = logging.getLogger(__name__)


class UserConfigStore:
    """按 user_id 保存 UserConfig，按角色查询。"""

    def __init__(self, documents: DocumentStore, collection: str = USERS_CONFIG_COLLECTION):
        self.documents = documents
        self.collection = collection

    def save(self, config: UserConfig) -> UserConfig:
        config.updated_at = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        self.documents.set(self.collection, config.user_id, config.model_dump(mode="json"))
        logger.info("用户配置已保存: %s role=%s", config.user_id, config.role)
        return config

    def get(self, user_id: str) -> Optional[UserConfig]:
        data = self.documents.get(self.collection, user_id)
        if data is None:
            return None
        return UserConfig.model_validate({**data, "user_id": user_id})

    def watch(
        self,
        user_id: str,
        callback: Callable[[Optional[UserConfig]], None],
    ) -> Callable[[], None]:
        def on_change(data: Optional[dict]) -> None:
            callback(UserConfig.model_validate({**data, "user_id": user_id}) if data else None)

        return self.documents.subscribe(self.collection, user_id, on_change)

    def list_by_role(self, role: UserRole) -> List[UserConfig]:
        """列出某角色的全部用户。"""
        rows = self.documents.query(self.collection, "role", UserRole(role).value)
        return [UserConfig.model_validate({**data, "user_id": key}) for key, data in rows]

    def update_push_token(self, user_id: str, push_token: str) -> UserConfig:
        """只更新推送 token；用户未选角色时抛 LookupError。"""
        config = self.get(user_id)
        if config is None:
            raise LookupError(f"用户未配置角色: {user_id}")
        config.push_token = push_token
        return self.save(config)

    def registrations_for(self, role: UserRole) -> List[DeviceRegistration]:
        """某角色的设备登记（供告警检查解析推送目标）。"""
        return [
            DeviceRegistration(user_id=c.user_id, push_token=c.push_token, platform=c.platform)
            for c in self.list_by_role(role)
        ]
