"""设备匿名身份：首次登录生成稳定的用户 ID 并保存在本地。"""
import json
import logging
import secrets
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pill_reminder.config import IDENTITY_DIR, ensure_dirs

logger = logging.getLogger(__name__)


class DeviceIdentity:
    """本设备的匿名身份，同一设备多次 sign_in 得到同一个 ID。"""
    _identity_file = "identity.json"

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = base_dir or IDENTITY_DIR
        ensure_dirs()

    def _path(self) -> Path:
        return self.base_dir / self._identity_file

    def current(self) -> Optional[str]:
        """当前用户 ID；未登录返回 None。"""
        if not self._path().exists():
            return None
        with open(self._path(), "r", encoding="utf-8") as f:
            return json.load(f).get("user_id")

    def sign_in(self) -> str:
        """匿名登录：已有 ID 直接返回，否则生成并保存。"""
        user_id = self.current()
        if user_id:
            return user_id
        user_id = secrets.token_hex(14)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        data = {
            "user_id": user_id,
            "created_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }
        with open(self._path(), "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        logger.info("匿名登录: %s", user_id)
        return user_id

    def sign_out(self) -> None:
        if self._path().exists():
            self._path().unlink()
            logger.info("已退出登录")
