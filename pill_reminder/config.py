"""全局配置与路径。"""
import os
from pathlib import Path

# 项目根目录（pill_reminder 包所在目录的上一级）
ROOT_DIR = Path(__file__).resolve().parent.parent
# 数据目录：文档存储、本地通知、设备身份
DATA_DIR = Path(os.environ.get("PILL_REMINDER_DATA_DIR", "") or ROOT_DIR / "data")
DOCUMENTS_DIR = DATA_DIR / "documents"
NOTIFICATIONS_DIR = DATA_DIR / "notifications"
IDENTITY_DIR = DATA_DIR / "identity"

# 时区：日期键、提醒时间、告警检查都以此为准
TIMEZONE = os.environ.get("PILL_REMINDER_TZ", "America/Sao_Paulo")

# 集合名
DAILY_LOG_COLLECTION = "daily_log"
USERS_CONFIG_COLLECTION = "users_config"

# 服药方本地提醒（每天 20:00），滚动排期 7 天
REMINDER_HOUR = 20
REMINDER_MINUTE = 0
SCHEDULE_WINDOW_DAYS = 7

# 告警检查（每天 22:00 由外部定时器触发）
EVALUATION_HOUR = 22
EVALUATION_CRON = f"0 {EVALUATION_HOUR} * * *"

# 历史记录天数
HISTORY_DAYS = 30

# Expo 推送
EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"
EXPO_ACCESS_TOKEN = os.environ.get("EXPO_ACCESS_TOKEN", "").strip()
PUSH_TIMEOUT = 15  # 秒

# 通知文案
REMINDER_TITLE = "💊 吃药提醒"
REMINDER_BODY = "该吃今天的避孕药啦！"
ALERT_TITLE = "🚨 提醒：今天还没吃药！"
ALERT_BODY_TEMPLATE = "今天（{day_key}）的避孕药还没有确认，记得提醒一下！"
ALERT_KIND = "pill_reminder"

LOG_LEVEL = os.environ.get("PILL_REMINDER_LOG_LEVEL", "INFO").upper()


def ensure_dirs() -> None:
    """确保数据目录存在。"""
    for d in (DATA_DIR, DOCUMENTS_DIR, NOTIFICATIONS_DIR, IDENTITY_DIR):
        d.mkdir(parents=True, exist_ok=True)
