"""命令行入口：每日告警检查（供定时器调用）与服药方的本地操作。

定时器按 EVALUATION_CRON（默认每天 22 点）调用 `pill-reminder escalate`。
"""
import argparse
import json
import logging
import sys
from datetime import datetime
from typing import Callable, List, Optional

from pydantic import ValidationError

from pill_reminder import __version__
from pill_reminder.config import EVALUATION_CRON, HISTORY_DAYS, LOG_LEVEL, TIMEZONE, ensure_dirs
from pill_reminder.dates import local_now, to_local
from pill_reminder.escalation import EscalationEngine, EscalationError, EscalationResult
from pill_reminder.notifications import FileNotificationFacility, NotificationError, ReminderScheduler
from pill_reminder.push import ExpoPushClient
from pill_reminder.records import DailyRecordStore, IntakeService, Observation, PillVariant
from pill_reminder.storage import DocumentStore, JsonDocumentStore, StoreError
from pill_reminder.users import (
    DeviceIdentity,
    Platform,
    RolePermissions,
    UserConfigStore,
    UserRole,
    resolve_role,
    select_role,
)

logger = logging.getLogger("pill_reminder")


def configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else getattr(logging, LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        stream=sys.stderr,
    )


def daily_pill_reminder(
    now: Optional[datetime] = None,
    documents: Optional[DocumentStore] = None,
    transport: Optional[ExpoPushClient] = None,
) -> EscalationResult:
    """定时器入口：检查今天是否已服药，没吃就告警。失败记录后向上抛出。"""
    documents = documents or JsonDocumentStore()
    users = UserConfigStore(documents)
    engine = EscalationEngine(DailyRecordStore(documents), transport)
    now = now or local_now()
    logger.info("开始每日服药检查（%s，%s）", TIMEZONE, EVALUATION_CRON)
    try:
        result = engine.evaluate_and_escalate(now, lambda: users.registrations_for(UserRole.REMINDER_RECIPIENT))
    except Exception:
        logger.exception("每日服药检查失败")
        raise
    logger.info("每日服药检查完成: %s", result.outcome)
    return result


def check_now(
    now: Optional[datetime] = None,
    documents: Optional[DocumentStore] = None,
    transport: Optional[ExpoPushClient] = None,
) -> dict:
    """手动测试：执行与定时器相同的逻辑，返回汇总，告警、存储与数据格式错误都折算进汇总。"""
    try:
        result = daily_pill_reminder(now, documents, transport)
    except (EscalationError, StoreError, ValidationError) as e:
        return {"success": False, "message": "检查失败", "error": str(e), "day_key": getattr(e, "day_key", None)}
    return {"success": True, "message": "检查完成", "data": result.model_dump(mode="json")}


def _parse_now(value: Optional[str]) -> datetime:
    if not value:
        return local_now()
    return to_local(datetime.fromisoformat(value))


def _build_intake(documents: DocumentStore) -> IntakeService:
    scheduler = ReminderScheduler(FileNotificationFacility())
    return IntakeService(DailyRecordStore(documents), scheduler)


def _require_role(documents: DocumentStore, allowed: Callable[[Optional[UserRole]], bool]) -> str:
    user_id = DeviceIdentity().current()
    role = resolve_role(user_id, UserConfigStore(documents))
    if not allowed(role):
        raise SystemExit(f"当前身份无权执行该操作（角色: {role}）")
    return user_id


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pill-reminder", description="避孕药每日提醒")
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")
    parser.add_argument("--now", help="指定当前时间（ISO 格式，测试用）")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("escalate", help=f"每日告警检查（定时器按 {EVALUATION_CRON} 调用）")
    sub.add_parser("check", help="手动执行一次告警检查并输出汇总")

    register = sub.add_parser("register", help="选择角色并登记推送 token")
    register.add_argument("--role", required=True, choices=[r.value for r in UserRole])
    register.add_argument("--token", help="Expo 推送 token（提醒方）")
    register.add_argument("--platform", choices=["android", "ios"])

    confirm = sub.add_parser("confirm", help="确认今天已吃药")
    confirm.add_argument("--placebo", action="store_true", help="今天吃的是安慰剂片")
    confirm.add_argument("--note", action="append", default=[], choices=[o.value for o in Observation])

    undo = sub.add_parser("undo", help="删除某天的记录")
    undo.add_argument("day_key")

    sub.add_parser("sync", help="重排本地提醒")
    sub.add_parser("status", help="查看今天的状态")
    sub.add_parser("deliver", help="送达已到点的本地提醒")

    history = sub.add_parser("history", help="查看最近的记录")
    history.add_argument("--days", type=int, default=HISTORY_DAYS)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    ensure_dirs()
    now = _parse_now(args.now)
    documents = JsonDocumentStore()

    if args.command == "escalate":
        try:
            result = daily_pill_reminder(now, documents)
        except EscalationError as e:
            print(f"告警失败: {e}", file=sys.stderr)
            return 1
        _print_json(result.model_dump(mode="json"))
        return 0

    if args.command == "check":
        summary = check_now(now, documents)
        _print_json(summary)
        return 0 if summary["success"] else 1

    if args.command == "register":
        user_id = DeviceIdentity().sign_in()
        users = UserConfigStore(documents)
        platform = Platform(args.platform) if args.platform else None
        config = select_role(user_id, UserRole(args.role), users, args.token, platform)
        intake = _build_intake(documents)
        if RolePermissions.can_confirm_dose(UserRole(config.role)):
            intake.sync_reminders(now)
        else:
            try:
                intake.scheduler.cancel_all()
            except NotificationError as e:
                logger.warning("清空本地提醒失败: %s", e)
        _print_json(config.model_dump(mode="json"))
        return 0

    intake = _build_intake(documents)

    if args.command == "confirm":
        _require_role(documents, RolePermissions.can_confirm_dose)
        variant = PillVariant.PLACEBO if args.placebo else PillVariant.ACTIVE
        record = intake.confirm_dose(now, variant, [Observation(n) for n in args.note])
        print(f"已记录：{record.day_key} {record.taken_at} 吃药 ✅")
        return 0

    if args.command == "undo":
        _require_role(documents, RolePermissions.can_confirm_dose)
        intake.undo(args.day_key, now)
        return 0

    if args.command == "sync":
        _require_role(documents, RolePermissions.can_confirm_dose)
        report = intake.sync_reminders(now)
        _print_json(report.model_dump(mode="json"))
        return 0 if report.ok else 1

    if args.command == "deliver":
        for reminder in intake.scheduler.facility.pop_due(now):
            print(f"[{reminder.day_key}] {reminder.content.title} {reminder.content.body}")
        return 0

    if args.command == "status":
        _print_json(intake.today(now).model_dump(mode="json"))
        return 0

    if args.command == "history":
        _require_role(documents, RolePermissions.can_view_history)
        _print_json([r.model_dump(mode="json") for r in intake.history(now, args.days)])
        return 0
    return 2


if __name__ == "__main__":
    sys.exit(main())
