"""避孕药每日提醒：服药方本地提醒 + 提醒方远程告警。"""
__version__ = "0.1.0"
