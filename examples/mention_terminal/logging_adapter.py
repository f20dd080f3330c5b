"""日志适配 - 文件记录完整日志，WARNING/ERROR 显示在状态栏而不破坏输入界面"""
from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Callable

StatusSink = Callable[[str, bool], None]


class StatusLineLoggingHandler(logging.Handler):
    """把 WARNING/ERROR 以友好格式推送到状态栏

    特性：
    - 只处理 WARNING 及以上
    - 首次显示机制：相同消息只显示一次
    """

    _MAX_LEN = 100

    def __init__(self, sink: StatusSink) -> None:
        super().__init__(level=logging.WARNING)
        self._sink = sink
        self._shown_messages: set[str] = set()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            if record.levelno < logging.WARNING:
                return

            msg = self._format_message(record)
            key = f"{record.name}:{record.getMessage()[:50]}"
            if key in self._shown_messages:
                return
            self._shown_messages.add(key)

            self._sink(msg, record.levelno >= logging.ERROR)
        except Exception:
            self.handleError(record)

    def _format_message(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if len(msg) > self._MAX_LEN:
            msg = msg[: self._MAX_LEN] + "..."
        if record.levelno >= logging.ERROR:
            return f"❌ {msg}"
        return f"⚠️ {msg}"


def setup_logging(sink: StatusSink, *, log_dir: str | None = None) -> str:
    """统一日志初始化：文件 + 状态栏双通道。

    - 所有日志写入 ~/.mention_input/logs/mention.log（RotatingFileHandler）
    - WARNING/ERROR 显示在状态栏
    - 清除 root logger 默认的 stderr handler，避免输出打乱终端

    Returns:
        日志文件路径
    """
    log_dir = log_dir or os.path.join(os.path.expanduser("~"), ".mention_input", "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, "mention.log")
    file_handler = RotatingFileHandler(
        log_path, maxBytes=10 * 1024 * 1024, backupCount=3, encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(file_handler)
    root.setLevel(logging.DEBUG)

    root.addHandler(StatusLineLoggingHandler(sink))
    return log_path
