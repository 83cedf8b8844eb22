import logging
import os
import sys
from typing import Optional, TextIO

# 日志统一写 stderr：CLI 的 stdout 只输出 JSON 结果
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class _ColoredFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[36m",   # Cyan
        "INFO": "\033[32m",    # Green
        "WARNING": "\033[33m", # Yellow
        "ERROR": "\033[31m",   # Red
        "CRITICAL": "\033[35m"  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, fmt: str, datefmt: Optional[str], use_color: bool):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = bool(use_color)

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_color or record.levelname not in self.COLORS:
            return super().format(record)
        orig_levelname = record.levelname
        record.levelname = f"{self.COLORS[orig_levelname]}{orig_levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = orig_levelname


def _wants_color(stream: TextIO, enable_color: bool) -> bool:
    if not enable_color or os.environ.get("NO_COLOR") is not None:
        return False
    if os.environ.get("FORCE_COLOR") is not None:
        return True
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    return getattr(logging, name, logging.INFO)


def setup_logging(
    level: Optional[str] = None,
    name: str = "taskboard",
    stream: Optional[TextIO] = None,
    enable_color: bool = True,
    fmt: Optional[str] = None,
    datefmt: Optional[str] = None,
) -> logging.Logger:
    """为 `taskboard` 日志树安装一次处理器并返回该 logger

    参数：
    - `level`: 日志级别，缺省读取环境变量 LOG_LEVEL，再缺省为 INFO
    - `stream`: 输出流，缺省为 sys.stderr
    - `enable_color`: 终端支持时按级别着色（遵循 NO_COLOR / FORCE_COLOR）

    包内模块也可直接 `logging.getLogger(__name__)`，记录会向上传递到这里。
    """
    lvl = _resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(lvl)
    if any(getattr(h, "_taskboard_handler", False) for h in logger.handlers):
        return logger
    target = stream if stream is not None else sys.stderr
    handler = logging.StreamHandler(stream=target)
    handler.setLevel(lvl)
    handler.setFormatter(_ColoredFormatter(
        fmt=fmt or DEFAULT_FORMAT,
        datefmt=datefmt,
        use_color=_wants_color(target, enable_color),
    ))
    handler._taskboard_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
