import json
import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from chat_core.config.settings import settings


class JsonFormatter(logging.Formatter):
    """每条日志一行 JSON；request_id 始终存在，便于按请求聚合。"""

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if settings.log_redact_content:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "request_id": None,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger() -> logging.Logger:
    logger = logging.getLogger("chat_core")
    logger.setLevel(logging.INFO)
    if logger.handlers:
        return logger
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_dir / "chat.log", encoding="utf-8")
    fh.setLevel(logging.INFO)
    fh.setFormatter(JsonFormatter())
    logger.addHandler(fh)
    return logger


logger = setup_logger()


def log_event(level: int, message: str, log_ctx: Optional[Dict[str, Any]] = None, **fields: Any) -> None:
    """合并请求上下文（request_id、model 等）与本次字段后写日志。"""
    payload = dict(log_ctx or {})
    payload.update(fields)
    logger.log(level, message, extra={"extra": payload})
