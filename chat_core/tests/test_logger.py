import json
import logging

from chat_core.infrastructure.logging.logger import JsonFormatter, log_event


def _record(extra=None):
    record = logging.LogRecord("chat_core", logging.INFO, __file__, 1, "Completion received", None, None)
    if extra is not None:
        record.extra = extra
    return record


def test_formatter_emits_null_request_id_by_default():
    line = JsonFormatter().format(_record())
    payload = json.loads(line)
    assert payload["request_id"] is None
    assert payload["level"] == "INFO"
    assert payload["name"] == "chat_core"
    assert payload["ts"].endswith("Z")


def test_formatter_extra_overrides_request_id():
    line = JsonFormatter().format(_record({"request_id": "abc123", "model": "模型"}))
    payload = json.loads(line)
    assert payload["request_id"] == "abc123"
    # ensure_ascii=False 保留非 ASCII 字符
    assert "模型" in line


def test_log_event_merges_context_and_fields(caplog):
    ctx = {"request_id": "r1", "model": "gpt-3.5-turbo"}
    with caplog.at_level(logging.INFO, logger="chat_core"):
        log_event(logging.INFO, "Completion received", ctx, turns=3, model="override")

    record = caplog.records[-1]
    assert record.getMessage() == "Completion received"
    assert record.extra == {"request_id": "r1", "model": "override", "turns": 3}
    # 不修改调用方传入的上下文
    assert ctx == {"request_id": "r1", "model": "gpt-3.5-turbo"}
