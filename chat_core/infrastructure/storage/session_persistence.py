"""会话状态持久化。

两个字符串槽位：
- HISTORY_KEY: 会话历史 [{role, content}, ...]
- REQUEST_CONFIG_KEY: 请求配置 {model, temperature, timeout_seconds}

凭证从不写入任何槽位。槽位内容损坏时只记录日志并视为缺失，
不会把异常抛出到这一层之外。
"""

import logging
from typing import List, Optional, Sequence, Tuple

from pydantic import ValidationError as SchemaValidationError

from chat_core.domain.conversation import SettingsStore
from chat_core.domain.exceptions import PersistenceDecodeError
from chat_core.domain.models import RequestConfig, Turn
from chat_core.domain.schemas import HistoryAdapter, MessagePayload, RequestConfigRecord
from chat_core.infrastructure.logging.logger import log_event


HISTORY_KEY = "chat_core.session.history"
REQUEST_CONFIG_KEY = "chat_core.session.request_config"


class SessionPersistence:
    def __init__(self, store: SettingsStore):
        self._store = store

    def save(self, conversation: Sequence[Turn], config: RequestConfig) -> None:
        history = [MessagePayload(role=t.role, content=t.content) for t in conversation]
        self._store.set_string(HISTORY_KEY, HistoryAdapter.dump_json(history).decode("utf-8"))
        self._store.set_string(
            REQUEST_CONFIG_KEY,
            RequestConfigRecord.from_config(config).model_dump_json(),
        )

    def restore(self) -> Tuple[Optional[List[Turn]], Optional[RequestConfig]]:
        """读取两个槽位；缺失、为空或损坏的槽位返回 None。"""

        conversation = self._restore_slot(HISTORY_KEY, self._decode_history)
        config = self._restore_slot(REQUEST_CONFIG_KEY, self._decode_config)
        return conversation, config

    def _restore_slot(self, key, decoder):
        raw = self._store.get_string(key, "")
        if not raw or not raw.strip():
            return None
        try:
            return decoder(raw)
        except PersistenceDecodeError as e:
            log_event(
                logging.WARNING,
                "Discarding undecodable session slot",
                slot=key,
                code=e.code,
                error=e.message,
            )
            return None

    @staticmethod
    def _decode_history(raw: str) -> List[Turn]:
        try:
            items = HistoryAdapter.validate_json(raw)
        except SchemaValidationError as e:
            raise PersistenceDecodeError(code="PERSISTENCE_DECODE_ERROR", message=str(e), slot=HISTORY_KEY)
        return [item.to_turn() for item in items]

    @staticmethod
    def _decode_config(raw: str) -> RequestConfig:
        try:
            record = RequestConfigRecord.model_validate_json(raw)
        except SchemaValidationError as e:
            raise PersistenceDecodeError(code="PERSISTENCE_DECODE_ERROR", message=str(e), slot=REQUEST_CONFIG_KEY)
        return record.to_config()
