import json

from chat_core.api import service
from chat_core.domain.models import RequestConfig
from chat_core.infrastructure.storage.json_store import MemorySettingsStore
from chat_core.infrastructure.storage.session_persistence import HISTORY_KEY, SessionPersistence
from chat_core.providers.transport import TransportResult
from chat_core.session.controller import ChatSession


class FakeTransport:
    name = "fake"

    async def execute(self, envelope, credential, timeout_seconds, on_progress=None):
        body = json.dumps({"choices": [{"message": {"role": "assistant", "content": " 好的 "}}]})
        return TransportResult(status_code=200, body=body)


def test_run_chat_reset_and_save(monkeypatch):
    store = MemorySettingsStore()
    session = ChatSession(
        transport=FakeTransport(),
        persistence=SessionPersistence(store),
        credential="sk-test",
        config=RequestConfig(model="m", temperature=0.0, timeout_seconds=60),
    )
    monkeypatch.setattr(service, "_session", session)

    result = service.run_chat("你好")
    assert result == {"success": True, "reply": "好的", "history_length": 2}

    service.save_session()
    assert "你好" in json.loads(store.get_string(HISTORY_KEY))[0]["content"]

    service.reset_chat()
    assert service.get_default_session().history == ()
