import tempfile
from pathlib import Path

from chat_core.domain.models import RequestConfig, Turn
from chat_core.infrastructure.storage.json_store import JsonSettingsStore, MemorySettingsStore
from chat_core.infrastructure.storage.session_persistence import (
    HISTORY_KEY,
    REQUEST_CONFIG_KEY,
    SessionPersistence,
)


HISTORY = [
    Turn(role="user", content="你好"),
    Turn(role="assistant", content="Hello!\n```python\nprint(1)\n```"),
    Turn(role="user", content="  spaces kept for user turns  "),
]
CONFIG = RequestConfig(model="gpt-4o-mini", temperature=0.7, timeout_seconds=90)


def test_round_trip_memory_store():
    persistence = SessionPersistence(MemorySettingsStore())
    persistence.save(HISTORY, CONFIG)
    conversation, config = persistence.restore()
    assert conversation == HISTORY
    assert config == CONFIG


def test_round_trip_json_store_across_instances():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d) / ".storage"
        SessionPersistence(JsonSettingsStore(root=root, filename="s.json")).save(HISTORY, CONFIG)
        conversation, config = SessionPersistence(JsonSettingsStore(root=root, filename="s.json")).restore()
        assert conversation == HISTORY
        assert config == CONFIG


def test_restore_empty_store_returns_none():
    conversation, config = SessionPersistence(MemorySettingsStore()).restore()
    assert conversation is None
    assert config is None


def test_restore_blank_slots_are_absent():
    store = MemorySettingsStore({HISTORY_KEY: "", REQUEST_CONFIG_KEY: "   "})
    assert SessionPersistence(store).restore() == (None, None)


def test_corrupt_history_does_not_affect_config():
    store = MemorySettingsStore()
    persistence = SessionPersistence(store)
    persistence.save(HISTORY, CONFIG)
    store.set_string(HISTORY_KEY, "{not json")
    conversation, config = persistence.restore()
    assert conversation is None
    assert config == CONFIG


def test_corrupt_config_does_not_affect_history():
    store = MemorySettingsStore()
    persistence = SessionPersistence(store)
    persistence.save(HISTORY, CONFIG)
    store.set_string(REQUEST_CONFIG_KEY, '{"model": "m"}')
    conversation, config = persistence.restore()
    assert conversation == HISTORY
    assert config is None


def test_both_slots_corrupt():
    store = MemorySettingsStore({
        HISTORY_KEY: '[{"role": "user"}]',
        REQUEST_CONFIG_KEY: '{"model": "m", "temperature": 9, "timeout_seconds": 60}',
    })
    assert SessionPersistence(store).restore() == (None, None)


def test_credential_is_never_persisted():
    store = MemorySettingsStore()
    SessionPersistence(store).save(HISTORY, CONFIG)
    dumped = store.get_string(HISTORY_KEY) + store.get_string(REQUEST_CONFIG_KEY)
    assert "sk-" not in dumped
    assert "credential" not in dumped
