import json

from chat_core.domain.conversation import MessageStore
from chat_core.domain.models import RequestConfig, Turn, clamp_temperature, clamp_timeout
from chat_core.providers.payload import build_envelope


def test_message_store_preserves_order():
    store = MessageStore()
    store.append(Turn(role="user", content="a"))
    store.append(Turn(role="user", content="b"))
    store.append(Turn(role="assistant", content="c"))
    assert [t.content for t in store.all()] == ["a", "b", "c"]
    assert len(store) == 3
    assert store[2].role == "assistant"


def test_message_store_all_is_a_snapshot():
    store = MessageStore([Turn(role="user", content="x")])
    snapshot = store.all()
    store.clear()
    assert len(store) == 0
    assert snapshot == (Turn(role="user", content="x"),)


def test_build_envelope_resends_full_history():
    turns = [Turn(role="user", content=str(i)) for i in range(50)]
    config = RequestConfig(model="gpt-3.5-turbo", temperature=0.7, timeout_seconds=60)
    env = build_envelope(turns, config)
    assert env.model == "gpt-3.5-turbo"
    assert env.temperature == 0.7
    assert len(env.messages) == 50
    payload = json.loads(env.to_bytes().decode("utf-8"))
    assert payload["messages"][0] == {"role": "user", "content": "0"}
    assert payload["messages"][-1] == {"role": "user", "content": "49"}
    assert set(payload) == {"model", "temperature", "messages"}


def test_build_envelope_is_deterministic():
    turns = [Turn(role="user", content="hi")]
    config = RequestConfig(model="m", temperature=1.0, timeout_seconds=30)
    assert build_envelope(turns, config) == build_envelope(turns, config)
    assert build_envelope(turns, config).to_bytes() == build_envelope(turns, config).to_bytes()


def test_build_envelope_does_not_clamp():
    config = RequestConfig(model="m", temperature=3.5, timeout_seconds=60)
    assert build_envelope([], config).temperature == 3.5


def test_clamp_helpers():
    assert clamp_temperature(-1) == 0.0
    assert clamp_temperature(5) == 2.0
    assert clamp_temperature(0.4) == 0.4
    assert clamp_timeout(5) == 30
    assert clamp_timeout(500) == 120
    assert clamp_timeout(45) == 45
