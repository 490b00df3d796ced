from typing import Iterable, List, Optional, Protocol, Tuple

from .models import Turn


class MessageStore:
    """按时间顺序追加的会话日志。

    插入顺序即时间顺序即展示顺序；不强制 user/assistant 交替。
    """

    def __init__(self, turns: Optional[Iterable[Turn]] = None):
        self._turns: List[Turn] = list(turns or [])

    def append(self, turn: Turn) -> None:
        self._turns.append(turn)

    def all(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    def clear(self) -> None:
        self._turns.clear()

    def replace(self, turns: Iterable[Turn]) -> None:
        self._turns = list(turns)

    def __len__(self) -> int:
        return len(self._turns)

    def __getitem__(self, index: int) -> Turn:
        return self._turns[index]


class SettingsStore(Protocol):
    """持久化键值存储端口，两个字符串槽位即可满足会话持久化。"""

    def get_string(self, key: str, default: str = "") -> str:
        ...

    def set_string(self, key: str, value: str) -> None:
        ...
