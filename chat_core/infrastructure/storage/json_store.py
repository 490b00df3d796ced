import json
import os
from pathlib import Path
from typing import Dict
from uuid import uuid4

from chat_core.config.settings import settings
from chat_core.domain.conversation import SettingsStore
from chat_core.domain.exceptions import BusinessError
from chat_core.infrastructure.logging.logger import logger


class JsonSettingsStore(SettingsStore):
    """以单个 JSON 文件保存字符串槽位的持久化存储。

    文件不存在或无法解析时视为空存储；写入时先写临时文件再 os.replace，
    保证不会留下写了一半的文件。
    """

    def __init__(self, root: str | Path | None = None, filename: str | None = None):
        self._root = Path(root or settings.storage_root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        self._path = self._root / (filename or settings.settings_file)

    @property
    def path(self) -> Path:
        return self._path

    def get_string(self, key: str, default: str = "") -> str:
        value = self._read().get(key)
        return value if isinstance(value, str) else default

    def set_string(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def _read(self) -> Dict[str, object]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(
                "Settings file unreadable, treating as empty",
                extra={"extra": {"path": str(self._path), "error": str(e)}},
            )
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, object]) -> None:
        tmp_path = self._root / f"{self._path.stem}.{uuid4().hex}.json.tmp"
        try:
            tmp_path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise BusinessError(code="STORE_WRITE_ERROR", message=str(e))


class MemorySettingsStore(SettingsStore):
    """进程内存储，用于测试或不需要跨进程保存的临时会话。"""

    def __init__(self, initial: Dict[str, str] | None = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_string(self, key: str, default: str = "") -> str:
        return self._data.get(key, default)

    def set_string(self, key: str, value: str) -> None:
        self._data[key] = value
