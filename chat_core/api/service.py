"""对外 API 服务模块。

为没有自己事件循环的宿主提供简化的函数接口。
"""

import asyncio
from typing import Any, Dict, Optional

from chat_core.config.settings import settings
from chat_core.infrastructure.logging.logger import logger
from chat_core.infrastructure.storage.json_store import JsonSettingsStore
from chat_core.infrastructure.storage.session_persistence import SessionPersistence
from chat_core.providers import create_transport
from chat_core.session.controller import ChatSession


_session: Optional[ChatSession] = None


def get_default_session() -> ChatSession:
    """获取默认的 ChatSession 实例（单例），首次创建时恢复上次的会话。"""
    global _session
    if _session is None:
        store = JsonSettingsStore(root=settings.storage_root, filename=settings.settings_file)
        _session = ChatSession(
            transport=create_transport(),
            persistence=SessionPersistence(store),
            credential=settings.chat_api_key,
            user_role=settings.user_role,
        )
        _session.restore_history()
    return _session


def run_chat(user_input: str) -> Dict[str, Any]:
    """发送一条消息并同步等待结果。

    Args:
        user_input: 用户输入内容

    Returns:
        包含 success、reply 与当前会话长度的字典

    Raises:
        ValidationError: 凭证缺失或输入为空
        RequestInFlightError: 已有请求在途
    """
    session = get_default_session()
    outcome: Dict[str, Any] = {"success": False, "reply": ""}

    def on_complete(success: bool, reply: str) -> None:
        outcome["success"] = success
        outcome["reply"] = reply

    async def _run() -> None:
        await session.send(user_input, on_complete=on_complete)

    try:
        asyncio.run(_run())
    except Exception as e:
        logger.error(f"Chat failed: {e}", extra={"extra": {"error": str(e)}})
        raise
    outcome["history_length"] = len(session.history)
    return outcome


def reset_chat() -> None:
    get_default_session().new_chat()


def save_session() -> None:
    get_default_session().save_history()
