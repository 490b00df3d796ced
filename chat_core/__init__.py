"""Chat Core 顶层包。

该包提供对话会话引擎的核心实现，
包括配置加载、领域模型、请求体构建、HTTP 传输、
响应解析、会话持久化与会话控制器等能力。
"""

from chat_core.session import ChatSession

__all__ = ["ChatSession"]
