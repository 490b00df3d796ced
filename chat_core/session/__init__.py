"""会话层：ChatSession 控制器与代码块提取。"""

from chat_core.session.controller import ChatSession

__all__ = ["ChatSession"]
