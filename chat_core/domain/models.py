"""统一的对话与请求数据模型。

本模块定义会话引擎内部共享的标准数据结构：

- Turn: 一条对话消息（本地用户或远端模型）。
- RequestConfig: 每个会话唯一的请求配置（模型、温度、超时）。
- RequestEnvelope: 每次发送时由会话与配置派生的请求体，不持久化。

线上的 JSON 结构由 domain.schemas 中的 pydantic 模型负责校验，
这里只保留纯数据对象。
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


# 温度与超时的合法区间，在配置写入时裁剪
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0
MIN_TIMEOUT_SECONDS = 30
MAX_TIMEOUT_SECONDS = 120


def clamp_temperature(value: float) -> float:
    return min(max(float(value), MIN_TEMPERATURE), MAX_TEMPERATURE)


def clamp_timeout(value: int) -> int:
    return min(max(int(value), MIN_TIMEOUT_SECONDS), MAX_TIMEOUT_SECONDS)


@dataclass(frozen=True)
class Turn:
    """一条对话消息。

    - role: 说话方，本地用户使用配置的 user_role，模型回复使用其返回的 role。
    - content: 纯文本内容，模型回复在入库前已去除首尾空白。
    """

    role: str
    content: str

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class RequestConfig:
    """一次会话的请求配置。

    只应由会话控制器修改；temperature / timeout_seconds 的裁剪
    发生在控制器的 setter 中，而不是在构建请求体时。
    """

    model: str
    temperature: float = 0.0
    timeout_seconds: int = 60


@dataclass(frozen=True)
class RequestEnvelope:
    """发往补全接口的完整请求体。

    messages 始终包含整段会话历史（不做裁剪或摘要）。
    """

    model: str
    temperature: float
    messages: Tuple[Turn, ...] = field(default_factory=tuple)

    def to_payload(self) -> Dict[str, Any]:
        msgs: List[Dict[str, str]] = [m.to_payload() for m in self.messages]
        return {
            "model": self.model,
            "temperature": self.temperature,
            "messages": msgs,
        }

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_payload(), ensure_ascii=False).encode("utf-8")
