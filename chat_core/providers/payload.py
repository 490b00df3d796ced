"""请求体构建。

每次发送都重发整段会话历史，不做窗口裁剪或摘要，
上下文长度问题由调用方负责。
"""

from typing import Sequence

from chat_core.domain.models import RequestConfig, RequestEnvelope, Turn


def build_envelope(conversation: Sequence[Turn], config: RequestConfig) -> RequestEnvelope:
    """由会话与配置派生 RequestEnvelope（纯函数，无副作用）。"""

    return RequestEnvelope(
        model=config.model,
        temperature=config.temperature,
        messages=tuple(conversation),
    )
