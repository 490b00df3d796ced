"""传输客户端抽象接口。

ChatSession 不直接依赖 httpx，而是依赖此协议：测试可以注入
假的传输层，其他 HTTP 库的实现也只需满足同样的 execute 签名。
"""

from typing import Optional, Protocol

from chat_core.domain.models import RequestEnvelope
from chat_core.providers.transport import ProgressCallback, TransportResult


class TransportClient(Protocol):
    """补全接口传输协议。

    实现者需要提供：
    - name: 名称，用于日志。
    - execute(...): 执行一次 HTTP 交换，失败时抛出 TransportError。
    """

    name: str

    async def execute(
        self,
        envelope: RequestEnvelope,
        credential: str,
        timeout_seconds: int,
        on_progress: Optional[ProgressCallback] = None,
    ) -> TransportResult:
        ...
