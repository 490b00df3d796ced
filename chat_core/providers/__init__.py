"""补全接口集成层。

该包下的模块负责：
- 定义传输协议 (base) 与接口配置 (registry)。
- 构建请求体 (payload)、执行 HTTP 交换 (transport)。
- 解析补全响应并选出回复 (reconciler)。
"""

from typing import Optional

from chat_core.config.settings import settings
from chat_core.providers.base import TransportClient
from chat_core.providers.registry import get_endpoint_config
from chat_core.providers.transport import HttpTransportClient


def create_transport(name: Optional[str] = None) -> TransportClient:
    """根据名称创建传输客户端，默认取配置中的 endpoint。"""

    endpoint_name = name or getattr(settings, "default_endpoint", "openai")
    endpoint = get_endpoint_config(endpoint_name)
    return HttpTransportClient(endpoint, base_url=getattr(settings, "chat_base_url", None))
