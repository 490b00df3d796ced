"""补全接口配置。

把“接口名”与具体的 base_url / 默认模型解耦：上层只关心名称，
具体指向哪个兼容 chat/completions 的服务由这里集中配置。"""

from dataclasses import dataclass
from typing import Mapping


@dataclass
class EndpointConfig:
    """某个补全接口的整体配置。"""

    name: str
    base_url: str
    default_model: str
    completions_path: str = "/chat/completions"

    def completions_url(self, base_url: str = "") -> str:
        return f"{(base_url or self.base_url).rstrip('/')}{self.completions_path}"


OPENAI_CONFIG = EndpointConfig(
    name="openai",
    base_url="https://api.openai.com/v1",
    default_model="gpt-3.5-turbo",
)

# 本地 OpenAI 兼容服务（如 vLLM / Ollama 的 /v1 端点）
LOCAL_CONFIG = EndpointConfig(
    name="local",
    base_url="http://127.0.0.1:8000/v1",
    default_model="local-chat",
)


ENDPOINT_REGISTRY: Mapping[str, EndpointConfig] = {
    "openai": OPENAI_CONFIG,
    "local": LOCAL_CONFIG,
}


def get_endpoint_config(name: str) -> EndpointConfig:
    """根据名称获取 EndpointConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in ENDPOINT_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown endpoint: {name!r}")
