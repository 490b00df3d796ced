"""线上 JSON 与持久化 JSON 的显式 schema。

补全响应和持久化槽位都经过这里的 pydantic 模型校验，
缺少必填字段时直接校验失败，由调用方转换为 ParseError /
PersistenceDecodeError，而不是在后续访问时才出错。
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from chat_core.domain.models import (
    MAX_TEMPERATURE,
    MAX_TIMEOUT_SECONDS,
    MIN_TEMPERATURE,
    MIN_TIMEOUT_SECONDS,
    RequestConfig,
    Turn,
)


class MessagePayload(BaseModel):
    """{role, content} 结构，请求与响应共用。"""

    model_config = ConfigDict(extra="ignore")

    role: str
    content: str

    def to_turn(self, *, strip: bool = False) -> Turn:
        return Turn(role=self.role, content=self.content.strip() if strip else self.content)


class CompletionUsage(BaseModel):
    """Provider 返回的 token 统计信息。"""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class CompletionChoice(BaseModel):
    """单个候选回答。"""

    model_config = ConfigDict(extra="ignore")

    message: MessagePayload
    finish_reason: Optional[str] = None
    index: int = 0


class ChatCompletion(BaseModel):
    """chat/completions 的非流式响应。

    只有 choices 是必填的；其余字段用于日志。
    """

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    object: Optional[str] = None
    created: Optional[int] = None
    model: Optional[str] = None
    usage: Optional[CompletionUsage] = None
    choices: List[CompletionChoice]


class RequestConfigRecord(BaseModel):
    """RequestConfig 的持久化形式。"""

    model: str
    temperature: float = Field(ge=MIN_TEMPERATURE, le=MAX_TEMPERATURE)
    timeout_seconds: int = Field(ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS)

    @classmethod
    def from_config(cls, config: RequestConfig) -> "RequestConfigRecord":
        return cls(
            model=config.model,
            temperature=config.temperature,
            timeout_seconds=config.timeout_seconds,
        )

    def to_config(self) -> RequestConfig:
        return RequestConfig(
            model=self.model,
            temperature=self.temperature,
            timeout_seconds=self.timeout_seconds,
        )


# 会话历史槽位：[{role, content}, ...]
HistoryAdapter = TypeAdapter(List[MessagePayload])
