"""会话控制器。

ChatSession 编排 MessageStore、请求体构建、传输层与响应解析，
并向展示层暴露 send / new_chat / restore_history / save_history 等操作。

状态机：Idle --send--> Requesting --完成/失败--> Idle。
同一时刻只允许一个请求在途（single-flight），在途期间再次 send
会同步抛出 RequestInFlightError。
"""

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import uuid4

from chat_core.config.settings import settings
from chat_core.domain.conversation import MessageStore
from chat_core.domain.exceptions import (
    ParseError,
    RequestInFlightError,
    TransportError,
    ValidationError,
)
from chat_core.domain.models import (
    RequestConfig,
    RequestEnvelope,
    Turn,
    clamp_temperature,
    clamp_timeout,
)
from chat_core.infrastructure.logging.logger import log_event
from chat_core.infrastructure.storage.session_persistence import SessionPersistence
from chat_core.providers.base import TransportClient
from chat_core.providers.payload import build_envelope
from chat_core.providers.reconciler import ResponseReconciler
from chat_core.providers.transport import ProgressCallback
from chat_core.session.code_blocks import CodeBlock, extract_code_blocks


CompleteCallback = Callable[[bool, str], None]


class ChatSession:
    def __init__(
        self,
        transport: TransportClient,
        persistence: Optional[SessionPersistence] = None,
        credential: Optional[str] = None,
        user_role: Optional[str] = None,
        config: Optional[RequestConfig] = None,
        reconciler: Optional[ResponseReconciler] = None,
    ):
        """初始化会话。

        Args:
            transport: 传输客户端（通常为 HttpTransportClient）
            persistence: 会话持久化（可选，为空时 restore/save 不做任何事）
            credential: Bearer 凭证，只保存在内存中
            user_role: 本地用户消息的 role，默认取配置中的 user_role
            config: 初始请求配置，默认取配置中的模型/温度/超时
        """
        self._transport = transport
        self._persistence = persistence
        self._reconciler = reconciler or ResponseReconciler()
        self._credential = credential or ""
        self._user_role = user_role or getattr(settings, "user_role", "user")
        base = config or RequestConfig(
            model=settings.default_model,
            temperature=settings.default_temperature,
            timeout_seconds=settings.request_timeout,
        )
        self._config = RequestConfig(
            model=base.model,
            temperature=clamp_temperature(base.temperature),
            timeout_seconds=clamp_timeout(base.timeout_seconds),
        )
        self._store = MessageStore()
        self._task: Optional[asyncio.Task] = None
        self._requesting = False
        self._progress = 0.0
        # new_chat 时递增；晚到的回复若属于旧会话则丢弃
        self._generation = 0

    # ---- 只读视图 ----

    @property
    def history(self) -> Tuple[Turn, ...]:
        return self._store.all()

    @property
    def config(self) -> RequestConfig:
        return replace(self._config)

    @property
    def user_role(self) -> str:
        return self._user_role

    @property
    def credential(self) -> str:
        return self._credential

    @property
    def is_requesting(self) -> bool:
        return self._requesting

    @property
    def request_progress(self) -> float:
        return self._progress if self._requesting else 0.0

    # ---- 配置 ----

    @property
    def temperature(self) -> float:
        return self._config.temperature

    @temperature.setter
    def temperature(self, value: float) -> None:
        self._config.temperature = clamp_temperature(value)

    @property
    def timeout_seconds(self) -> int:
        return self._config.timeout_seconds

    @timeout_seconds.setter
    def timeout_seconds(self, value: int) -> None:
        self._config.timeout_seconds = clamp_timeout(value)

    @property
    def model(self) -> str:
        return self._config.model

    @model.setter
    def model(self, value: str) -> None:
        if not value or not value.strip():
            raise ValidationError(code="VALIDATION_ERROR", message="model must not be empty")
        self._config.model = value.strip()

    def set_credential(self, credential: str) -> None:
        self._credential = credential or ""

    def is_self_turn(self, turn: Turn) -> bool:
        return turn.role == self._user_role

    # ---- 请求生命周期 ----

    def send(
        self,
        text: str,
        on_complete: Optional[CompleteCallback] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> asyncio.Task:
        """发送一条用户消息，返回承载本次请求的 Task。

        用户消息在网络往返开始前就已追加；失败时不会回滚。
        必须在运行中的事件循环内调用。
        """
        if self._requesting:
            raise RequestInFlightError(code="REQUEST_IN_FLIGHT", message="a request is already in flight")
        if not text or not text.strip():
            raise ValidationError(code="VALIDATION_ERROR", message="message must not be empty")
        if not self._credential:
            raise ValidationError(code="MISSING_API_KEY", message="credential not set")
        loop = asyncio.get_running_loop()

        self._store.append(Turn(role=self._user_role, content=text))
        envelope = build_envelope(self._store.all(), self._config)
        self._requesting = True
        self._progress = 0.0
        self._task = loop.create_task(
            self._request(
                envelope,
                self._credential,
                self._config.timeout_seconds,
                self._generation,
                on_complete,
                on_progress,
            )
        )
        self._task.add_done_callback(self._release)
        return self._task

    async def send_async(self, text: str) -> str:
        """发送并等待回复文本；失败时返回空字符串。"""
        return await self.send(text)

    async def aclose(self) -> None:
        """取消在途请求并等待传输资源释放；不会追加任何回复。"""
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            self._log(logging.INFO, "Cancelled in-flight request", {}, turns=len(self._store))

    def _release(self, task: asyncio.Task) -> None:
        # 任务在开始执行前被取消时不会走到 _request 的 finally；
        # on_complete 中发起的新请求已替换 self._task，此时不能清除其状态
        if task is self._task:
            self._requesting = False
            self._progress = 0.0

    async def _request(
        self,
        envelope: RequestEnvelope,
        credential: str,
        timeout_seconds: int,
        generation: int,
        on_complete: Optional[CompleteCallback],
        on_progress: Optional[ProgressCallback],
    ) -> str:
        log_ctx: Dict[str, Any] = {
            "request_id": f"rq-{uuid4().hex}",
            "model": envelope.model,
            "message_count": len(envelope.messages),
        }

        def track(value: float) -> None:
            self._progress = value
            if on_progress:
                on_progress(value)

        try:
            success, text = await self._exchange(envelope, credential, timeout_seconds, generation, track, log_ctx)
        finally:
            self._requesting = False
            self._progress = 0.0
        if on_complete:
            on_complete(success, text)
        return text if success else ""

    async def _exchange(
        self,
        envelope: RequestEnvelope,
        credential: str,
        timeout_seconds: int,
        generation: int,
        on_progress: ProgressCallback,
        log_ctx: Dict[str, Any],
    ) -> Tuple[bool, str]:
        start_time = time.time()
        self._log(logging.INFO, "Sending completion request", log_ctx)
        try:
            result = await self._transport.execute(envelope, credential, timeout_seconds, on_progress=on_progress)
        except TransportError as e:
            self._log(
                logging.ERROR,
                "Completion request failed",
                log_ctx,
                code=e.code,
                http_status=e.http_status,
                error=e.message,
            )
            return False, ""
        except Exception as e:
            # 请求路径上的所有错误都止于 on_complete，包括 on_progress 回调抛出的异常
            self._log(
                logging.ERROR,
                "Completion request raised unexpected error",
                log_ctx,
                error_type=type(e).__name__,
                error=str(e),
            )
            return False, ""

        try:
            reply = self._reconciler.apply(result.body)
        except ParseError as e:
            self._log(logging.ERROR, "Completion response could not be parsed", log_ctx, error=e.message)
            return False, e.message

        if generation != self._generation:
            self._log(logging.WARNING, "Dropped reply for a cleared conversation", log_ctx)
            return False, ""

        self._store.append(reply)
        self._log(
            logging.INFO,
            "Completed request",
            log_ctx,
            elapsed_seconds=round(time.time() - start_time, 2),
            reply_role=reply.role,
        )
        return True, reply.content

    # ---- 会话管理 ----

    def new_chat(self) -> None:
        """清空会话历史；请求配置与凭证保持不变。"""
        self._store.clear()
        self._generation += 1
        self._log(logging.INFO, "Started new chat", {"in_flight": self._requesting})

    def restore_history(self) -> bool:
        """从持久化存储恢复会话与配置，返回是否恢复了任何内容。"""
        if self._persistence is None:
            return False
        conversation, config = self._persistence.restore()
        if conversation is not None:
            self._store.replace(conversation)
            self._generation += 1
        if config is not None:
            self._config = config
        self._log(
            logging.INFO,
            "Restored session",
            {},
            turns=len(self._store),
            restored_history=conversation is not None,
            restored_config=config is not None,
        )
        return conversation is not None or config is not None

    def save_history(self) -> None:
        if self._persistence is None:
            return
        self._persistence.save(self._store.all(), self._config)
        self._log(logging.INFO, "Saved session", {}, turns=len(self._store))

    def code_blocks(self, index: int) -> Optional[List[CodeBlock]]:
        """返回第 index 条远端消息中的代码块；本地消息或没有代码块时返回 None。"""
        turn = self._store[index]
        if self.is_self_turn(turn):
            return None
        return extract_code_blocks(turn.content) or None

    def _log(self, level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        fields.setdefault("generation", self._generation)
        log_event(level, message, log_ctx, **fields)
