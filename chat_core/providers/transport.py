"""HTTP 传输层。

本模块负责：

1. 把 RequestEnvelope 序列化后 POST 到 chat/completions 端点。
2. 在上传/下载过程中按块计算进度（上传与下载比例的平均值）。
3. 把超时、连接失败、非 2xx 状态码统一包装为 TransportError。

注意：客户端以 verify=False 创建，接受任意服务端证书，
以便对接证书链不规范的代理/私有部署；对真实性有要求的场景
不能依赖这一层提供的传输安全。

单次请求互斥（single-flight）由 ChatSession 负责，这里不做限制；
也不做内部重试，重试策略属于调用方。
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional

import httpx

from chat_core.domain.exceptions import TransportError
from chat_core.domain.models import RequestEnvelope
from chat_core.infrastructure.logging.logger import log_event
from chat_core.providers.registry import OPENAI_CONFIG, EndpointConfig


ProgressCallback = Callable[[float], None]
UPLOAD_CHUNK_SIZE = 16 * 1024


@dataclass
class TransportResult:
    """一次成功 HTTP 交换的结果。"""

    status_code: int
    body: str


class ProgressTracker:
    """上传/下载进度跟踪，保证对外报告的值单调不减且位于 [0, 1]。"""

    def __init__(self, upload_total: int, on_progress: Optional[ProgressCallback] = None):
        self._upload_total = upload_total
        self._uploaded = 0
        self._download_total = 0
        self._downloaded = 0
        self._on_progress = on_progress
        self.value = 0.0

    def add_uploaded(self, n: int) -> None:
        self._uploaded += n
        self._sample()

    def start_download(self, total: int) -> None:
        self._download_total = max(total, 0)
        self._sample()

    def set_downloaded(self, n: int) -> None:
        self._downloaded = n
        self._sample()

    def finish(self) -> None:
        self._publish(1.0)

    def _sample(self) -> None:
        up = _fraction(self._uploaded, self._upload_total)
        down = _fraction(self._downloaded, self._download_total)
        self._publish((up + down) / 2)

    def _publish(self, value: float) -> None:
        value = min(max(value, 0.0), 1.0)
        if value < self.value:
            return
        self.value = value
        if self._on_progress:
            self._on_progress(value)


def _fraction(done: int, total: int) -> float:
    # 未知长度时在完成前一律视为 0
    if total <= 0:
        return 0.0
    return min(done / total, 1.0)


class HttpTransportClient:
    """基于 httpx.AsyncClient 的补全接口客户端。

    - transport: 可注入的 httpx 传输层（测试中使用 httpx.MockTransport）。
    - progress: 最近一次 execute 的进度，范围 [0, 1]。
    """

    name = "http"

    def __init__(
        self,
        endpoint: EndpointConfig = OPENAI_CONFIG,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._endpoint = endpoint
        self._url = endpoint.completions_url(base_url or "")
        self._transport = transport
        self._tracker: Optional[ProgressTracker] = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def progress(self) -> float:
        return self._tracker.value if self._tracker else 0.0

    async def execute(
        self,
        envelope: RequestEnvelope,
        credential: str,
        timeout_seconds: int,
        on_progress: Optional[ProgressCallback] = None,
    ) -> TransportResult:
        """执行一次 HTTP 交换。

        timeout_seconds 是整次调用的上限；取消调用方任务时，
        async with 会关闭响应流与连接，不返回部分结果。
        """

        body = envelope.to_bytes()
        tracker = ProgressTracker(len(body), on_progress)
        self._tracker = tracker
        try:
            status_code, text = await asyncio.wait_for(
                self._exchange(body, credential, timeout_seconds, tracker),
                timeout=timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise TransportError(
                code="TIMEOUT",
                message=f"request timed out after {timeout_seconds}s",
                http_status=504,
            )
        except httpx.TimeoutException as e:
            raise TransportError(code="TIMEOUT", message=str(e) or "request timed out", http_status=504)
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接被拒绝、TLS 握手失败等
            raise TransportError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)
        except (httpx.HTTPError, httpx.StreamError) as e:
            # StreamError 不属于 HTTPError：响应流已被读取或关闭
            raise TransportError(code="TRANSPORT_ERROR", message=str(e) or type(e).__name__)
        except httpx.InvalidURL as e:
            raise TransportError(code="INVALID_URL", message=str(e), url=self._url)
        if not 200 <= status_code < 300:
            log_event(
                logging.WARNING,
                "Completion endpoint returned error status",
                url=self._url,
                status_code=status_code,
            )
            raise TransportError(code="API_ERROR", message=text, http_status=status_code)
        tracker.finish()
        return TransportResult(status_code=status_code, body=text)

    async def _exchange(
        self,
        body: bytes,
        credential: str,
        timeout_seconds: int,
        tracker: ProgressTracker,
    ) -> tuple[int, str]:
        headers = {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/json",
            "Content-Length": str(len(body)),
        }
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            verify=False,
            trust_env=False,
            transport=self._transport,
        ) as client:
            async with client.stream(
                "POST",
                self._url,
                content=_iter_body(body, tracker),
                headers=headers,
            ) as resp:
                tracker.start_download(_content_length(resp))
                chunks = []
                async for chunk in resp.aiter_bytes():
                    chunks.append(chunk)
                    tracker.set_downloaded(resp.num_bytes_downloaded)
                text = b"".join(chunks).decode(resp.encoding or "utf-8", errors="replace")
                return resp.status_code, text


async def _iter_body(body: bytes, tracker: ProgressTracker) -> AsyncIterator[bytes]:
    for start in range(0, len(body), UPLOAD_CHUNK_SIZE):
        chunk = body[start:start + UPLOAD_CHUNK_SIZE]
        yield chunk
        tracker.add_uploaded(len(chunk))


def _content_length(resp: httpx.Response) -> int:
    raw = resp.headers.get("Content-Length")
    try:
        return int(raw) if raw else 0
    except ValueError:
        return 0
