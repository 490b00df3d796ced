"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在会话控制器或 UI 层做统一捕获与用户提示。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "STORE_WRITE_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 endpoint、model 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class TransportError(BusinessError):
    """传输层错误：连接失败、超时或非 2xx 状态码。

    message 保存原始错误文本，不做内部重试。
    """


class ParseError(BusinessError):
    """补全响应结构不合法（JSON 损坏、choices 为空、缺少 message 等）。"""


class PersistenceDecodeError(BusinessError):
    """持久化的会话状态无法解码，只在存储边界内部使用。"""


class RequestInFlightError(BusinessError):
    """已有请求在进行中时再次调用 send。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""
