"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError。
Provider 适配器在内部抛出这些异常，并在 complete() 边界把它们折叠为
ProviderFailure；只有编排器负责把最终失败翻译成面向用户的本地化提示。
"""

from chat_core.domain.models import FailureKind


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "NETWORK_ERROR"）。
        message: 错误信息（未本地化，主要用于日志与调试）。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 provider、trace_id 等）。
    """

    kind: FailureKind = FailureKind.UNEXPECTED

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class MissingCredentialError(BusinessError):
    """Provider 所需的 API 密钥未配置。"""

    kind = FailureKind.MISSING_CREDENTIAL


class InvalidCredentialError(BusinessError):
    """API 密钥存在，但被 Provider 明确拒绝。"""

    kind = FailureKind.INVALID_CREDENTIAL


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""

    kind = FailureKind.NETWORK_FAILURE


class ProviderRejectedError(BusinessError):
    """Provider 返回了结构化错误（非 2xx 或 error 字段）。"""

    kind = FailureKind.PROVIDER_REJECTED


class MalformedResponseError(BusinessError):
    """状态码成功，但响应结构缺少预期字段。"""

    kind = FailureKind.MALFORMED_RESPONSE
