"""Provider exceptions."""

from __future__ import annotations


class ProviderError(Exception):
    """A data provider failed to deliver."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"[{provider}] {message}")
        self.provider = provider


class ProviderUnavailableError(ProviderError):
    pass


class ProviderTimeoutError(ProviderError):
    def __init__(self, provider: str, timeout_s: float) -> None:
        super().__init__(provider, f"timed out after {timeout_s}s")
        self.timeout_s = timeout_s


class ProviderRateLimitError(ProviderError):
    def __init__(self, provider: str, retry_after_s: float | None = None) -> None:
        message = "rate limited"
        if retry_after_s is not None:
            message += f", retry after {retry_after_s}s"
        super().__init__(provider, message)
        self.retry_after_s = retry_after_s
