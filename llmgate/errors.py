"""
Error types raised by provider clients and the chat gateway.
"""
from enum import Enum
from typing import Optional


class ProviderErrorKind(str, Enum):
    """Why a single provider call failed."""

    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    UNREACHABLE = "unreachable"
    INVALID_RESPONSE = "invalid_response"


class GatewayErrorKind(str, Enum):
    """Why the gateway could not produce a completion."""

    ALL_PROVIDERS_FAILED = "all_providers_failed"
    PROVIDER_NOT_CONFIGURED = "provider_not_configured"


class LLMGateError(Exception):
    """Base exception for llmgate errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ProviderError(LLMGateError):
    """Raised by a provider client when one backend call fails."""

    def __init__(
        self,
        kind: ProviderErrorKind,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.provider = provider
        self.status_code = status_code

    def __str__(self) -> str:
        prefix = f"[{self.provider}] " if self.provider else ""
        return f"{prefix}{self.kind.value}: {self.message}"


class GatewayError(LLMGateError):
    """
    Raised by the gateway once no provider can serve the request.

    Attributes:
        kind: What went wrong.
        cause: The last provider error seen (the fallback's, when one ran).
        original: The error from the first provider that was tried.
    """

    def __init__(
        self,
        kind: GatewayErrorKind,
        message: str,
        cause: Optional[ProviderError] = None,
        original: Optional[ProviderError] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.cause = cause
        self.original = original if original is not None else cause
