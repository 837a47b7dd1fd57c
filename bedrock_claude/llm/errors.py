"""Errors raised by the Bedrock Claude adapter layer."""

from __future__ import annotations

from typing import Optional


class LLMProviderError(RuntimeError):
    """Base error for provider-layer failures."""


class LLMConfigurationError(LLMProviderError):
    """Raised when adapter configuration is invalid or incomplete."""


ConfigurationError = LLMConfigurationError


class TransportError(LLMProviderError):
    """Raised when a Bedrock invocation fails (network, auth or provider status)."""

    def __init__(self, message: str, *, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code


class GenerationCancelledError(TransportError):
    """Raised when the caller cancels an in-flight generation."""

    def __init__(self, message: str = "generation cancelled") -> None:
        super().__init__(message, code="Cancelled")


class DecodeError(LLMProviderError):
    """Raised when a response body or stream chunk is not a valid completion payload."""


class EmptyResponseError(LLMProviderError):
    """Raised when a generation call produced no generations."""
