"""Multi-provider AI invocation with ordered fallback."""

from .fallback import FallbackOrchestrator, FallbackResult
from .invoker import InvocationOutcome, ProviderInvoker
from .policy import DEFAULT_RETRYABLE_STATUSES, FailureKind, StatusClassifier
from .providers import (
    ProviderDescriptor,
    ProviderSettings,
    WireFormat,
    build_providers,
    sanitize_api_key,
)
from .wire import AIRequest, ChatTurn, OutputKind, ToolSpec

__all__ = [
    "AIRequest",
    "ChatTurn",
    "DEFAULT_RETRYABLE_STATUSES",
    "FailureKind",
    "FallbackOrchestrator",
    "FallbackResult",
    "InvocationOutcome",
    "OutputKind",
    "ProviderDescriptor",
    "ProviderInvoker",
    "ProviderSettings",
    "StatusClassifier",
    "ToolSpec",
    "WireFormat",
    "build_providers",
    "sanitize_api_key",
]
