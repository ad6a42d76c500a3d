from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence

from ..observability.logging_utils import log_event
from .invoker import InvocationOutcome, ProviderInvoker
from .providers import ProviderDescriptor
from .wire import AIRequest

logger = logging.getLogger(__name__)

NO_PROVIDERS_ERROR = "No AI providers configured"


@dataclass(frozen=True)
class AttemptRecord:
    provider: str
    success: bool
    error: Optional[str]
    should_retry: bool
    status_code: Optional[int]


@dataclass(frozen=True)
class FallbackResult:
    success: bool
    result: Any = None
    provider: Optional[str] = None
    error: Optional[str] = None
    attempts: List[AttemptRecord] = field(default_factory=list)


class FallbackOrchestrator:
    """Walk the provider list in priority order.

    Stops at the first success or the first fatal failure; retryable
    failures move on to the next provider. When ``backoff_seconds`` is set,
    waits ``backoff_seconds * 2**n`` (capped) before the n-th fallover.
    """

    def __init__(
        self,
        invoker: ProviderInvoker,
        *,
        backoff_seconds: float = 0.0,
        backoff_max_seconds: float = 4.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._invoker = invoker
        self._backoff_seconds = max(0.0, float(backoff_seconds))
        self._backoff_max_seconds = max(0.0, float(backoff_max_seconds))
        self._sleep = sleep

    def _backoff(self, failures: int) -> float:
        if self._backoff_seconds <= 0:
            return 0.0
        delay = self._backoff_seconds * (2 ** (failures - 1))
        return min(delay, self._backoff_max_seconds)

    def run(
        self, providers: Sequence[ProviderDescriptor], request: AIRequest
    ) -> FallbackResult:
        if not providers:
            return FallbackResult(success=False, error=NO_PROVIDERS_ERROR)

        attempts: List[AttemptRecord] = []
        last_error = ""
        for index, provider in enumerate(providers):
            if attempts:
                delay = self._backoff(len(attempts))
                if delay > 0:
                    self._sleep(delay)
            outcome: InvocationOutcome = self._invoker.invoke(provider, request)
            attempts.append(
                AttemptRecord(
                    provider=provider.name,
                    success=outcome.success,
                    error=outcome.error,
                    should_retry=outcome.should_retry,
                    status_code=outcome.status_code,
                )
            )
            if outcome.success:
                return FallbackResult(
                    success=True,
                    result=outcome.result,
                    provider=provider.name,
                    attempts=attempts,
                )
            last_error = outcome.error or "Unknown error"
            if not outcome.should_retry:
                log_event(
                    "ai_fallback_stopped",
                    provider=provider.name,
                    error=last_error,
                    skipped=len(providers) - index - 1,
                )
                break
            logger.info("%s failed, trying next provider...", provider.name)
        else:
            log_event("ai_fallback_exhausted", attempts=len(attempts), error=last_error)

        return FallbackResult(success=False, error=last_error, attempts=attempts)
