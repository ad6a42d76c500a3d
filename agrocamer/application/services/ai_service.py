from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from ...ai.fallback import FallbackOrchestrator, FallbackResult
from ...ai.invoker import ProviderInvoker
from ...ai.policy import StatusClassifier
from ...ai.providers import ProviderDescriptor, ProviderSettings, build_providers
from ...ai.wire import AIRequest
from ...domain.errors import ProvidersNotConfiguredError
from ...infra.config import AppConfig, get_config
from ...infra.http import get_http_client
from ...observability.logging_utils import log_event
from ...prompts.messages import NO_PROVIDERS, message


class AIService:
    """Provider list plus fallback orchestrator for one deployment."""

    def __init__(
        self,
        settings: ProviderSettings,
        orchestrator: FallbackOrchestrator,
        *,
        vision_model: Optional[str] = None,
    ) -> None:
        self._settings = settings
        self._orchestrator = orchestrator
        self._vision_model = vision_model

    def providers(self, *, vision: bool = False) -> List[ProviderDescriptor]:
        model = self._vision_model if vision else None
        return build_providers(self._settings, gateway_model=model)

    def provider_names(self) -> List[str]:
        return [provider.name for provider in self.providers()]

    def require_providers(
        self, language: str, *, vision: bool = False
    ) -> List[ProviderDescriptor]:
        providers = self.providers(vision=vision)
        if not providers:
            log_event("ai_providers_loaded", providers=[])
            raise ProvidersNotConfiguredError(message(NO_PROVIDERS, language))
        return providers

    def run(
        self, providers: List[ProviderDescriptor], request: AIRequest
    ) -> FallbackResult:
        log_event(
            "ai_providers_loaded",
            providers=[provider.name for provider in providers],
            output=request.output.value,
        )
        return self._orchestrator.run(providers, request)


def build_ai_service(config: Optional[AppConfig] = None, client=None) -> AIService:
    cfg = config or get_config()
    invoker = ProviderInvoker(
        client or get_http_client(),
        StatusClassifier.from_codes(cfg.retryable_status_codes),
    )
    orchestrator = FallbackOrchestrator(
        invoker,
        backoff_seconds=cfg.fallback_backoff_seconds,
        backoff_max_seconds=cfg.fallback_backoff_max_seconds,
    )
    return AIService(
        cfg.provider_settings(),
        orchestrator,
        vision_model=cfg.gateway_vision_model,
    )


@lru_cache(maxsize=1)
def get_ai_service() -> AIService:
    return build_ai_service()
