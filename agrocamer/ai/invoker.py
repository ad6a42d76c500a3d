from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from ..observability.logging_utils import log_event, summarize_text
from ..observability.otel import record_exception, start_span
from .policy import StatusClassifier
from .providers import ProviderDescriptor
from .wire import (
    AIRequest,
    OutputKind,
    build_direct_request,
    build_gateway_request,
    parse_direct_response,
    parse_gateway_response,
)


@dataclass(frozen=True)
class InvocationOutcome:
    success: bool
    result: Any = None
    error: Optional[str] = None
    should_retry: bool = False
    status_code: Optional[int] = None


class ProviderInvoker:
    """Issue one POST to one provider and classify what came back."""

    def __init__(
        self,
        client: httpx.Client,
        classifier: Optional[StatusClassifier] = None,
    ) -> None:
        self._client = client
        self._classifier = classifier or StatusClassifier.from_statuses()

    @property
    def classifier(self) -> StatusClassifier:
        return self._classifier

    def _build(self, provider: ProviderDescriptor, request: AIRequest) -> tuple[Dict[str, str], Dict[str, Any]]:
        headers = {"Content-Type": "application/json"}
        if provider.is_gateway:
            headers["Authorization"] = f"Bearer {provider.api_key}"
            return headers, build_gateway_request(request, provider.model)
        headers["x-goog-api-key"] = provider.api_key
        return headers, build_direct_request(request)

    def _parse(self, provider: ProviderDescriptor, data: Any, request: AIRequest) -> Any:
        if provider.is_gateway:
            return parse_gateway_response(data, request)
        return parse_direct_response(data, request)

    def _validate(self, result: Any, request: AIRequest) -> Any:
        if request.output is not OutputKind.OBJECT or not request.tool:
            return result
        model = request.tool.result_model
        if model is None:
            return result
        return model.model_validate(result)

    def invoke(self, provider: ProviderDescriptor, request: AIRequest) -> InvocationOutcome:
        log_event(
            "ai_provider_attempt",
            provider=provider.name,
            wire_format=provider.wire_format.value,
            model=provider.model,
            api_key=provider.api_key,
        )
        attributes = {
            "ai.provider": provider.name,
            "ai.wire_format": provider.wire_format.value,
            "ai.model": provider.model,
        }
        with start_span("ai.provider.invoke", attributes) as span:
            outcome = self._invoke(provider, request, span)
            span.set_attribute("ai.success", outcome.success)
            if outcome.status_code is not None:
                span.set_attribute("http.status_code", outcome.status_code)
            return outcome

    def _invoke(self, provider: ProviderDescriptor, request: AIRequest, span) -> InvocationOutcome:
        headers, body = self._build(provider, request)
        try:
            response = self._client.post(provider.endpoint, json=body, headers=headers)
        except httpx.HTTPError as exc:
            record_exception(span, exc)
            log_event(
                "ai_provider_failed",
                provider=provider.name,
                status=None,
                retryable=True,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return InvocationOutcome(
                success=False,
                error=f"{provider.name}: {exc}",
                should_retry=True,
            )

        status = response.status_code
        if not response.is_success:
            retryable = self._classifier.is_retryable(status)
            log_event(
                "ai_provider_failed",
                provider=provider.name,
                status=status,
                retryable=retryable,
                body=summarize_text(response.text, 300),
            )
            return InvocationOutcome(
                success=False,
                error=f"{provider.name}: {status}",
                should_retry=retryable,
                status_code=status,
            )

        try:
            data = response.json()
        except ValueError:
            data = None
        result = self._parse(provider, data, request) if data is not None else None
        if result is None:
            log_event("ai_provider_failed", provider=provider.name, status=status, reason="parse")
            return InvocationOutcome(
                success=False,
                error=f"{provider.name}: Parse error",
                should_retry=True,
                status_code=status,
            )

        try:
            result = self._validate(result, request)
        except ValidationError as exc:
            log_event(
                "ai_provider_failed",
                provider=provider.name,
                status=status,
                reason="validation",
                errors=exc.error_count(),
            )
            return InvocationOutcome(
                success=False,
                error=f"{provider.name}: Invalid result ({exc.error_count()} errors)",
                should_retry=True,
                status_code=status,
            )

        log_event("ai_provider_succeeded", provider=provider.name, status=status)
        return InvocationOutcome(
            success=True, result=result, should_retry=False, status_code=status
        )
