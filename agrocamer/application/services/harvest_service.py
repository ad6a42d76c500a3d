from __future__ import annotations

from datetime import datetime, timezone

from ...ai.wire import AIRequest
from ...domain.enrichment import enrich_harvest_analysis
from ...domain.errors import InvalidRequestError, ProvidersUnavailableError
from ...infra.reference_store import ReferenceStore
from ...observability.logging_utils import log_event
from ...observability.otel import start_span
from ...prompts.context import format_location_context
from ...prompts.harvest import HARVEST_SYSTEM_PROMPT, HARVEST_TOOL, build_harvest_user_prompt
from ...prompts.messages import (
    ANALYSIS_UNAVAILABLE,
    IMAGE_REQUIRED,
    message,
    normalize_language,
)
from ...schemas.models import HarvestAnalysisRequest, HarvestAnalysisResponse
from .ai_service import AIService
from .location import location_region_id, with_derived_region
from .reference_service import fetch_reference_snapshot

HARVEST_REFERENCE_TABLES = ("crops", "market_prices")


def analyze_harvest(
    payload: HarvestAnalysisRequest,
    *,
    ai: AIService,
    store: ReferenceStore,
) -> HarvestAnalysisResponse:
    language = normalize_language(payload.language)
    if not payload.image:
        raise InvalidRequestError(message(IMAGE_REQUIRED, language))
    providers = ai.require_providers(language)

    location = with_derived_region(payload)
    with start_span("handler.analyze_harvest", {"request.language": language}) as span:
        snapshot = fetch_reference_snapshot(store, include=HARVEST_REFERENCE_TABLES)
        request = AIRequest(
            system_prompt=HARVEST_SYSTEM_PROMPT,
            user_prompt=build_harvest_user_prompt(
                language,
                crop=payload.crop_type,
                location=format_location_context(location),
            ),
            image=payload.image,
            context=snapshot.to_prompt_context() or None,
            tool=HARVEST_TOOL,
        )
        outcome = ai.run(providers, request)
        if not outcome.success:
            raise ProvidersUnavailableError(
                message(ANALYSIS_UNAVAILABLE, language), details=outcome.error
            )
        analysis = outcome.result
        if payload.crop_type and not analysis.detected_crop:
            analysis = analysis.model_copy(update={"detected_crop": payload.crop_type})
        analysis = enrich_harvest_analysis(
            analysis, snapshot, region=location_region_id(payload)
        )
        span.set_attribute("ai.provider", outcome.provider or "")
        span.set_attribute("analysis.from_database", analysis.from_database)

    log_event(
        "harvest_analyzed",
        provider=outcome.provider,
        grade=analysis.grade,
        from_database=analysis.from_database,
    )
    return HarvestAnalysisResponse(
        analysis=analysis,
        analyzed_at=datetime.now(timezone.utc),
        provider=outcome.provider,
    )
