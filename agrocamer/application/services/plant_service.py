from __future__ import annotations

from datetime import datetime, timezone

from ...ai.wire import AIRequest
from ...domain.enrichment import enrich_plant_analysis
from ...domain.errors import InvalidRequestError, ProvidersUnavailableError
from ...infra.reference_store import ReferenceStore
from ...observability.logging_utils import log_event
from ...observability.otel import start_span
from ...prompts.context import format_location_context
from ...prompts.messages import (
    ANALYSIS_UNAVAILABLE,
    IMAGE_REQUIRED,
    message,
    normalize_language,
)
from ...prompts.plant import PLANT_SYSTEM_PROMPT, PLANT_TOOL, build_plant_user_prompt
from ...schemas.models import PlantAnalysisRequest, PlantAnalysisResponse
from .ai_service import AIService
from .location import with_derived_region
from .reference_service import fetch_reference_snapshot

PLANT_REFERENCE_TABLES = ("crops", "diseases", "treatments")


def analyze_plant(
    payload: PlantAnalysisRequest,
    *,
    ai: AIService,
    store: ReferenceStore,
) -> PlantAnalysisResponse:
    language = normalize_language(payload.language)
    if not payload.image:
        raise InvalidRequestError(message(IMAGE_REQUIRED, language))
    providers = ai.require_providers(language, vision=True)

    crop = payload.userSpecifiedCrop or payload.crop_hint
    location = with_derived_region(payload)
    with start_span("handler.analyze_plant", {"request.language": language}) as span:
        snapshot = fetch_reference_snapshot(store, include=PLANT_REFERENCE_TABLES)
        request = AIRequest(
            system_prompt=PLANT_SYSTEM_PROMPT,
            user_prompt=build_plant_user_prompt(
                language, crop=crop, location=format_location_context(location)
            ),
            image=payload.image,
            context=snapshot.to_prompt_context() or None,
            tool=PLANT_TOOL,
        )
        outcome = ai.run(providers, request)
        if not outcome.success:
            raise ProvidersUnavailableError(
                message(ANALYSIS_UNAVAILABLE, language), details=outcome.error
            )
        analysis = enrich_plant_analysis(outcome.result, snapshot)
        span.set_attribute("ai.provider", outcome.provider or "")
        span.set_attribute("analysis.from_database", analysis.from_database)

    log_event(
        "plant_analyzed",
        provider=outcome.provider,
        crop=analysis.detected_crop,
        healthy=analysis.is_healthy,
        from_database=analysis.from_database,
    )
    return PlantAnalysisResponse(
        analysis=analysis,
        analyzed_at=datetime.now(timezone.utc),
        provider=outcome.provider,
    )
