from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List

from pydantic import ValidationError

from ...ai.wire import AIRequest, OutputKind
from ...domain.regions import resolve_region
from ...infra.config import get_config
from ...observability.logging_utils import log_event
from ...prompts.alerts_tips import (
    TIPS_MAX_TOKENS,
    TIPS_SYSTEM_PROMPT,
    TIPS_TEMPERATURE,
    build_tips_prompt,
    normalize_tip_category,
)
from ...prompts.messages import normalize_language
from ...schemas.models import Tip, TipsRequest, TipsResponse
from .ai_service import AIService


def _to_tips(items: List[Any], category: str) -> List[Tip]:
    tips: List[Tip] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            continue
        try:
            tip = Tip.model_validate(item)
        except ValidationError:
            continue
        tips.append(
            tip.model_copy(
                update={"id": tip.id or f"{category}-{index}", "category": category}
            )
        )
    return tips


def get_tips(payload: TipsRequest, *, ai: AIService) -> TipsResponse:
    language = normalize_language(payload.language)
    category = normalize_tip_category(payload.category)
    region = resolve_region(
        region_id=payload.region, default=get_config().default_region
    ).region.id

    tips: List[Tip] = []
    providers = ai.providers()
    if providers:
        request = AIRequest(
            system_prompt=TIPS_SYSTEM_PROMPT,
            user_prompt=build_tips_prompt(category, region, language),
            output=OutputKind.ARRAY,
            temperature=TIPS_TEMPERATURE,
            max_tokens=TIPS_MAX_TOKENS,
        )
        outcome = ai.run(providers, request)
        if outcome.success:
            tips = _to_tips(outcome.result, category)
    log_event("tips_generated", category=category, region=region, count=len(tips))
    return TipsResponse(
        tips=tips, category=category, generated_at=datetime.now(timezone.utc)
    )
