from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, List

from pydantic import ValidationError

from ...ai.wire import AIRequest, OutputKind
from ...domain.regions import resolve_region
from ...infra.config import get_config
from ...infra.reference_store import ReferenceStore
from ...observability.logging_utils import log_event, log_warning
from ...prompts.alerts_tips import (
    ALERTS_MAX_TOKENS,
    ALERTS_SYSTEM_PROMPT,
    ALERTS_TEMPERATURE,
    build_alerts_prompt,
)
from ...prompts.messages import normalize_language
from ...schemas.models import Alert, AlertsRequest, AlertsResponse
from ...schemas.reference import AlertRow
from .ai_service import AIService

AI_ALERT_TTL = timedelta(hours=24)


def _database_alerts(store: ReferenceStore, region: str) -> List[Alert]:
    try:
        rows: List[AlertRow] = store.list_active_alerts(region)
    except Exception as exc:
        log_warning(
            "reference_fetch_failed",
            table="agricultural_alerts",
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return []
    return [
        Alert(
            id=row.id,
            type=row.type,
            title=row.title,
            message=row.message,
            region=row.region or region,
            created_at=row.created_at,
            expires_at=row.expires_at,
            source="database",
        )
        for row in rows
    ]


def _to_alerts(items: List[Any], region: str, now: datetime) -> List[Alert]:
    alerts: List[Alert] = []
    prefix = f"{now.date().isoformat()}-{region}"
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            continue
        try:
            alert = Alert.model_validate(item)
        except ValidationError:
            continue
        alerts.append(
            alert.model_copy(
                update={
                    "id": f"{prefix}-{index}",
                    "region": region,
                    "created_at": now,
                    "expires_at": now + AI_ALERT_TTL,
                    "source": "ai",
                }
            )
        )
    return alerts


def _generated_alerts(ai: AIService, region: str, language: str) -> List[Alert]:
    providers = ai.providers()
    if not providers:
        return []
    request = AIRequest(
        system_prompt=ALERTS_SYSTEM_PROMPT,
        user_prompt=build_alerts_prompt(region, language),
        output=OutputKind.ARRAY,
        temperature=ALERTS_TEMPERATURE,
        max_tokens=ALERTS_MAX_TOKENS,
    )
    outcome = ai.run(providers, request)
    if not outcome.success:
        return []
    return _to_alerts(outcome.result, region, datetime.now(timezone.utc))


def get_alerts(
    payload: AlertsRequest, *, ai: AIService, store: ReferenceStore
) -> AlertsResponse:
    language = normalize_language(payload.language)
    region = resolve_region(
        region_id=payload.region, default=get_config().default_region
    ).region.id
    alerts = _database_alerts(store, region) + _generated_alerts(ai, region, language)
    log_event("alerts_generated", region=region, count=len(alerts))
    return AlertsResponse(
        alerts=alerts, region=region, generated_at=datetime.now(timezone.utc)
    )
