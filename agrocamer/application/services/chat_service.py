from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from ...ai.wire import AIRequest, ChatTurn, OutputKind
from ...domain.errors import InvalidRequestError, ProvidersUnavailableError
from ...infra.chat_store import ChatStore
from ...infra.config import get_config
from ...infra.reference_store import ReferenceStore
from ...observability.logging_utils import log_event, log_warning
from ...observability.otel import start_span
from ...prompts.chat import CHAT_MAX_TOKENS, CHAT_TEMPERATURE, build_chat_system_prompt
from ...prompts.messages import (
    CHAT_UNAVAILABLE,
    MESSAGES_REQUIRED,
    message,
    normalize_language,
)
from ...schemas.models import ChatRequest, ChatResponse
from .ai_service import AIService
from .reference_service import fetch_reference_snapshot

CHAT_ROLES = ("user", "assistant")
CHAT_REFERENCE_TABLES = ("crops", "diseases")


def _conversation(payload: ChatRequest) -> List[ChatTurn]:
    return [
        ChatTurn(role=item.role, content=item.content)
        for item in payload.messages or []
        if item.role in CHAT_ROLES and item.content
    ]


def _last_user_message(turns: List[ChatTurn]) -> Optional[str]:
    for turn in reversed(turns):
        if turn.role == "user":
            return turn.content
    return None


def _persist_exchange(
    chat_store: ChatStore, session_id: str, turns: List[ChatTurn], reply: str
) -> None:
    user_message = _last_user_message(turns)
    try:
        if user_message is None:
            chat_store.append(session_id, "assistant", reply)
        else:
            chat_store.record_exchange(session_id, user_message, reply)
    except Exception as exc:
        log_warning(
            "chat_persist_failed",
            session_id=session_id,
            error_type=type(exc).__name__,
            error=str(exc),
        )


def chat(
    payload: ChatRequest,
    *,
    ai: AIService,
    store: ReferenceStore,
    chat_store: ChatStore,
) -> ChatResponse:
    language = normalize_language(payload.language)
    turns = _conversation(payload)
    if not turns:
        raise InvalidRequestError(message(MESSAGES_REQUIRED, language))
    providers = ai.require_providers(language)
    region = payload.region or get_config().default_region

    with start_span("handler.chat_assistant", {"request.language": language}) as span:
        snapshot = fetch_reference_snapshot(store, include=CHAT_REFERENCE_TABLES)
        context = snapshot.to_prompt_context()
        request = AIRequest(
            system_prompt=build_chat_system_prompt(region, language),
            context=context or None,
            messages=tuple(turns),
            output=OutputKind.TEXT,
            temperature=CHAT_TEMPERATURE,
            max_tokens=CHAT_MAX_TOKENS,
        )
        outcome = ai.run(providers, request)
        if not outcome.success:
            raise ProvidersUnavailableError(
                message(CHAT_UNAVAILABLE, language), details=outcome.error
            )
        reply: str = outcome.result
        span.set_attribute("ai.provider", outcome.provider or "")

    if payload.session_id:
        _persist_exchange(chat_store, payload.session_id, turns, reply)
    log_event(
        "chat_answered",
        provider=outcome.provider,
        turns=len(turns),
        database_context_used=bool(context),
    )
    return ChatResponse(
        message=reply,
        timestamp=datetime.now(timezone.utc),
        database_context_used=bool(context),
    )
