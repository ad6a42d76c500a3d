from __future__ import annotations

import logging
import re
import uuid
from contextlib import asynccontextmanager

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..application.services.ai_service import AIService, get_ai_service
from ..application.services.alerts_service import get_alerts
from ..application.services.chat_service import chat
from ..application.services.harvest_service import analyze_harvest
from ..application.services.plant_service import analyze_plant
from ..application.services.tips_service import get_tips
from ..application.services.weather_service import get_weather
from ..domain.errors import AgroCamerError
from ..infra.chat_store import ChatStore, get_chat_store
from ..infra.config import get_config
from ..infra.http import get_http_client
from ..infra.reference_store import ReferenceStore, get_reference_store
from ..observability.logging_utils import (
    init_logging,
    log_warning,
    reset_trace_id,
    set_trace_id,
)
from ..observability.otel import init_otel, instrument_fastapi
from ..prompts.messages import (
    ANALYSIS_FAILED,
    REQUEST_INVALID,
    UNEXPECTED_ERROR,
    message,
    normalize_language,
)
from ..schemas.models import (
    AlertsRequest,
    AlertsResponse,
    ChatRequest,
    ChatResponse,
    HarvestAnalysisRequest,
    HarvestAnalysisResponse,
    PlantAnalysisRequest,
    PlantAnalysisResponse,
    TipsRequest,
    TipsResponse,
    WeatherRequest,
    WeatherResponse,
)

logger = logging.getLogger(__name__)

TRACE_HEADER = "X-Trace-Id"
# Client-supplied ids are echoed only when they match.
_TRACE_ID_PATTERN = re.compile(r"^[0-9a-fA-F-]{8,64}$")


@asynccontextmanager
async def lifespan(_: FastAPI):
    cfg = get_config()
    init_logging(log_path=cfg.log_path)
    logger.info("AI providers: %s", ", ".join(get_ai_service().provider_names()) or "none")
    yield


def _trace_id_for(request: Request) -> str:
    supplied = request.headers.get(TRACE_HEADER, "")
    if _TRACE_ID_PATTERN.match(supplied):
        return supplied
    return uuid.uuid4().hex


def _request_language(request: Request) -> str:
    return normalize_language(request.headers.get("Accept-Language"))


def _unexpected_error_response(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error at %s", request.url.path, exc_info=exc)
    log_warning(
        "unhandled_error",
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    key = ANALYSIS_FAILED if "analyze" in request.url.path else UNEXPECTED_ERROR
    return JSONResponse(
        status_code=500, content={"error": message(key, _request_language(request))}
    )


async def _trace_middleware(request: Request, call_next):
    """Runs inside CORS so every response, 500s included, gets both headers."""
    trace_id = _trace_id_for(request)
    token = set_trace_id(trace_id)
    try:
        response = await call_next(request)
    except Exception as exc:
        response = _unexpected_error_response(request, exc)
    finally:
        reset_trace_id(token)
    response.headers[TRACE_HEADER] = trace_id
    return response


async def _agrocamer_error_handler(_: Request, exc: AgroCamerError):
    log_warning(
        "request_failed",
        status=exc.status_code,
        error=exc.message,
        details=exc.details,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "error": message(REQUEST_INVALID, _request_language(request)),
            "details": str(exc.errors()),
        },
    )


async def _unhandled_exception_handler(request: Request, exc: Exception):
    return _unexpected_error_response(request, exc)


def create_app() -> FastAPI:
    app = FastAPI(title="AgroCamer API", lifespan=lifespan)
    # Last added is outermost: CORS wraps the trace middleware.
    app.middleware("http")(_trace_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[TRACE_HEADER],
    )
    app.add_exception_handler(AgroCamerError, _agrocamer_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)

    @app.get("/health")
    def health(ai: AIService = Depends(get_ai_service)):
        cfg = get_config()
        return {
            "status": "ok",
            "providers": ai.provider_names(),
            "reference_store": cfg.reference_store,
            "chat_store": cfg.chat_store,
        }

    @app.post("/api/v1/analyze-plant", response_model=PlantAnalysisResponse)
    def analyze_plant_route(
        payload: PlantAnalysisRequest,
        ai: AIService = Depends(get_ai_service),
        store: ReferenceStore = Depends(get_reference_store),
    ):
        return analyze_plant(payload, ai=ai, store=store)

    @app.post("/api/v1/analyze-harvest", response_model=HarvestAnalysisResponse)
    def analyze_harvest_route(
        payload: HarvestAnalysisRequest,
        ai: AIService = Depends(get_ai_service),
        store: ReferenceStore = Depends(get_reference_store),
    ):
        return analyze_harvest(payload, ai=ai, store=store)

    @app.post("/api/v1/chat-assistant", response_model=ChatResponse)
    def chat_assistant_route(
        payload: ChatRequest,
        ai: AIService = Depends(get_ai_service),
        store: ReferenceStore = Depends(get_reference_store),
        chat_store: ChatStore = Depends(get_chat_store),
    ):
        return chat(payload, ai=ai, store=store, chat_store=chat_store)

    @app.post("/api/v1/get-weather", response_model=WeatherResponse)
    def get_weather_route(
        payload: WeatherRequest,
        client: httpx.Client = Depends(get_http_client),
    ):
        return get_weather(payload, client=client)

    @app.post("/api/v1/get-alerts", response_model=AlertsResponse)
    def get_alerts_route(
        payload: AlertsRequest,
        ai: AIService = Depends(get_ai_service),
        store: ReferenceStore = Depends(get_reference_store),
    ):
        return get_alerts(payload, ai=ai, store=store)

    @app.post("/api/v1/get-tips", response_model=TipsResponse)
    def get_tips_route(
        payload: TipsRequest,
        ai: AIService = Depends(get_ai_service),
    ):
        return get_tips(payload, ai=ai)

    if init_otel():
        instrument_fastapi(app)
    return app


app = create_app()
