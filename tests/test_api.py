import json
import sys
import unittest
from pathlib import Path
from typing import Callable, List

import httpx
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from agrocamer.ai.fallback import FallbackOrchestrator
from agrocamer.ai.invoker import ProviderInvoker
from agrocamer.ai.providers import ProviderSettings
from agrocamer.api.server import create_app
from agrocamer.application.services.ai_service import AIService, get_ai_service
from agrocamer.infra.chat_store import MemoryChatStore, get_chat_store
from agrocamer.infra.http import get_http_client
from agrocamer.infra.reference_store import MemoryReferenceStore, get_reference_store

GATEWAY_URL = "https://gateway.test/v1/chat/completions"
DIRECT_BASE = "https://direct.test/v1beta"

PLANT_RESULT = {
    "is_healthy": False,
    "detected_crop": "Cacao",
    "disease_name": "Pourriture brune",
    "confidence": 80,
    "severity": "high",
    "description": "Cabosses noircies",
    "prevention": ["Récolte sanitaire hebdomadaire"],
}

HARVEST_RESULT = {
    "detected_crop": "Cacao",
    "grade": "A",
    "quality": {"color": 90, "size": 80, "defects": 4, "uniformity": 85, "maturity": 90},
    "recommendedUse": ["Export"],
    "estimatedPrice": {"min": 800, "max": 900, "currency": "XAF", "unit": "kg"},
    "feedback": "Bonne fermentation",
}


def tool_call(result: dict) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "choices": [
                {
                    "message": {
                        "tool_calls": [
                            {"type": "function", "function": {"arguments": json.dumps(result)}}
                        ]
                    }
                }
            ]
        },
    )


def gateway_text(text: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": text}}]})


class _ExplodingAI(AIService):
    def require_providers(self, language, *, vision=False):
        raise RuntimeError("boom")


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.calls: List[httpx.Request] = []
        self.responder: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(500)
        self.http = httpx.Client(transport=httpx.MockTransport(self._handle))
        self.addCleanup(self.http.close)
        self.chat_store = MemoryChatStore(max_items=100)
        self.app = create_app()
        self.app.dependency_overrides[get_ai_service] = lambda: self.ai_service()
        self.app.dependency_overrides[get_reference_store] = MemoryReferenceStore.seeded
        self.app.dependency_overrides[get_chat_store] = lambda: self.chat_store
        self.app.dependency_overrides[get_http_client] = lambda: self.http
        self.client = TestClient(self.app)
        self.gateway_key = "gw-key"
        self.direct_keys = ("direct-1",)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        return self.responder(request)

    def ai_service(self) -> AIService:
        settings = ProviderSettings(
            gateway_api_key=self.gateway_key,
            gateway_url=GATEWAY_URL,
            direct_api_keys=self.direct_keys,
            direct_api_base=DIRECT_BASE,
        )
        orchestrator = FallbackOrchestrator(ProviderInvoker(self.http))
        return AIService(settings, orchestrator, vision_model="google/gemini-2.5-pro")

    def request_body(self, index: int = 0) -> dict:
        return json.loads(self.calls[index].content)


class HealthTests(ApiTestCase):
    def test_health_lists_providers(self) -> None:
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["providers"], ["Lovable AI Gateway", "Gemini API 1"])

    def test_trace_id_is_echoed(self) -> None:
        response = self.client.get("/health", headers={"X-Trace-Id": "0123abcd-ef45"})
        self.assertEqual(response.headers["X-Trace-Id"], "0123abcd-ef45")
        self.assertTrue(self.client.get("/health").headers["X-Trace-Id"])

    def test_malformed_trace_id_is_replaced(self) -> None:
        response = self.client.get("/health", headers={"X-Trace-Id": "not a trace id!"})
        trace_id = response.headers["X-Trace-Id"]
        self.assertNotEqual(trace_id, "not a trace id!")
        self.assertRegex(trace_id, r"^[0-9a-f]{32}$")


class AnalyzePlantApiTests(ApiTestCase):
    def test_missing_image_is_rejected_before_any_provider_call(self) -> None:
        response = self.client.post("/api/v1/analyze-plant", json={"language": "fr"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Image requise pour l'analyse"})
        self.assertEqual(self.calls, [])

    def test_no_providers_configured(self) -> None:
        self.gateway_key = None
        self.direct_keys = ()
        response = self.client.post("/api/v1/analyze-plant", json={"image": "QUJD"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error"], "Aucun fournisseur IA configuré")
        self.assertEqual(self.calls, [])

    def test_success_is_enriched_and_uses_vision_model(self) -> None:
        self.responder = lambda request: tool_call(PLANT_RESULT)
        response = self.client.post(
            "/api/v1/analyze-plant",
            json={"image": "QUJD", "latitude": 3.87, "longitude": 11.52},
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["success"])
        self.assertEqual(payload["provider"], "Lovable AI Gateway")
        self.assertTrue(payload["analysis"]["from_database"])
        self.assertEqual(payload["analysis"]["local_name"], "Black pod")
        self.assertIn("Ridomil Gold 66 WP - 50 g / 15 L (Pulvérisation des cabosses)",
                      payload["analysis"]["chemical_treatments"])

        body = self.request_body()
        self.assertEqual(body["model"], "google/gemini-2.5-pro")
        self.assertIn("Pourriture brune", body["messages"][0]["content"])
        self.assertIn("Centre", body["messages"][1]["content"][0]["text"])

    def test_all_providers_down(self) -> None:
        self.responder = lambda request: httpx.Response(503)
        response = self.client.post("/api/v1/analyze-plant", json={"image": "QUJD", "language": "en"})
        self.assertEqual(response.status_code, 503)
        self.assertEqual(
            response.json(),
            {
                "error": "All AI services are temporarily unavailable. Please try again later.",
                "details": "Gemini API 1: 503",
            },
        )
        self.assertEqual(len(self.calls), 2)

    def explode(self) -> None:
        self.app.dependency_overrides[get_ai_service] = lambda: _ExplodingAI(
            ProviderSettings(), FallbackOrchestrator(ProviderInvoker(self.http))
        )

    def test_unexpected_failure_is_a_generic_500(self) -> None:
        self.explode()
        response = self.client.post("/api/v1/analyze-plant", json={"image": "QUJD"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Une erreur est survenue lors de l'analyse"})

    def test_unexpected_failure_keeps_cors_and_trace_headers(self) -> None:
        self.explode()
        with self.assertLogs("agrocamer.events", level="WARNING") as captured:
            response = self.client.post(
                "/api/v1/analyze-plant",
                json={"image": "QUJD"},
                headers={"Origin": "https://app.example"},
            )

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.headers["access-control-allow-origin"], "*")
        trace_id = response.headers["X-Trace-Id"]
        payload = json.loads(captured.records[-1].getMessage())
        self.assertEqual(payload["event"], "unhandled_error")
        self.assertEqual(payload["error_type"], "RuntimeError")
        self.assertEqual(payload["trace_id"], trace_id)

    def test_unexpected_failure_in_english(self) -> None:
        self.explode()
        response = self.client.post(
            "/api/v1/analyze-plant",
            json={"image": "QUJD"},
            headers={"Accept-Language": "en-US,en;q=0.9"},
        )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "An error occurred during the analysis"})

    def test_malformed_body(self) -> None:
        response = self.client.post("/api/v1/analyze-plant", json={"latitude": "nord"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Requête invalide")

    def test_malformed_body_in_english(self) -> None:
        response = self.client.post(
            "/api/v1/analyze-plant",
            json={"latitude": "nord"},
            headers={"Accept-Language": "en-US"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Invalid request")


class AnalyzeHarvestApiTests(ApiTestCase):
    def test_price_comes_from_database(self) -> None:
        self.responder = lambda request: tool_call(HARVEST_RESULT)
        response = self.client.post(
            "/api/v1/analyze-harvest",
            json={"image": "QUJD", "crop_type": "cacao", "regionName": "Littoral"},
        )
        self.assertEqual(response.status_code, 200)
        analysis = response.json()["analysis"]
        self.assertTrue(analysis["from_database"])
        self.assertTrue(analysis["is_good_quality"])
        self.assertEqual(analysis["estimatedPrice"]["min"], 1400)
        self.assertEqual(analysis["estimatedPrice"]["market"], "Douala")
        self.assertEqual(self.request_body()["model"], "google/gemini-2.5-flash")

    def test_missing_image(self) -> None:
        response = self.client.post("/api/v1/analyze-harvest", json={"crop_type": "cacao"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.calls, [])


class ChatApiTests(ApiTestCase):
    def test_empty_messages_are_rejected(self) -> None:
        for body in ({}, {"messages": []}, {"messages": [{"role": "system", "content": "x"}]}):
            response = self.client.post("/api/v1/chat-assistant", json=body)
            self.assertEqual(response.status_code, 400, body)
            self.assertEqual(response.json()["error"], "Messages requis")
        self.assertEqual(self.calls, [])

    def test_reply_is_persisted_per_session(self) -> None:
        self.responder = lambda request: gateway_text("Semez le maïs en mars.")
        response = self.client.post(
            "/api/v1/chat-assistant",
            json={
                "messages": [{"role": "user", "content": "Quand semer le maïs ?"}],
                "region": "ouest",
                "session_id": "session-1",
            },
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["message"], "Semez le maïs en mars.")
        self.assertTrue(payload["database_context_used"])

        history = self.chat_store.history("session-1")
        self.assertEqual(
            [(row.role, row.content) for row in history],
            [("user", "Quand semer le maïs ?"), ("assistant", "Semez le maïs en mars.")],
        )
        body = self.request_body()
        self.assertEqual(body["model"], "google/gemini-2.5-flash")
        self.assertEqual(body["messages"][-1], {"role": "user", "content": "Quand semer le maïs ?"})

    def test_chat_falls_over_and_reports_unavailable(self) -> None:
        self.responder = lambda request: httpx.Response(429)
        response = self.client.post(
            "/api/v1/chat-assistant",
            json={"messages": [{"role": "user", "content": "Bonjour"}], "session_id": "s"},
        )
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["details"], "Gemini API 1: 429")
        self.assertEqual(self.chat_store.history("s"), [])


class WeatherApiTests(ApiTestCase):
    def test_upstream_failure_is_502(self) -> None:
        self.responder = lambda request: httpx.Response(500)
        response = self.client.post("/api/v1/get-weather", json={"region": "centre"})
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["error"], "Impossible de récupérer la météo")

    def test_weather_report(self) -> None:
        self.responder = lambda request: httpx.Response(
            200,
            json={
                "current": {
                    "temperature_2m": 27.4,
                    "relative_humidity_2m": 60,
                    "apparent_temperature": 29.0,
                    "weather_code": 1,
                    "wind_speed_10m": 8.0,
                },
                "daily": {"precipitation_probability_max": [10]},
            },
        )
        response = self.client.post("/api/v1/get-weather", json={"region": "sud"})
        self.assertEqual(response.status_code, 200)
        weather = response.json()["weather"]
        self.assertEqual(weather["temp"], 27)
        self.assertEqual(weather["location"], "Ebolowa, Sud")
        self.assertIn("idéales", weather["agricultural_advice"])


class AlertsTipsApiTests(ApiTestCase):
    def test_alerts_merge_database_and_generated(self) -> None:
        self.responder = lambda request: gateway_text(
            'Voici:\n[{"type":"danger","title":"Mildiou","message":"Traitez les tomates"}]'
        )
        response = self.client.post("/api/v1/get-alerts", json={"region": "ouest"})
        self.assertEqual(response.status_code, 200)
        alerts = response.json()["alerts"]
        self.assertEqual([alert["source"] for alert in alerts], ["database", "ai"])
        self.assertEqual(alerts[1]["region"], "ouest")
        self.assertTrue(alerts[1]["id"].endswith("-ouest-0"))

    def test_alerts_without_providers_keep_database_rows(self) -> None:
        self.gateway_key = None
        self.direct_keys = ()
        response = self.client.post("/api/v1/get-alerts", json={})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([alert["id"] for alert in response.json()["alerts"]], ["alert-armyworm"])

    def test_tips_get_default_ids(self) -> None:
        self.responder = lambda request: gateway_text(
            '[{"title":"Paillage","content":"Couvrez le sol","readTime":"3 min"}]'
        )
        response = self.client.post("/api/v1/get-tips", json={"category": "unknown"})
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["category"], "seasonal")
        self.assertEqual(payload["tips"][0]["id"], "seasonal-0")


if __name__ == "__main__":
    unittest.main()
