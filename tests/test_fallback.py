import json
import sys
import unittest
from pathlib import Path
from typing import Dict, List

import httpx

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from agrocamer.ai.fallback import NO_PROVIDERS_ERROR, FallbackOrchestrator
from agrocamer.ai.invoker import ProviderInvoker
from agrocamer.ai.policy import StatusClassifier
from agrocamer.ai.providers import ProviderDescriptor, WireFormat
from agrocamer.ai.wire import AIRequest, OutputKind
from agrocamer.prompts.plant import PLANT_TOOL
from agrocamer.schemas.models import PlantAnalysis

GATEWAY_URL = "https://gateway.test/v1/chat/completions"
DIRECT_URL = "https://direct.test/v1beta/models/gemini-2.0-flash:generateContent"

PLANT_RESULT = {
    "is_healthy": False,
    "detected_crop": "cacao",
    "disease_name": "Pourriture brune",
    "confidence": 82,
    "severity": "high",
    "description": "Taches brunes sur les cabosses",
    "prevention": ["Récolter les cabosses malades"],
}


def gateway(key: str = "gw-key") -> ProviderDescriptor:
    return ProviderDescriptor(
        name="Lovable AI Gateway",
        endpoint=GATEWAY_URL,
        api_key=key,
        model="google/gemini-2.5-flash",
        wire_format=WireFormat.GATEWAY,
    )


def direct(index: int) -> ProviderDescriptor:
    return ProviderDescriptor(
        name=f"Gemini API {index}",
        endpoint=DIRECT_URL,
        api_key=f"key-{index}",
        model="gemini-2.0-flash",
        wire_format=WireFormat.DIRECT_VENDOR,
    )


def gateway_ok(result: Dict) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "choices": [
                {
                    "message": {
                        "tool_calls": [
                            {
                                "type": "function",
                                "function": {
                                    "name": "analyze_plant_disease",
                                    "arguments": json.dumps(result),
                                },
                            }
                        ]
                    }
                }
            ]
        },
    )


def direct_ok(text: str) -> httpx.Response:
    return httpx.Response(
        200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]}
    )


class ScriptedTransport:
    """Answer each provider from a per-provider queue and record calls."""

    def __init__(self, responses: Dict[str, List]) -> None:
        self.responses = responses
        self.calls: List[httpx.Request] = []

    def key_for(self, request: httpx.Request) -> str:
        if request.url.host == "gateway.test":
            return "gateway"
        return request.headers["x-goog-api-key"]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        queue = self.responses[self.key_for(request)]
        answer = queue.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def called(self) -> List[str]:
        return [self.key_for(request) for request in self.calls]


def plant_request() -> AIRequest:
    return AIRequest(
        system_prompt="Tu es un expert.",
        user_prompt="Analyse cette plante.",
        image="QUJD",
        tool=PLANT_TOOL,
    )


class FallbackTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.sleeps: List[float] = []

    def orchestrator(self, transport: ScriptedTransport, **kwargs) -> FallbackOrchestrator:
        client = httpx.Client(transport=httpx.MockTransport(transport))
        self.addCleanup(client.close)
        invoker = ProviderInvoker(client, StatusClassifier.from_statuses())
        return FallbackOrchestrator(invoker, sleep=self.sleeps.append, **kwargs)


class FallbackChainTests(FallbackTestCase):
    def test_first_provider_success_stops_chain(self) -> None:
        transport = ScriptedTransport({"gateway": [gateway_ok(PLANT_RESULT)], "key-1": []})
        outcome = self.orchestrator(transport).run([gateway(), direct(1)], plant_request())

        self.assertTrue(outcome.success)
        self.assertEqual(outcome.provider, "Lovable AI Gateway")
        self.assertIsInstance(outcome.result, PlantAnalysis)
        self.assertEqual(outcome.result.detected_crop, "cacao")
        self.assertFalse(outcome.result.from_database)
        self.assertEqual(transport.called(), ["gateway"])

    def test_rate_limit_falls_over_to_direct_provider(self) -> None:
        transport = ScriptedTransport(
            {
                "gateway": [httpx.Response(429, text="slow down")],
                "key-1": [direct_ok("Résultat:\n" + json.dumps(PLANT_RESULT))],
            }
        )
        outcome = self.orchestrator(transport).run([gateway(), direct(1)], plant_request())

        self.assertTrue(outcome.success)
        self.assertEqual(outcome.provider, "Gemini API 1")
        self.assertEqual(outcome.result.severity, "high")
        self.assertEqual([a.status_code for a in outcome.attempts], [429, 200])
        self.assertEqual(transport.called(), ["gateway", "key-1"])

    def test_fatal_status_stops_without_trying_next(self) -> None:
        transport = ScriptedTransport(
            {"gateway": [httpx.Response(401, text="bad key")], "key-1": [], "key-2": []}
        )
        outcome = self.orchestrator(transport).run(
            [gateway(), direct(1), direct(2)], plant_request()
        )

        self.assertFalse(outcome.success)
        self.assertEqual(outcome.error, "Lovable AI Gateway: 401")
        self.assertEqual(transport.called(), ["gateway"])
        self.assertEqual(len(outcome.attempts), 1)

    def test_bad_request_is_fatal(self) -> None:
        transport = ScriptedTransport({"key-1": [httpx.Response(400)], "key-2": []})
        outcome = self.orchestrator(transport).run([direct(1), direct(2)], plant_request())

        self.assertFalse(outcome.success)
        self.assertEqual(outcome.error, "Gemini API 1: 400")
        self.assertEqual(transport.called(), ["key-1"])

    def test_exhaustion_reports_last_error(self) -> None:
        transport = ScriptedTransport(
            {
                "gateway": [httpx.Response(503)],
                "key-1": [httpx.Response(529)],
                "key-2": [httpx.Response(500)],
            }
        )
        outcome = self.orchestrator(transport).run(
            [gateway(), direct(1), direct(2)], plant_request()
        )

        self.assertFalse(outcome.success)
        self.assertEqual(outcome.error, "Gemini API 2: 500")
        self.assertEqual(transport.called(), ["gateway", "key-1", "key-2"])

    def test_parse_error_moves_on(self) -> None:
        transport = ScriptedTransport(
            {
                "key-1": [direct_ok("Je ne peux pas analyser cette image.")],
                "key-2": [direct_ok(json.dumps(PLANT_RESULT))],
            }
        )
        outcome = self.orchestrator(transport).run([direct(1), direct(2)], plant_request())

        self.assertTrue(outcome.success)
        self.assertEqual(outcome.attempts[0].error, "Gemini API 1: Parse error")
        self.assertTrue(outcome.attempts[0].should_retry)

    def test_invalid_result_moves_on(self) -> None:
        incomplete = {"detected_crop": "cacao", "confidence": 250}
        transport = ScriptedTransport(
            {"gateway": [gateway_ok(incomplete)], "key-1": [direct_ok(json.dumps(PLANT_RESULT))]}
        )
        outcome = self.orchestrator(transport).run([gateway(), direct(1)], plant_request())

        self.assertTrue(outcome.success)
        self.assertEqual(outcome.provider, "Gemini API 1")
        self.assertTrue(outcome.attempts[0].error.startswith("Lovable AI Gateway: Invalid result"))

    def test_network_error_is_retryable(self) -> None:
        transport = ScriptedTransport(
            {
                "gateway": [httpx.ConnectError("connection refused")],
                "key-1": [direct_ok(json.dumps(PLANT_RESULT))],
            }
        )
        outcome = self.orchestrator(transport).run([gateway(), direct(1)], plant_request())

        self.assertTrue(outcome.success)
        self.assertIn("connection refused", outcome.attempts[0].error)
        self.assertIsNone(outcome.attempts[0].status_code)

    def test_network_error_is_logged_as_provider_failure(self) -> None:
        transport = ScriptedTransport(
            {
                "gateway": [httpx.ConnectError("connection refused")],
                "key-1": [direct_ok(json.dumps(PLANT_RESULT))],
            }
        )
        with self.assertLogs("agrocamer.events", level="INFO") as captured:
            self.orchestrator(transport).run([gateway(), direct(1)], plant_request())

        events = [json.loads(record.getMessage()) for record in captured.records]
        failures = [event for event in events if event["event"] == "ai_provider_failed"]
        self.assertEqual(len(failures), 1)
        self.assertEqual(failures[0]["provider"], "Lovable AI Gateway")
        self.assertEqual(failures[0]["error_type"], "ConnectError")
        self.assertTrue(failures[0]["retryable"])

    def test_empty_provider_list(self) -> None:
        transport = ScriptedTransport({})
        outcome = self.orchestrator(transport).run([], plant_request())

        self.assertFalse(outcome.success)
        self.assertEqual(outcome.error, NO_PROVIDERS_ERROR)
        self.assertEqual(transport.calls, [])


class FallbackBackoffTests(FallbackTestCase):
    def test_no_sleep_by_default(self) -> None:
        transport = ScriptedTransport(
            {"key-1": [httpx.Response(429)], "key-2": [httpx.Response(429)]}
        )
        self.orchestrator(transport).run([direct(1), direct(2)], plant_request())
        self.assertEqual(self.sleeps, [])

    def test_backoff_doubles_and_is_capped(self) -> None:
        transport = ScriptedTransport(
            {
                "key-1": [httpx.Response(503)],
                "key-2": [httpx.Response(503)],
                "key-3": [httpx.Response(503)],
                "key-4": [httpx.Response(503)],
            }
        )
        self.orchestrator(transport, backoff_seconds=1.0, backoff_max_seconds=3.0).run(
            [direct(1), direct(2), direct(3), direct(4)], plant_request()
        )
        self.assertEqual(self.sleeps, [1.0, 2.0, 3.0])


class InvokerWireTests(FallbackTestCase):
    def test_credentials_travel_in_headers(self) -> None:
        transport = ScriptedTransport(
            {"gateway": [httpx.Response(429)], "key-1": [direct_ok(json.dumps(PLANT_RESULT))]}
        )
        self.orchestrator(transport).run([gateway(), direct(1)], plant_request())

        gateway_call, direct_call = transport.calls
        self.assertEqual(gateway_call.headers["authorization"], "Bearer gw-key")
        self.assertEqual(direct_call.headers["x-goog-api-key"], "key-1")
        self.assertNotIn("key=", str(direct_call.url))
        self.assertEqual(str(direct_call.url), DIRECT_URL)

    def test_text_output_is_returned_as_string(self) -> None:
        transport = ScriptedTransport(
            {"gateway": [httpx.Response(200, json={"choices": [{"message": {"content": " Bonjour! "}}]})]}
        )
        request = AIRequest(system_prompt="s", user_prompt="salut", output=OutputKind.TEXT)
        outcome = self.orchestrator(transport).run([gateway()], request)

        self.assertTrue(outcome.success)
        self.assertEqual(outcome.result, "Bonjour!")
        body = json.loads(transport.calls[0].content)
        self.assertNotIn("tools", body)


if __name__ == "__main__":
    unittest.main()
