import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from agrocamer.ai.policy import FailureKind, StatusClassifier
from agrocamer.ai.wire import (
    AIRequest,
    ChatTurn,
    OutputKind,
    build_direct_request,
    build_gateway_request,
    extract_json_array,
    extract_json_object,
    parse_direct_response,
    parse_gateway_response,
)
from agrocamer.prompts.plant import PLANT_TOOL

TOOL_ARGUMENTS = (
    '{"is_healthy":true,"detected_crop":"maize","confidence":88,'
    '"severity":"healthy","description":"ok","prevention":[]}'
)


def gateway_tool_response(arguments: str) -> dict:
    return {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "tool_calls": [
                        {
                            "type": "function",
                            "function": {
                                "name": "analyze_plant_disease",
                                "arguments": arguments,
                            },
                        }
                    ],
                }
            }
        ]
    }


def direct_text_response(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class StatusClassifierTests(unittest.TestCase):
    def test_default_table(self) -> None:
        classifier = StatusClassifier.from_statuses()
        for status in (402, 429, 500, 503, 529):
            self.assertTrue(classifier.is_retryable(status), status)
        for status in (400, 401, 403, 404, 502):
            self.assertIs(classifier.classify(status), FailureKind.FATAL, status)

    def test_codes_from_config_string(self) -> None:
        classifier = StatusClassifier.from_codes("400; 429 ,oops")
        self.assertTrue(classifier.is_retryable(400))
        self.assertTrue(classifier.is_retryable(429))
        self.assertFalse(classifier.is_retryable(503))

    def test_empty_codes_fall_back_to_defaults(self) -> None:
        self.assertTrue(StatusClassifier.from_codes("").is_retryable(529))
        self.assertTrue(StatusClassifier.from_codes("n/a").is_retryable(402))


class GatewayWireTests(unittest.TestCase):
    def test_structured_request_forces_tool(self) -> None:
        request = AIRequest(
            system_prompt="system",
            user_prompt="analyse",
            image="QUJD",
            context="Cultures: Cacao",
            tool=PLANT_TOOL,
        )
        body = build_gateway_request(request, "google/gemini-2.5-pro")
        self.assertEqual(body["model"], "google/gemini-2.5-pro")
        self.assertEqual(body["messages"][0]["role"], "system")
        self.assertIn("Cultures: Cacao", body["messages"][0]["content"])
        user_content = body["messages"][1]["content"]
        self.assertEqual(user_content[0], {"type": "text", "text": "analyse"})
        self.assertEqual(
            user_content[1]["image_url"]["url"], "data:image/jpeg;base64,QUJD"
        )
        self.assertEqual(body["tools"][0]["function"]["name"], "analyze_plant_disease")
        self.assertEqual(
            body["tool_choice"],
            {"type": "function", "function": {"name": "analyze_plant_disease"}},
        )

    def test_data_uri_is_kept_for_gateway(self) -> None:
        request = AIRequest(system_prompt="s", user_prompt="u", image="data:image/png;base64,QUJD")
        body = build_gateway_request(request, "m")
        self.assertEqual(
            body["messages"][1]["content"][1]["image_url"]["url"],
            "data:image/png;base64,QUJD",
        )

    def test_text_request_carries_conversation(self) -> None:
        request = AIRequest(
            system_prompt="s",
            messages=(ChatTurn("user", "Bonjour"), ChatTurn("assistant", "Salut")),
            output=OutputKind.TEXT,
            temperature=0.7,
            max_tokens=1024,
        )
        body = build_gateway_request(request, "m")
        self.assertNotIn("tools", body)
        self.assertEqual([m["role"] for m in body["messages"]], ["system", "user", "assistant"])
        self.assertEqual(body["max_tokens"], 1024)
        self.assertEqual(body["temperature"], 0.7)

    def test_tool_call_arguments_are_parsed(self) -> None:
        request = AIRequest(system_prompt="s", tool=PLANT_TOOL)
        result = parse_gateway_response(gateway_tool_response(TOOL_ARGUMENTS), request)
        self.assertEqual(result["detected_crop"], "maize")
        self.assertEqual(result["confidence"], 88)
        self.assertIs(result["from_database"], False)

    def test_missing_tool_call_is_none(self) -> None:
        request = AIRequest(system_prompt="s", tool=PLANT_TOOL)
        data = {"choices": [{"message": {"content": "no tool"}}]}
        self.assertIsNone(parse_gateway_response(data, request))
        self.assertIsNone(parse_gateway_response(gateway_tool_response("{broken"), request))


class DirectWireTests(unittest.TestCase):
    def test_request_inlines_shape_and_strips_data_uri(self) -> None:
        request = AIRequest(
            system_prompt="system",
            user_prompt="analyse",
            image="data:image/png;base64,QUJD",
            tool=PLANT_TOOL,
        )
        body = build_direct_request(request)
        parts = body["contents"][0]["parts"]
        self.assertIn("Réponds UNIQUEMENT avec un objet JSON valide", parts[0]["text"])
        self.assertIn('"detected_crop"', parts[0]["text"])
        self.assertEqual(parts[1]["inline_data"], {"mime_type": "image/png", "data": "QUJD"})
        self.assertEqual(
            body["generationConfig"],
            {"temperature": 0.4, "topK": 32, "topP": 1, "maxOutputTokens": 4096},
        )

    def test_conversation_is_flattened(self) -> None:
        request = AIRequest(
            system_prompt="system",
            messages=(ChatTurn("user", "Quand planter le maïs ?"),),
            output=OutputKind.TEXT,
        )
        text = build_direct_request(request)["contents"][0]["parts"][0]["text"]
        self.assertIn("Utilisateur: Quand planter le maïs ?", text)
        self.assertTrue(text.endswith("Assistant:"))

    def test_json_object_is_extracted_from_prose(self) -> None:
        text = 'Here is the result:\n{"grade":"A","feedback":"good"}\nThanks'
        self.assertEqual(extract_json_object(text), {"grade": "A", "feedback": "good"})
        result = parse_direct_response(direct_text_response(text), AIRequest(system_prompt="s"))
        self.assertEqual(result, {"grade": "A", "feedback": "good", "from_database": False})

    def test_unparseable_text_is_none(self) -> None:
        request = AIRequest(system_prompt="s")
        self.assertIsNone(parse_direct_response(direct_text_response("no json here"), request))
        self.assertIsNone(parse_direct_response({"candidates": []}, request))

    def test_array_output(self) -> None:
        text = 'Voici:\n[{"title":"t","message":"m"}]'
        self.assertEqual(extract_json_array(text), [{"title": "t", "message": "m"}])
        request = AIRequest(system_prompt="s", output=OutputKind.ARRAY)
        self.assertEqual(
            parse_direct_response(direct_text_response(text), request),
            [{"title": "t", "message": "m"}],
        )


if __name__ == "__main__":
    unittest.main()
