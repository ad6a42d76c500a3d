import json
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from agrocamer.observability.logging_utils import (
    log_event,
    log_warning,
    mask_secret,
    reset_trace_id,
    set_trace_id,
)


class EventLoggingTests(unittest.TestCase):
    def test_credentials_are_masked(self) -> None:
        with self.assertLogs("agrocamer.events", level="INFO") as captured:
            log_event("ai_provider_attempt", provider="Gemini API 1", api_key="AIzaSyExample1234")

        payload = json.loads(captured.records[0].getMessage())
        self.assertEqual(payload["api_key"], "AIza...1234")
        self.assertEqual(payload["provider"], "Gemini API 1")
        self.assertNotIn("AIzaSyExample1234", captured.output[0])

    def test_trace_id_is_attached(self) -> None:
        token = set_trace_id("abc123")
        try:
            with self.assertLogs("agrocamer.events", level="WARNING") as captured:
                log_warning("weather_fetch_failed", error="timeout")
        finally:
            reset_trace_id(token)

        payload = json.loads(captured.records[0].getMessage())
        self.assertEqual(payload["trace_id"], "abc123")
        self.assertEqual(payload["event"], "weather_fetch_failed")

    def test_mask_secret(self) -> None:
        self.assertEqual(mask_secret(""), "")
        self.assertEqual(mask_secret("short"), "*****")
        self.assertEqual(mask_secret("abcdefghijkl"), "abcd...ijkl")


if __name__ == "__main__":
    unittest.main()
