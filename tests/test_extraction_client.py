"""Tests for the resilient extraction client."""
import asyncio
import json
import unittest
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
from google.genai import errors as genai_errors

from creditflow.llm.extraction_client import (
    ExtractionClient,
    check_media_type,
    classify_error,
    parse_extraction_response,
)
from creditflow.llm.models import Entry
from creditflow.utils.exceptions import (
    AuthError,
    ErrorKind,
    MalformedResponseError,
    SafetyBlockedError,
    TransientError,
    UnknownExtractionError,
    ValidationError,
)
from creditflow.utils.retry import RetryPolicy

VALID_KEY = "AIzaSyTestKey123"

PAYLOAD = {
    "clientName": "MARIA SOUZA",
    "entries": [
        {"description": "SALARIO", "amount": 1234.56, "date": "2024-01-05"},
        {"description": "TRANSF PIX", "amount": 200, "date": "2024-01-18"},
    ]
}


def make_response(payload=None, text=None, block_reason=None, finish_reason="STOP"):
    if text is None:
        text = json.dumps(payload)
    return SimpleNamespace(
        text=text,
        prompt_feedback=SimpleNamespace(block_reason=block_reason),
        candidates=[SimpleNamespace(finish_reason=finish_reason)]
    )


def api_error(cls, code, status, message):
    return cls(code, {"error": {"code": code, "message": message, "status": status}})


def rate_limited():
    return api_error(genai_errors.ClientError, 429, "RESOURCE_EXHAUSTED", "Resource has been exhausted")


class TestExtractionClient(unittest.IsolatedAsyncioTestCase):
    """Test ExtractionClient retry and validation behaviour."""

    def make_client(self, *outcomes, api_key=VALID_KEY):
        self.generate = AsyncMock(side_effect=list(outcomes))
        self.sleep = AsyncMock()
        fake = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=self.generate)))
        return ExtractionClient(
            api_key=api_key,
            model_name="gemini-test",
            policy=RetryPolicy(max_attempts=3, initial_delay=1.0, backoff_factor=2.0),
            temperature=0.0,
            sleep=self.sleep,
            client=fake
        )

    async def test_successful_extraction(self):
        client = self.make_client(make_response(PAYLOAD))

        result = await client.extract(b"%PDF-1.4", "application/pdf")

        self.assertEqual(result.client_name, "MARIA SOUZA")
        self.assertEqual(result.entries[0], Entry("SALARIO", Decimal("1234.56"), "2024-01-05"))
        self.assertEqual(len(result.entries), 2)
        self.assertEqual(self.generate.await_count, 1)
        self.sleep.assert_not_awaited()

        kwargs = self.generate.await_args.kwargs
        self.assertEqual(kwargs["model"], "gemini-test")
        self.assertEqual(kwargs["config"].response_mime_type, "application/json")
        self.assertEqual(kwargs["contents"][0].inline_data.mime_type, "application/pdf")
        self.assertIn("RESGATE APLICACAO", kwargs["contents"][1])

    async def test_retries_transient_then_succeeds(self):
        """Two transient failures wait 1s then 2s before the third attempt."""
        client = self.make_client(rate_limited(), httpx.ConnectError("reset"), make_response(PAYLOAD))

        result = await client.extract(b"png-bytes", "image/png")

        self.assertEqual(result.client_name, "MARIA SOUZA")
        self.assertEqual(self.generate.await_count, 3)
        self.assertEqual([c.args[0] for c in self.sleep.await_args_list], [1.0, 2.0])

    async def test_exhausted_transient_surfaces_last_error(self):
        last = api_error(genai_errors.ServerError, 503, "UNAVAILABLE", "The model is overloaded")
        client = self.make_client(rate_limited(), rate_limited(), last)

        with self.assertRaises(TransientError) as ctx:
            await client.extract(b"png-bytes", "image/png")

        self.assertIn("overloaded", str(ctx.exception))
        self.assertIs(ctx.exception.__cause__, last)
        self.assertEqual(self.generate.await_count, 3)
        self.assertEqual(self.sleep.await_count, 2)

    async def test_auth_error_not_retried(self):
        rejected = api_error(genai_errors.ClientError, 403, "PERMISSION_DENIED", "Permission denied")
        client = self.make_client(rejected, make_response(PAYLOAD))

        with self.assertRaises(AuthError):
            await client.extract(b"png-bytes", "image/png")

        self.assertEqual(self.generate.await_count, 1)
        self.sleep.assert_not_awaited()

    async def test_missing_key_fails_before_call(self):
        client = self.make_client(make_response(PAYLOAD), api_key=None)

        with self.assertRaises(AuthError) as ctx:
            await client.extract(b"png-bytes", "image/png")

        self.assertIn("not found", str(ctx.exception))
        self.generate.assert_not_awaited()

    async def test_malformed_key_fails_before_call(self):
        client = self.make_client(make_response(PAYLOAD), api_key="sk-not-a-gemini-key")

        with self.assertRaises(AuthError) as ctx:
            await client.extract(b"png-bytes", "image/png")

        self.assertIn("malformed", str(ctx.exception))
        self.generate.assert_not_awaited()

    async def test_missing_entries_is_malformed(self):
        client = self.make_client(make_response({"clientName": "MARIA"}), make_response(PAYLOAD))

        with self.assertRaises(MalformedResponseError):
            await client.extract(b"png-bytes", "image/png")

        self.assertEqual(self.generate.await_count, 1)
        self.sleep.assert_not_awaited()

    async def test_safety_block_from_response(self):
        client = self.make_client(make_response(text="", finish_reason="SAFETY"))

        with self.assertRaises(SafetyBlockedError):
            await client.extract(b"png-bytes", "image/png")

        self.assertEqual(self.generate.await_count, 1)

    async def test_prompt_feedback_block(self):
        client = self.make_client(make_response(text="", block_reason="PROHIBITED_CONTENT"))

        with self.assertRaises(SafetyBlockedError):
            await client.extract(b"png-bytes", "image/png")

    async def test_unknown_error_not_retried(self):
        client = self.make_client(RuntimeError("unexpected failure"), make_response(PAYLOAD))

        with self.assertRaises(UnknownExtractionError) as ctx:
            await client.extract(b"png-bytes", "image/png")

        self.assertEqual(ctx.exception.message, "unexpected failure")
        self.assertEqual(self.generate.await_count, 1)

    async def test_rejects_unsupported_media(self):
        client = self.make_client(make_response(PAYLOAD))

        with self.assertRaises(ValidationError):
            await client.extract(b"col1,col2", "text/csv")
        with self.assertRaises(ValidationError):
            await client.extract(b"", "application/pdf")

        self.generate.assert_not_awaited()


class TestClassifyError(unittest.TestCase):
    """Test error classification."""

    def test_api_errors(self):
        cases = [
            (api_error(genai_errors.ClientError, 401, "UNAUTHENTICATED", "Bad credentials"), ErrorKind.AUTH),
            (api_error(genai_errors.ClientError, 400, "INVALID_ARGUMENT", "API key not valid. Please pass a valid API key."), ErrorKind.AUTH),
            (api_error(genai_errors.ClientError, 400, "INVALID_ARGUMENT", "Blocked due to SAFETY"), ErrorKind.SAFETY_BLOCKED),
            (rate_limited(), ErrorKind.TRANSIENT),
            (api_error(genai_errors.ServerError, 500, "INTERNAL", "Internal error"), ErrorKind.TRANSIENT),
            (api_error(genai_errors.ClientError, 404, "NOT_FOUND", "Model not found"), ErrorKind.UNKNOWN),
        ]
        for error, kind in cases:
            with self.subTest(error=str(error)):
                self.assertEqual(classify_error(error).kind, kind)

    def test_transport_errors(self):
        for error in [ConnectionError("reset"), TimeoutError("slow"), asyncio.TimeoutError(), httpx.ReadTimeout("slow")]:
            with self.subTest(error=error):
                self.assertIsInstance(classify_error(error), TransientError)

    def test_passthrough(self):
        error = MalformedResponseError("shape")
        self.assertIs(classify_error(error), error)

    def test_check_media_type(self):
        self.assertEqual(check_media_type("IMAGE/JPEG"), "image/jpeg")
        self.assertEqual(check_media_type("application/pdf"), "application/pdf")
        with self.assertRaises(ValidationError):
            check_media_type("image/")


class TestParseResponse(unittest.TestCase):
    """Test response parsing and validation."""

    def test_code_fence_and_trailing_comma(self):
        text = '```json\n{"clientName": "", "entries": [],}\n```'
        result = parse_extraction_response(text)

        self.assertEqual(result.client_name, "")
        self.assertEqual(result.entries, [])

    def test_valid_json_left_untouched(self):
        """Comma-before-brace text inside strings survives when the JSON is valid."""
        text = json.dumps({"clientName": "A", "entries": [
            {"description": "PIX DE {JOAO, }", "amount": 10, "date": "2024-01-01"},
            {"description": "TED [1, ]", "amount": 5, "date": "2024-01-02"},
        ]})
        result = parse_extraction_response(text)

        self.assertEqual(result.entries[0].description, "PIX DE {JOAO, }")
        self.assertEqual(result.entries[1].description, "TED [1, ]")

    def test_null_client_name_is_empty(self):
        result = parse_extraction_response(json.dumps({"clientName": None, "entries": []}))

        self.assertEqual(result.client_name, "")
        self.assertEqual(result.entries, [])

    def test_missing_fields_default_to_empty(self):
        result = parse_extraction_response(json.dumps({"clientName": "A", "entries": [{"amount": 10}]}))

        self.assertEqual(result.entries, [Entry("", Decimal("10"), "")])

    def test_contract_violations(self):
        bad = [
            None,
            "not json",
            "[]",
            json.dumps({"entries": []}),
            json.dumps({"clientName": "A", "entries": {}}),
            json.dumps({"clientName": "A", "entries": [{"description": "X", "date": "2024-01-01"}]}),
            '{"clientName": "A", "entries": [{"description": "X", "amount": NaN, "date": "2024-01-01"}]}',
        ]
        for text in bad:
            with self.subTest(text=text):
                with self.assertRaises(MalformedResponseError):
                    parse_extraction_response(text)


if __name__ == "__main__":
    unittest.main()
