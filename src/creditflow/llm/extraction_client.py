"""Resilient statement extraction using the google-genai SDK."""
import asyncio
import json
import re
import socket
import ssl
from typing import Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import ValidationError as PydanticValidationError

from creditflow.config.manager import require_api_key
from creditflow.config.settings import get_settings
from creditflow.llm.models import ExtractionResponse, ExtractionResult
from creditflow.llm.prompts import EXTRACTION_PROMPT, build_generation_config
from creditflow.utils.exceptions import (
    AuthError,
    ExtractionError,
    MalformedResponseError,
    SafetyBlockedError,
    TransientError,
    UnknownExtractionError,
    ValidationError,
)
from creditflow.utils.logger import get_logger
from creditflow.utils.retry import RetryPolicy, Sleep, run_with_retry

logger = get_logger()

# Transport-level failures that are safe to retry
TRANSPORT_ERRORS = (
    ConnectionError,
    TimeoutError,
    asyncio.TimeoutError,
    socket.timeout,
    ssl.SSLError,
    httpx.TransportError,
)

AUTH_STATUSES = {"UNAUTHENTICATED", "PERMISSION_DENIED"}
TRANSIENT_STATUSES = {"RESOURCE_EXHAUSTED", "UNAVAILABLE", "DEADLINE_EXCEEDED", "INTERNAL"}
TRANSIENT_CODES = {429, 500, 502, 503, 504}
SAFETY_REASONS = {"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"}

SAFETY_MESSAGE = "The analysis was blocked by the service's safety policies. Try a different document."


def classify_error(error: BaseException) -> ExtractionError:
    """Map any exception raised during an attempt onto the error taxonomy."""
    if isinstance(error, ExtractionError):
        return error

    if isinstance(error, genai_errors.APIError):
        code = getattr(error, "code", None)
        status = (getattr(error, "status", None) or "").upper()
        message = getattr(error, "message", None) or str(error)

        if code in (401, 403) or status in AUTH_STATUSES or "API KEY" in message.upper():
            return AuthError(
                f"The Gemini API rejected the configured credentials ({code} {status}). "
                "Check that GEMINI_API_KEY is valid and enabled for the Generative Language API."
            )
        if "SAFETY" in message.upper():
            return SafetyBlockedError(SAFETY_MESSAGE)
        if code in TRANSIENT_CODES or status in TRANSIENT_STATUSES:
            return TransientError(f"Gemini service is temporarily unavailable ({code} {status}): {message}")
        return UnknownExtractionError(message)

    if isinstance(error, TRANSPORT_ERRORS):
        return TransientError(f"Network error while contacting Gemini: {error}")

    if "SAFETY" in str(error).upper():
        return SafetyBlockedError(SAFETY_MESSAGE)

    return UnknownExtractionError(str(error) or error.__class__.__name__)


def check_media_type(media_type: str) -> str:
    """Only images and PDF documents are accepted."""
    media_type = (media_type or "").strip().lower()
    if media_type == "application/pdf" or (media_type.startswith("image/") and len(media_type) > 6):
        return media_type
    raise ValidationError(f"Unsupported document type '{media_type}'. Upload an image or a PDF.")


def _enum_name(value) -> str:
    return str(getattr(value, "value", value) or "").upper()


def check_safety(response) -> None:
    """Raise SafetyBlockedError when the response signals a policy block."""
    feedback = getattr(response, "prompt_feedback", None)
    if feedback is not None and getattr(feedback, "block_reason", None):
        raise SafetyBlockedError(SAFETY_MESSAGE)

    for candidate in getattr(response, "candidates", None) or []:
        if _enum_name(getattr(candidate, "finish_reason", None)) in SAFETY_REASONS:
            raise SafetyBlockedError(SAFETY_MESSAGE)


def _loads_lenient(text: str):
    """Parse JSON, retrying once without trailing commas if the text is invalid."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        # Remove trailing commas before a closing bracket or brace
        return json.loads(re.sub(r",\s*([\]}])", r"\1", text))


def parse_extraction_response(text: Optional[str]) -> ExtractionResult:
    """Parse and validate the structured response text."""
    if not text or not text.strip():
        raise MalformedResponseError("Gemini returned an empty response.")

    cleaned = text.strip()

    # Strip markdown code blocks (```json ... ```)
    if cleaned.startswith("```"):
        cleaned = re.sub(r"^(```json|```)", "", cleaned).strip()
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3].strip()

    try:
        data = _loads_lenient(cleaned)
    except json.JSONDecodeError as e:
        logger.debug(f"Response text: {text[:500]}")
        raise MalformedResponseError(f"Gemini returned invalid JSON: {e}") from e

    if not isinstance(data, dict) or "clientName" not in data or not isinstance(data.get("entries"), list):
        raise MalformedResponseError(
            "The AI response did not contain the expected structure (clientName and entries)."
        )

    try:
        validated = ExtractionResponse(**data)
    except PydanticValidationError as e:
        raise MalformedResponseError(f"Gemini response does not match expected schema: {e}") from e

    return validated.to_result()


class ExtractionClient:
    """Extracts credit entries from a statement document with retries."""

    def __init__(
        self,
        api_key: Optional[str],
        model_name: Optional[str] = None,
        policy: Optional[RetryPolicy] = None,
        temperature: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
        client=None,
    ):
        """
        Initialize extraction client.

        Args:
            api_key: Gemini API key; validated on every call
            model_name: Gemini model; defaults to the configured model
            policy: Retry policy; defaults to the configured policy
            temperature: Sampling temperature for the extraction call
            sleep: Awaitable used for backoff waits
            client: Pre-built genai client (tests inject a fake here)
        """
        settings = get_settings()
        self.api_key = api_key
        self.model_name = model_name or settings.llm_model_name
        self.policy = policy or settings.retry_policy
        self.temperature = settings.llm_temperature if temperature is None else temperature
        self.sleep = sleep
        self._client = client

    def _get_client(self, api_key: str):
        if self._client is None:
            logger.debug(f"Creating Gemini client (key starts with {api_key[:4]}...)")
            self._client = genai.Client(api_key=api_key)
        return self._client

    async def extract(
        self,
        document: bytes,
        media_type: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ExtractionResult:
        """
        Extract the account holder name and credit entries from a document.

        Args:
            document: Raw bytes of the statement image or PDF
            media_type: Declared media type (image/* or application/pdf)
            cancel_event: When set, no further attempt is started

        Returns:
            Validated ExtractionResult

        Raises:
            ValidationError: unsupported media type or empty document
            ExtractionError: classified failure (see ErrorKind)
        """
        media_type = check_media_type(media_type)
        if not document:
            raise ValidationError("The selected document is empty.")

        api_key = require_api_key(self.api_key)
        client = self._get_client(api_key)

        contents = [
            types.Part.from_bytes(data=document, mime_type=media_type),
            EXTRACTION_PROMPT,
        ]
        config = build_generation_config(self.temperature)

        async def attempt() -> ExtractionResult:
            response = await client.aio.models.generate_content(
                model=self.model_name,
                contents=contents,
                config=config
            )
            check_safety(response)
            return parse_extraction_response(getattr(response, "text", None))

        logger.info(f"Analyzing {media_type} document ({len(document) // 1024} KB) with {self.model_name}")
        result = await run_with_retry(
            attempt,
            classify_error,
            policy=self.policy,
            sleep=self.sleep,
            cancel_event=cancel_event,
            name="statement extraction"
        )
        logger.info(f"Extracted {len(result.entries)} credit entries")
        return result
