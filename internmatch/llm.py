"""Gemini client wrapper, JSON decoding, and service-fault classification."""

import json
import logging
import os
import re
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

import httpx
from google import genai
from google.genai import types
from google.genai.errors import ClientError, ServerError

from .config import DEFAULT_MODEL, Settings
from .errors import ErrorKind, ServiceError

logger = logging.getLogger(__name__)

_TIMEOUT_STATUS_CODES = {408, 504}


def create_client(api_key: str | None = None) -> genai.Client:
    """Create a Gemini client."""
    api_key = api_key or os.getenv("GOOGLE_API_KEY")
    if not api_key:
        raise ValueError("GOOGLE_API_KEY environment variable not set")
    return genai.Client(api_key=api_key)


class GeminiService:
    """JSON-mode access to the generative text service.

    One instance is built per process and handed to every component that
    needs it. The semaphore caps in-flight requests so parallel analyses
    stay inside the provider's rate limit.
    """

    def __init__(
        self,
        client: genai.Client,
        model: str = DEFAULT_MODEL,
        timeout: float = 60.0,
        max_concurrency: int = 5,
    ) -> None:
        self.client = client
        self.model = model
        self.timeout = timeout
        self._semaphore = threading.Semaphore(max_concurrency)
        # one worker per slot: the semaphore is held until the worker's call returns
        self._executor = ThreadPoolExecutor(max_workers=max_concurrency, thread_name_prefix="gemini")

    @classmethod
    def from_settings(cls, settings: Settings, client: genai.Client | None = None) -> "GeminiService":
        return cls(
            client or create_client(settings.google_api_key or None),
            model=settings.model,
            timeout=settings.llm_timeout,
            max_concurrency=settings.max_concurrency,
        )

    def generate_json(
        self,
        system: str,
        prompt: str,
        temperature: float = 0.1,
        max_tokens: int = 8192,
    ) -> dict:
        """Submit one request and decode the reply as a single JSON object.

        No retries happen here; the raised ``ServiceError`` kind tells the
        caller whether another attempt is worthwhile.

        Raises:
            ServiceError: kind ServiceUnavailable, Timeout or InvalidResponse.
        """
        text = self._generate(system, prompt, temperature, max_tokens)
        try:
            data = parse_json(text)
        except ValueError as exc:
            logger.debug("Unparseable model output: %s", (text or "")[:200])
            raise ServiceError(ErrorKind.INVALID_RESPONSE, "Model response was not valid JSON", cause=exc) from exc
        if not isinstance(data, dict):
            raise ServiceError(
                ErrorKind.INVALID_RESPONSE,
                "Model response was not a JSON object",
                detail=f"got {type(data).__name__}",
            )
        return data

    def _generate(self, system: str, prompt: str, temperature: float, max_tokens: int) -> str:
        """One request under an overall deadline of ``self.timeout`` seconds.

        The deadline covers waiting for a free slot and the whole HTTP
        exchange; the httpx timeout alone only bounds each connect/read/write
        phase. An abandoned call keeps its slot until the transport gives up.
        """
        deadline = time.monotonic() + self.timeout
        if not self._semaphore.acquire(timeout=self.timeout):
            raise ServiceError(ErrorKind.TIMEOUT, f"No model slot free within {self.timeout:.0f}s")
        remaining = max(deadline - time.monotonic(), 0.001)
        config = types.GenerateContentConfig(
            system_instruction=system,
            temperature=temperature,
            max_output_tokens=max_tokens,
            response_mime_type="application/json",
            http_options=types.HttpOptions(timeout=max(int(remaining * 1000), 1)),
        )
        try:
            future = self._executor.submit(self._call, prompt, config)
        except RuntimeError:
            self._semaphore.release()
            raise
        try:
            response = future.result(timeout=remaining)
        except FutureTimeoutError as exc:
            raise ServiceError(
                ErrorKind.TIMEOUT, f"Model call exceeded {self.timeout:.0f}s", cause=exc
            ) from exc
        except httpx.TimeoutException as exc:
            raise ServiceError(
                ErrorKind.TIMEOUT, f"Model call exceeded {self.timeout:.0f}s", cause=exc
            ) from exc
        except (ServerError, ClientError) as exc:
            kind = ErrorKind.TIMEOUT if exc.code in _TIMEOUT_STATUS_CODES else ErrorKind.SERVICE_UNAVAILABLE
            logger.warning("Gemini API error %s: %s", exc.code, exc.message)
            raise ServiceError(kind, f"Model service returned HTTP {exc.code}", cause=exc) from exc
        except httpx.HTTPError as exc:
            raise ServiceError(ErrorKind.SERVICE_UNAVAILABLE, "Model service unreachable", cause=exc) from exc

        return response.text or ""

    def _call(self, prompt: str, config: types.GenerateContentConfig):
        try:
            return self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        finally:
            self._semaphore.release()


def parse_json(text: str) -> dict | list:
    """Extract and parse JSON from an LLM response that may contain markdown fences.

    Handles responses like:
        ```json\n{...}\n```
        ```\n[...]\n```
        Some text {json} more text
        Raw JSON
    """
    if not text:
        raise ValueError("Empty response from API")

    # Strip markdown code fences (```json ... ``` or ``` ... ```)
    stripped = re.sub(r"```(?:json)?\s*\n?", "", text).strip()

    try:
        return json.loads(stripped)
    except json.JSONDecodeError:
        pass

    # Outermost JSON object { ... }
    start, end = stripped.find("{"), stripped.rfind("}")
    if start != -1 and end > start:
        try:
            return json.loads(stripped[start : end + 1])
        except json.JSONDecodeError:
            pass

    match = re.search(r"\[[\s\S]*\]", stripped)
    if match:
        try:
            return json.loads(match.group())
        except json.JSONDecodeError:
            pass

    raise ValueError(f"Could not parse JSON from response: {text[:200]}")
