import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import aiohttp

from config.settings import Settings
from models.schemas import AnalysisRecord
from utils.logger import get_logger

logger = get_logger(__name__)

PROMPT_TEMPLATE = """You are a helpful cybersecurity assistant. Analyze the following file data and provide a brief, factual interpretation of potential risks. Focus ONLY on the provided data. Do not go out of context. Do not provide disclaimers about not being a real antivirus. Be concise. Your response should be a single paragraph.

File Name: {filename}
File Size: {size} bytes
File Type Guess: {file_type_guess}
MD5: {md5}
SHA1: {sha1}
SHA256: {sha256}
Matched known malware hash: {hash_match_malware}
Extracted Strings (sample): {strings_sample}

Based on this data, what is your brief interpretation?"""

TEST_API_KEY_VALID = "TEST_API_KEY_VALID"
TEST_API_KEY_ERROR = "TEST_API_KEY_ERROR"

ANTHROPIC_VERSION = "2023-06-01"


class InterpretationUnavailable(RuntimeError):
    """The advisory service could not produce an interpretation."""


@dataclass(frozen=True)
class InterpretationOutcome:
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class InterpretationBackend(Protocol):
    async def complete(self, prompt: str) -> str:
        ...


class RiskAssessmentBackend:
    """Canned interpretation carrying a qualitative risk judgment."""

    RESPONSE = (
        "Mocked Claude AI Interpretation: This file shows characteristics potentially "
        "indicative of unwanted software due to specific string patterns and hash match. "
        "Potential risk: Medium."
    )

    async def complete(self, prompt: str) -> str:
        logger.info("Simulating successful Claude API call")
        return self.RESPONSE


class FailingBackend:
    """Always fails, as an unreachable advisory service would."""

    ERROR = "Mocked Claude AI Error: Unable to connect to service. Simulated API failure."

    async def complete(self, prompt: str) -> str:
        logger.info("Simulating Claude API failure")
        raise InterpretationUnavailable(self.ERROR)


class DefaultBackend:
    """Used when no API key selects another behaviour."""

    RESPONSE = "Mocked Claude AI Interpretation: Default response. File data processed in mock mode."

    async def complete(self, prompt: str) -> str:
        logger.info("Returning default mocked Claude response")
        return self.RESPONSE


class ClaudeApiBackend:
    """Sends the prompt to the Anthropic Messages API."""

    def __init__(
        self,
        *,
        api_key: str,
        endpoint: str,
        model: str,
        max_tokens: int = 300,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._endpoint = endpoint
        self._model = model
        self._max_tokens = max_tokens
        self._headers = {
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    def _build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }

    async def complete(self, prompt: str) -> str:
        payload = self._build_payload(prompt)

        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.post(self._endpoint, headers=self._headers, json=payload) as response:
                    if response.status != 200:
                        body = await response.text()
                        logger.error(
                            "Claude API request failed | status=%s | body=%s",
                            response.status,
                            body,
                        )
                        raise InterpretationUnavailable(
                            f"Claude API request failed with status {response.status}"
                        )

                    try:
                        data = await response.json(content_type=None)
                    except (aiohttp.ContentTypeError, ValueError) as error:
                        raise InterpretationUnavailable("Unable to parse Claude API response") from error
        except asyncio.TimeoutError as error:
            logger.error("Claude API request timed out | endpoint=%s", self._endpoint)
            raise InterpretationUnavailable("Claude API request timed out") from error
        except aiohttp.ClientError as error:
            logger.error("Claude API connection error | endpoint=%s | error=%s", self._endpoint, error)
            raise InterpretationUnavailable(f"Unable to reach Claude API: {error}") from error

        return self._extract_text(data)

    def _extract_text(self, data: Any) -> str:
        if not isinstance(data, dict):
            raise InterpretationUnavailable("Unexpected Claude API response structure")

        error = data.get("error")
        if isinstance(error, dict):
            raise InterpretationUnavailable(
                f"{error.get('type', 'api_error')}: {error.get('message', 'unknown error')}"
            )

        blocks = data.get("content") or []
        text = "".join(
            block.get("text", "")
            for block in blocks
            if isinstance(block, dict) and block.get("type") == "text"
        ).strip()

        if not text:
            raise InterpretationUnavailable("Claude API returned no text content")
        return text


def build_backend(settings: Settings) -> InterpretationBackend:
    """Pick the interpretation backend the configured API key asks for."""
    api_key = settings.CLAUDE_API_KEY

    if api_key == TEST_API_KEY_VALID:
        return RiskAssessmentBackend()
    if api_key == TEST_API_KEY_ERROR:
        return FailingBackend()
    if settings.CLAUDE_LIVE_REQUESTS and api_key:
        return ClaudeApiBackend(
            api_key=api_key,
            endpoint=settings.CLAUDE_API_ENDPOINT,
            model=settings.CLAUDE_MODEL,
            max_tokens=settings.CLAUDE_MAX_TOKENS,
            timeout_seconds=settings.CLAUDE_TIMEOUT_SECONDS,
        )
    return DefaultBackend()


def format_prompt(record: AnalysisRecord) -> str:
    return PROMPT_TEMPLATE.format(
        filename=record.filename,
        size=record.size,
        file_type_guess=record.static_analysis.file_type_guess,
        md5=record.hashes.md5,
        sha1=record.hashes.sha1,
        sha256=record.hashes.sha256,
        hash_match_malware=str(record.hash_match_malware).lower(),
        strings_sample=", ".join(record.static_analysis.extracted_strings),
    )


class InterpretationService:
    """
    Asks the advisory backend for a risk interpretation of a preliminary record.

    Backend failures are returned as an outcome carrying the diagnostic rather
    than raised, so callers can still deliver the rest of the analysis.
    """

    def __init__(self, backend: InterpretationBackend) -> None:
        self.backend = backend

    @classmethod
    def from_settings(cls, settings: Settings) -> "InterpretationService":
        backend = build_backend(settings)
        logger.info("Interpretation backend selected | backend=%s", type(backend).__name__)
        return cls(backend)

    async def interpret(self, record: AnalysisRecord) -> InterpretationOutcome:
        prompt = format_prompt(record)
        logger.debug("Claude prompt prepared | filename=%s\n%s", record.filename, prompt)

        try:
            text = await self.backend.complete(prompt)
        except InterpretationUnavailable as error:
            logger.warning(
                "Interpretation unavailable | filename=%s | error=%s",
                record.filename,
                error,
            )
            return InterpretationOutcome(error=str(error))

        return InterpretationOutcome(text=text)
