"""Language model client that turns form text into a structured analysis."""

import json
import re
from functools import lru_cache
from typing import Any, List

import anthropic
from anthropic import AsyncAnthropic
from pydantic import ValidationError as PydanticValidationError

from ...infrastructure.config.settings import get_settings
from ...infrastructure.logging import get_logger
from ..common.exceptions import MalformedModelOutputError, ModelUnavailableError
from .prompts import (
    STRUCTURING_SYSTEM_PROMPT,
    STRUCTURING_USER_TEMPLATE,
    SUMMARY_INSTRUCTIONS,
    SUMMARY_SYSTEM_PROMPT,
    SUMMARY_USER_TEMPLATE,
)
from .schemas import QA_BLOCK_LIST, AnalysisOutcome, QABlock
from .summary import clean_summary

logger = get_logger(__name__)

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Remove a Markdown code fence wrapped around the whole response."""
    stripped = text.strip()
    match = _CODE_FENCE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def parse_structured_result(text: str) -> List[QABlock]:
    """Parse the structuring response into QA blocks.

    Raises:
        MalformedModelOutputError: If the text is not a non-empty JSON array
            of well-formed QA blocks
    """
    payload = strip_code_fence(text)
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise MalformedModelOutputError(f"Model returned invalid JSON: {e.msg}") from e

    if not isinstance(data, list):
        raise MalformedModelOutputError("Model output root must be a JSON array")
    if not data:
        raise MalformedModelOutputError("Model returned no question and answer blocks")

    try:
        return QA_BLOCK_LIST.validate_python(data)
    except PydanticValidationError as e:
        raise MalformedModelOutputError(f"Model returned malformed blocks: {e.error_count()} validation errors") from e


class AnalysisClient:
    """Runs the two-request analysis against the Anthropic Messages API.

    The first request extracts QA blocks from the form text with low
    temperature; the second writes a prose summary from those blocks. The
    SDK's own retries are disabled, so a failure surfaces on the first
    attempt and the caller decides whether to run again.
    """

    def __init__(
        self,
        client: Any,
        model: str,
        analysis_temperature: float = 0.2,
        analysis_max_tokens: int = 4096,
        summary_temperature: float = 0.5,
        summary_max_tokens: int = 1024,
    ):
        self.client = client
        self.model = model
        self.analysis_temperature = analysis_temperature
        self.analysis_max_tokens = analysis_max_tokens
        self.summary_temperature = summary_temperature
        self.summary_max_tokens = summary_max_tokens

    @classmethod
    def from_settings(cls, settings) -> "AnalysisClient":
        sdk_client = AsyncAnthropic(
            api_key=settings.ANTHROPIC_API_KEY,
            timeout=settings.ANTHROPIC_TIMEOUT_SECONDS,
            max_retries=0,
        )
        return cls(
            client=sdk_client,
            model=settings.ANTHROPIC_MODEL,
            analysis_temperature=settings.ANALYSIS_TEMPERATURE,
            analysis_max_tokens=settings.ANALYSIS_MAX_TOKENS,
            summary_temperature=settings.SUMMARY_TEMPERATURE,
            summary_max_tokens=settings.SUMMARY_MAX_TOKENS,
        )

    async def analyse(self, text: str) -> AnalysisOutcome:
        """Analyse extracted form text.

        Args:
            text: Non-empty text extracted from the uploaded document

        Returns:
            The parsed QA blocks and the cleaned summary

        Raises:
            ModelUnavailableError: On any SDK transport, auth or status error
            MalformedModelOutputError: If the structuring response cannot be parsed
        """
        raw = await self._complete(
            system=STRUCTURING_SYSTEM_PROMPT,
            prompt=STRUCTURING_USER_TEMPLATE.format(text=text),
            temperature=self.analysis_temperature,
            max_tokens=self.analysis_max_tokens,
        )
        blocks = parse_structured_result(raw)
        logger.info("Parsed structured analysis", extra={"block_count": len(blocks)})

        rendered = json.dumps([block.model_dump() for block in blocks], indent=2, ensure_ascii=False)
        summary = await self._complete(
            system=SUMMARY_SYSTEM_PROMPT,
            prompt=SUMMARY_USER_TEMPLATE.format(instructions=SUMMARY_INSTRUCTIONS, analysis=rendered),
            temperature=self.summary_temperature,
            max_tokens=self.summary_max_tokens,
        )

        return AnalysisOutcome(structured_result=blocks, summary=clean_summary(summary))

    async def _complete(self, system: str, prompt: str, temperature: float, max_tokens: int) -> str:
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system,
                messages=[{"role": "user", "content": [{"type": "text", "text": prompt}]}],
            )
        except anthropic.APIError as e:
            logger.error("Model request failed", extra={"error_type": type(e).__name__, "error": str(e)})
            raise ModelUnavailableError(f"Language model request failed: {type(e).__name__}") from e

        return "".join(getattr(block, "text", "") for block in response.content if getattr(block, "type", None) == "text")

    async def aclose(self) -> None:
        await self.client.close()


@lru_cache
def get_analysis_client() -> AnalysisClient:
    """Get the process-wide analysis client."""
    return AnalysisClient.from_settings(get_settings())
