"""
Gemini Account Categorizer

Asks a Gemini model to label a bank account from its name and
description.

CRITICAL BOUNDARIES:
- CAN: Suggest a category and a confidence score
- CANNOT: Write anything; the caller decides whether to store the result
- MUST: Fail loudly when the reply cannot be parsed

Transport failures are retried with exponential backoff. A reply that
parses but is nonsense is not retried.
"""

import json
from typing import Any, Optional

import google.generativeai as genai
import structlog
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from finance_dashboard.config import GeminiSettings, get_settings
from finance_dashboard.models.account import (
    CategorizationRequest,
    CategorizationResult,
)
from finance_dashboard.services.categorization.interface import (
    SUGGESTED_CATEGORIES,
    AccountCategorizerInterface,
    CategorizationError,
)


logger = structlog.get_logger(__name__)


PROMPT_TEMPLATE = """You are a personal finance expert. Your task is to categorize bank accounts based on their name and description.

Here are some example categories: {categories}

Given the following account information, determine the most appropriate category and provide a confidence score. The confidence score should be a number between 0 and 1.

Account Name: {account_name}
Account Description: {account_description}

Respond with ONLY a JSON object in this exact format:
{{"category": "Savings", "confidence": 0.8}}"""


def build_prompt(request: CategorizationRequest) -> str:
    return PROMPT_TEMPLATE.format(
        categories=json.dumps(SUGGESTED_CATEGORIES),
        account_name=request.account_name,
        account_description=request.account_description or "(none)",
    )


def parse_reply(text: str) -> CategorizationResult:
    """
    Extract the JSON object from a model reply.

    Known categories are normalized to their canonical spelling and
    confidence is clamped into [0, 1].

    Raises:
        CategorizationError: If no usable JSON object is found
    """
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise CategorizationError(f"No JSON object in model reply: {text[:100]!r}")

    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise CategorizationError(f"Malformed JSON in model reply: {e}")

    category = str(data.get("category") or "").strip()
    if not category:
        raise CategorizationError("Model reply has no category")

    canonical = {label.lower(): label for label in SUGGESTED_CATEGORIES}
    category = canonical.get(category.lower(), category)

    try:
        confidence = float(data.get("confidence"))
    except (TypeError, ValueError):
        raise CategorizationError(
            f"Model reply has no numeric confidence: {data.get('confidence')!r}"
        )
    confidence = min(max(confidence, 0.0), 1.0)

    return CategorizationResult(category=category, confidence=confidence)


class GeminiAccountCategorizer(AccountCategorizerInterface):
    """Categorizer backed by Google Generative AI."""

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[Any] = None,
    ):
        """
        Args:
            settings: Gemini settings; loaded from the environment if None
            model: A ready model object exposing `generate_content_async`.
                   If None, one is configured from settings.
        """
        self._settings = settings or get_settings().gemini
        self._model = model or self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        if not self._settings.api_key:
            raise CategorizationError("GEMINI_API_KEY is not configured")
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    async def _generate(self, prompt: str) -> str:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
        ):
            with attempt:
                response = await self._model.generate_content_async(prompt)
        return response.text.strip()

    async def categorize(
        self,
        request: CategorizationRequest,
    ) -> CategorizationResult:
        prompt = build_prompt(request)
        try:
            text = await self._generate(prompt)
        except Exception as e:
            logger.error(
                "categorization_call_failed",
                account_name=request.account_name,
                error=str(e),
            )
            raise CategorizationError(f"Categorization service failed: {e}") from e

        result = parse_reply(text)
        logger.info(
            "account_categorized",
            account_name=request.account_name,
            category=result.category,
            confidence=result.confidence,
        )
        return result
