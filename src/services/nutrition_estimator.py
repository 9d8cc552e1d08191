"""
Nutrition Estimator - external service that estimates recipe nutrition.

The estimator is called with a recipe name and an ingredient summary such
as "500g Tomato; 1unit Onion" and returns totals for the whole recipe.
Any failure (HTTP error, timeout, unusable answer) is an EstimatorError;
callers treat failures and slowness alike.

Usage:
    from src.services.nutrition_estimator import get_default_estimator

    estimator = get_default_estimator()  # None when not configured
    if estimator:
        result = estimator.estimate("Tomato Soup", "500g Tomato; 1unit Onion")
        print(result.calories)
"""

import json
import logging
import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from src.services.exceptions import EstimatorError
from src.services.logging_utils import get_service_logger, log_operation
from src.utils.config import get_config

logger = get_service_logger(__name__)

# Accepted payload keys -> NutritionResult field
_FIELD_ALIASES = {
    "calories": ("calories",),
    "protein_grams": ("proteinGrams", "protein_grams"),
    "fat_grams": ("fatGrams", "fat_grams"),
    "carbohydrate_grams": ("carbohydrateGrams", "carbohydrate_grams"),
}

SYSTEM_PROMPT = "You are a nutritional analysis expert. Reply with a single JSON object."

USER_PROMPT_TEMPLATE = """Based on the recipe named '{recipe_name}' with the following ingredients and their quantities:
{ingredient_summary}

Provide an estimated nutritional analysis for the ENTIRE RECIPE as described.
Return a JSON object with exactly these keys:
- "calories": total calories (number)
- "proteinGrams": total protein in grams (number)
- "fatGrams": total fat in grams (number)
- "carbohydrateGrams": total carbohydrates in grams (number)
- "disclaimer": a brief note that these are estimates and actual values vary
"""


@dataclass(frozen=True)
class NutritionResult:
    """Estimated nutrition totals for a whole recipe."""

    calories: float
    protein_grams: float
    fat_grams: float
    carbohydrate_grams: float
    disclaimer: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "NutritionResult":
        """
        Build a result from an estimator payload.

        Accepts camelCase or snake_case keys. All four totals must be
        present, numeric and finite; a partial payload is rejected.

        Raises:
            EstimatorError: If the payload is incomplete or malformed
        """
        if not isinstance(data, dict):
            raise EstimatorError(f"expected a JSON object, got {type(data).__name__}")

        values = {}
        for field_name, keys in _FIELD_ALIASES.items():
            raw = next((data[k] for k in keys if k in data), None)
            if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                raise EstimatorError(f"missing or non-numeric '{keys[0]}' in estimate")
            if not math.isfinite(raw) or raw < 0:
                raise EstimatorError(f"invalid value for '{keys[0]}': {raw}")
            values[field_name] = float(raw)

        disclaimer = data.get("disclaimer")
        if disclaimer is not None and not isinstance(disclaimer, str):
            disclaimer = str(disclaimer)
        return cls(disclaimer=disclaimer or None, **values)

    def to_dict(self) -> Dict[str, Any]:
        """Stored form; the disclaimer key is omitted when there is none."""
        result = {
            "calories": self.calories,
            "proteinGrams": self.protein_grams,
            "fatGrams": self.fat_grams,
            "carbohydrateGrams": self.carbohydrate_grams,
        }
        if self.disclaimer is not None:
            result["disclaimer"] = self.disclaimer
        return result


class Estimator(ABC):
    """Nutrition estimation capability."""

    @abstractmethod
    def estimate(self, recipe_name: str, ingredient_summary: str) -> NutritionResult:
        """
        Estimate nutrition for a recipe.

        Raises:
            EstimatorError: On any failure
        """


def strip_markdown_json(content: str) -> str:
    """
    Remove a ```json ... ``` fence around a model reply, if present.

    Example:
        >>> strip_markdown_json('```json\\n{"a": 1}\\n```')
        '{"a": 1}'
    """
    text = content.strip()
    match = re.match(r"^```(?:json)?\s*(.*?)\s*```$", text, re.DOTALL | re.IGNORECASE)
    return match.group(1) if match else text


class ChatCompletionsEstimator(Estimator):
    """
    Estimator backed by an OpenAI-compatible /chat/completions endpoint.

    Attributes:
        api_url: Base URL (e.g. "https://api.openai.com/v1")
        model: Model name sent with every request
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        api_url: str,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        if api_key:
            self._session.headers.update({"Authorization": f"Bearer {api_key}"})

    def _build_payload(self, recipe_name: str, ingredient_summary: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "temperature": 0.2,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": USER_PROMPT_TEMPLATE.format(
                        recipe_name=recipe_name, ingredient_summary=ingredient_summary
                    ),
                },
            ],
        }

    def estimate(self, recipe_name: str, ingredient_summary: str) -> NutritionResult:
        url = f"{self.api_url}/chat/completions"
        try:
            response = self._session.post(
                url,
                json=self._build_payload(recipe_name, ingredient_summary),
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            raise EstimatorError(f"request to {url} failed: {e}", e)
        except ValueError as e:
            raise EstimatorError("response body is not JSON", e)

        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise EstimatorError("response has no message content", e)
        if not isinstance(content, str) or not content.strip():
            raise EstimatorError("model returned an empty reply")

        try:
            payload = json.loads(strip_markdown_json(content))
        except ValueError as e:
            raise EstimatorError("model reply is not valid JSON", e)

        result = NutritionResult.from_dict(payload)
        log_operation(
            logger,
            operation="estimate_nutrition",
            outcome="success",
            level=logging.DEBUG,
            recipe_name=recipe_name,
            calories=result.calories,
        )
        return result


def get_default_estimator() -> Optional[Estimator]:
    """
    Build the estimator described by the configuration.

    Returns:
        ChatCompletionsEstimator, or None when NUTRITION_API_URL is unset
    """
    config = get_config()
    if not config.enrichment_enabled:
        log_operation(
            logger,
            operation="get_default_estimator",
            outcome="disabled",
            reason="NUTRITION_API_URL not set",
        )
        return None
    return ChatCompletionsEstimator(
        api_url=config.nutrition_api_url,
        api_key=config.nutrition_api_key,
        model=config.nutrition_model,
        timeout=config.nutrition_timeout,
    )
