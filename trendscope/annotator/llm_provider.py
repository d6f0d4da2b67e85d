"""
Annotation provider interface and implementations.

An annotation provider labels each headline with a short topic keyword and
a one-sentence rationale, and explains why a keyword is trending. Output of
a language model is never assumed to be stable across calls; callers must
tolerate missing, short or failed batches.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import BaseModel, ValidationError

from trendscope.core.logging import get_logger
from trendscope.core.settings import Settings, get_settings
from trendscope.trender.models import Annotation, RawHeadline

logger = get_logger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


class AnnotationError(Exception):
    """The provider could not produce annotations."""


class AnnotationItem(BaseModel):
    keyword: str
    summary: Optional[str] = None


class AnnotationBatch(BaseModel):
    items: List[AnnotationItem]


class AnnotationProvider(ABC):
    """Abstract base class for annotation providers."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identification name."""
        pass

    @property
    def is_configured(self) -> bool:
        """Whether the provider can be called at all."""
        return True

    @abstractmethod
    async def extract(self, headlines: Sequence[RawHeadline], region: str) -> List[Annotation]:
        """
        Annotate every headline in one batched call.

        Returns annotations in headline order. The list may be shorter than
        the input; callers fill the gaps.

        Raises:
            AnnotationError: the batch failed as a whole
        """
        pass

    @abstractmethod
    async def summarize(self, keyword: str, headlines: Sequence[str], region: str) -> str:
        """One-sentence explanation of why ``keyword`` is trending."""
        pass

    async def aclose(self) -> None:
        """Release any HTTP resources held by the provider."""
        pass


class NoLLMProvider(AnnotationProvider):
    """
    Provider used when no model is configured.

    The pipeline checks ``is_configured`` and skips extraction, so every
    headline gets a locally derived label.
    """

    @property
    def provider_name(self) -> str:
        return "NoLLM"

    @property
    def is_configured(self) -> bool:
        return False

    async def extract(self, headlines: Sequence[RawHeadline], region: str) -> List[Annotation]:
        raise AnnotationError("No annotation provider configured")

    async def summarize(self, keyword: str, headlines: Sequence[str], region: str) -> str:
        raise AnnotationError("No annotation provider configured")


class GeminiProvider(AnnotationProvider):
    """Gemini ``generateContent`` over REST."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        language: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.api_key = api_key
        self.model = model
        self.language = language
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    @property
    def provider_name(self) -> str:
        return f"Gemini:{self.model}"

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def aclose(self) -> None:
        await self.client.aclose()

    def _language_rule(self) -> str:
        if self.language:
            return f"Write every keyword and summary in {self.language}."
        return "Write every keyword and summary in the same language as its headline."

    def build_extraction_prompt(self, headlines: Sequence[RawHeadline], region: str) -> str:
        numbered = "\n".join(f"{i + 1}. {h.title}" for i, h in enumerate(headlines))
        return (
            "Extract the main topic keyword (1-3 words) from each of these news headlines, "
            "and give a one-sentence summary of why it is in the news.\n"
            "Return exactly one item per headline, in the same order. "
            "Headlines about the same subject must get the identical keyword.\n"
            f"{self._language_rule()}\n\n"
            f"Target country: {region}\n\n"
            f"Headlines:\n{numbered}"
        )

    def build_summary_prompt(self, keyword: str, headlines: Sequence[str]) -> str:
        joined = "\n".join(headlines)
        language = self.language or "the language of the headlines"
        return (
            f"Keyword: {keyword}\n"
            f"Headlines:\n{joined}\n\n"
            f'Based on these headlines, explain why "{keyword}" is trending right now.\n'
            f"Provide a concise, one-sentence explanation in {language}."
        )

    async def _generate(self, prompt: str, response_schema: Optional[Dict[str, Any]] = None) -> str:
        """Call generateContent and return the first candidate's text."""
        body: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if response_schema:
            body["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            }

        url = f"{GEMINI_BASE_URL}/{self.model}:generateContent"
        try:
            response = await self.client.post(url, params={"key": self.api_key}, json=body)
            response.raise_for_status()
            payload = response.json()
            return payload["candidates"][0]["content"]["parts"][0]["text"]
        except httpx.HTTPStatusError as e:
            raise AnnotationError(f"Gemini returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise AnnotationError(f"Gemini request failed: {type(e).__name__}") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise AnnotationError(f"Unexpected Gemini response shape: {e}") from e

    async def extract(self, headlines: Sequence[RawHeadline], region: str) -> List[Annotation]:
        if not headlines:
            return []

        schema = {
            "type": "OBJECT",
            "properties": {
                "items": {
                    "type": "ARRAY",
                    "items": {
                        "type": "OBJECT",
                        "properties": {
                            "keyword": {"type": "STRING"},
                            "summary": {"type": "STRING"},
                        },
                        "required": ["keyword"],
                    },
                }
            },
            "required": ["items"],
        }

        text = await self._generate(self.build_extraction_prompt(headlines, region), schema)

        try:
            batch = AnnotationBatch.model_validate(json.loads(text))
        except (json.JSONDecodeError, ValidationError) as e:
            raise AnnotationError(f"Invalid annotation payload: {e}") from e

        if len(batch.items) != len(headlines):
            logger.warning(
                f"Annotator returned {len(batch.items)} items for {len(headlines)} headlines",
                extra={"region": region, "provider": self.provider_name}
            )

        return [
            Annotation(keyword=item.keyword.strip(), summary=(item.summary or None))
            for item in batch.items[:len(headlines)]
        ]

    async def summarize(self, keyword: str, headlines: Sequence[str], region: str) -> str:
        text = await self._generate(self.build_summary_prompt(keyword, headlines))
        return text.strip()


class AnnotationProviderFactory:
    """Factory for creating annotation provider instances."""

    @classmethod
    def create_provider(cls, config: Optional[Settings] = None) -> AnnotationProvider:
        """Gemini when an API key is configured, NoLLM otherwise."""
        config = config or get_settings()

        if not config.gemini_api_key:
            logger.info("No GEMINI_API_KEY configured, keyword extraction disabled")
            return NoLLMProvider()

        return GeminiProvider(
            api_key=config.gemini_api_key,
            model=config.gemini_model,
            language=config.annotation_language,
            timeout=config.annotation_timeout_seconds,
        )
