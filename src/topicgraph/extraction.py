"""
Topic label extraction via LLM APIs (OpenAI/Anthropic/Ollama)
Pattern: Configurable providers over a requests session, consistent with embeddings.py
"""

import logging
import os
import re
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import requests

from .errors import ExtractionFailed

logger = logging.getLogger(__name__)

# Returned by the model when no topic is discernible yet (e.g. only a greeting)
UNDETERMINED_LABEL = "Undetermined Subject"

Turn = Union[Tuple[str, str], Mapping[str, str]]

_QUOTES = "\"'`“”‘’«»"
_TRAILING_PUNCT = ".,;:!?…"


class LLMProvider(Enum):
    """Supported LLM providers"""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"


def normalize_turns(turns: Sequence[Turn]) -> List[Tuple[str, str]]:
    """Accept (role, content) tuples or {"role", "content"} dicts."""
    normalized = []
    for turn in turns:
        if isinstance(turn, Mapping):
            role, content = turn.get("role", ""), turn.get("content", "")
        else:
            role, content = turn
        normalized.append((str(role), str(content)))
    return normalized


def format_transcript(turns: Sequence[Turn]) -> str:
    return "\n".join(f"{role}: {content}" for role, content in normalize_turns(turns))


def clean_label(raw: str, max_words: int = 5) -> str:
    """
    Strip quotes, trailing punctuation and extra whitespace from a model label.

    Only the first line is kept and the label is truncated to max_words.
    """
    lines = [line for line in raw.strip().splitlines() if line.strip()]
    label = lines[0] if lines else ""
    label = re.sub(r"^\s*(topic\s*label|label)\s*:\s*", "", label, flags=re.IGNORECASE)
    label = label.strip().strip(_QUOTES).strip()
    label = label.rstrip(_TRAILING_PUNCT).strip().strip(_QUOTES).strip()
    words = label.split()
    return " ".join(words[:max_words])


def is_undetermined(label: str, sentinel: str = UNDETERMINED_LABEL) -> bool:
    """True if the label is the 'no topic yet' sentinel."""
    return label.strip().casefold() == sentinel.casefold()


class TopicExtractor:
    """
    LLM-powered topic label extraction

    Providers:
    - OpenAI (gpt-4o-mini)
    - Anthropic (claude-3-haiku)
    - Ollama (llama3.2, local)

    Usage:
        extractor = TopicExtractor(provider="ollama")
        label = extractor.extract([("user", "How do logarithms work?")])
    """

    DEFAULT_MODELS = {
        LLMProvider.OPENAI: "gpt-4o-mini",
        LLMProvider.ANTHROPIC: "claude-3-haiku-20240307",
        LLMProvider.OLLAMA: "llama3.2"
    }

    DEFAULT_BASE_URLS = {
        LLMProvider.OPENAI: "https://api.openai.com/v1",
        LLMProvider.ANTHROPIC: "https://api.anthropic.com/v1",
        LLMProvider.OLLAMA: "http://localhost:11434"
    }

    SYSTEM_PROMPT = (
        "You label study conversations with a short topic name. "
        "Answer with the label only."
    )

    def __init__(self,
                 provider: Union[str, LLMProvider] = LLMProvider.OLLAMA,
                 api_key: Optional[str] = None,
                 base_url: Optional[str] = None,
                 model: Optional[str] = None,
                 temperature: float = 0.2,
                 max_tokens: int = 32,
                 max_words: int = 5,
                 timeout: int = 60,
                 sentinel: str = UNDETERMINED_LABEL):
        """
        Args:
            provider: LLM provider (openai, anthropic, ollama)
            api_key: API key (or OPENAI_API_KEY/ANTHROPIC_API_KEY env var)
            base_url: API endpoint (optional, uses defaults)
            model: Model name (optional, uses defaults)
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response
            max_words: Labels are truncated to this many words
            timeout: HTTP timeout in seconds
            sentinel: Label the model returns when no topic is discernible
        """
        if isinstance(provider, str):
            provider = LLMProvider(provider.lower())
        self.provider = provider

        if api_key is None:
            if self.provider == LLMProvider.OPENAI:
                api_key = os.getenv("OPENAI_API_KEY", "")
            elif self.provider == LLMProvider.ANTHROPIC:
                api_key = os.getenv("ANTHROPIC_API_KEY", "")
            else:
                api_key = ""

        if self.provider in (LLMProvider.OPENAI, LLMProvider.ANTHROPIC) and not api_key:
            raise ValueError(
                f"{self.provider.value.upper()}_API_KEY required or pass api_key parameter"
            )

        self.api_key = api_key
        self.base_url = (base_url or self.DEFAULT_BASE_URLS[self.provider]).rstrip("/")
        self.model = model or self.DEFAULT_MODELS[self.provider]
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_words = max_words
        self.timeout = timeout
        self.sentinel = sentinel

        self._session = requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        if self.provider == LLMProvider.OPENAI:
            self._session.headers["Authorization"] = f"Bearer {self.api_key}"
        elif self.provider == LLMProvider.ANTHROPIC:
            self._session.headers.update({
                "x-api-key": self.api_key,
                "anthropic-version": "2023-06-01"
            })

    def build_prompt(self, turns: Sequence[Turn]) -> str:
        return f"""Identify the main topic of this study conversation.
Reply with a label of 2 to 5 words in the language the user writes in.
No quotation marks, no trailing punctuation, no explanation.
If no topic can be identified yet, reply exactly: {self.sentinel}

Conversation:
{format_transcript(turns)}

Topic label:"""

    def extract(self, turns: Sequence[Turn]) -> str:
        """
        Extract a short topic label from a transcript.

        Args:
            turns: Ordered (role, content) pairs

        Returns:
            Cleaned label, or the sentinel when no topic is discernible

        Raises:
            ExtractionFailed: On service errors, bad payloads, or an empty label
        """
        if not turns:
            raise ExtractionFailed("Cannot extract a topic from an empty transcript")

        prompt = self.build_prompt(turns)
        try:
            if self.provider == LLMProvider.OPENAI:
                raw = self._complete_openai(prompt)
            elif self.provider == LLMProvider.ANTHROPIC:
                raw = self._complete_anthropic(prompt)
            else:
                raw = self._complete_ollama(prompt)
        except (requests.RequestException, KeyError, IndexError, TypeError, ValueError) as e:
            raise ExtractionFailed(f"{self.provider.value} topic extraction failed: {e}") from e

        label = clean_label(raw, self.max_words)
        if not label:
            raise ExtractionFailed(f"{self.model} returned an empty label")

        logger.info(f"Extracted topic label: {label!r}")
        return label

    def is_undetermined(self, label: str) -> bool:
        return is_undetermined(label, self.sentinel)

    def _complete_openai(self, prompt: str) -> str:
        response = self._session.post(
            f"{self.base_url}/chat/completions",
            json={
                "model": self.model,
                "messages": [
                    {"role": "system", "content": self.SYSTEM_PROMPT},
                    {"role": "user", "content": prompt}
                ],
                "temperature": self.temperature,
                "max_tokens": self.max_tokens
            },
            timeout=self.timeout
        )
        response.raise_for_status()
        data: Dict[str, Any] = response.json()
        return data["choices"][0]["message"]["content"]

    def _complete_anthropic(self, prompt: str) -> str:
        response = self._session.post(
            f"{self.base_url}/messages",
            json={
                "model": self.model,
                "max_tokens": self.max_tokens,
                "temperature": self.temperature,
                "system": self.SYSTEM_PROMPT,
                "messages": [{"role": "user", "content": prompt}]
            },
            timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()["content"][0]["text"]

    def _complete_ollama(self, prompt: str) -> str:
        response = self._session.post(
            f"{self.base_url}/api/generate",
            json={
                "model": self.model,
                "prompt": prompt,
                "stream": False,
                "options": {
                    "temperature": self.temperature,
                    "num_predict": self.max_tokens
                }
            },
            timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()["response"]

    def close(self) -> None:
        self._session.close()


def create_extractor(settings: Dict[str, Any]) -> TopicExtractor:
    """Build a TopicExtractor from the `extraction` config section."""
    kwargs = {k: settings[k] for k in ("model", "base_url", "api_key") if settings.get(k)}
    return TopicExtractor(provider=settings.get("provider") or "ollama", **kwargs)
