"""
Embedding generation for topic labels
Pattern: HTTP model endpoints via requests, retry with exponential backoff
"""

import logging
import os
import time
from typing import Any, Dict, List, Optional

import requests

from .errors import EmbeddingFailed
from .vector_math import is_finite_vector, to_float_list

logger = logging.getLogger(__name__)


class BaseEmbedder:
    """
    Common retry and validation logic for embedding providers.

    Subclasses implement `_request_embedding(text)` and return the raw vector.
    A vector is only ever returned whole; anything else raises EmbeddingFailed.
    """

    DEFAULT_MODEL = ""

    def __init__(self, model: Optional[str] = None,
                 max_retries: int = 2,
                 retry_delay: float = 0.5,
                 timeout: int = 30):
        self.model = model or self.DEFAULT_MODEL
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._session = requests.Session()

    def _request_embedding(self, text: str) -> Any:
        raise NotImplementedError

    def embed(self, text: str) -> List[float]:
        """
        Generate embedding for text.

        Raises:
            EmbeddingFailed: On empty input, exhausted retries, or an invalid vector
        """
        if not text or not text.strip():
            raise EmbeddingFailed("Cannot embed empty text")

        last_error = None
        for attempt in range(self.max_retries + 1):
            try:
                vector = self._request_embedding(text)
                break
            except (requests.RequestException, KeyError, IndexError, TypeError, ValueError) as e:
                last_error = e
                if attempt < self.max_retries:
                    delay = self.retry_delay * (2 ** attempt)
                    logger.warning(
                        f"Embedding request failed (attempt {attempt + 1}/{self.max_retries + 1}): {e}. "
                        f"Retrying in {delay}s..."
                    )
                    time.sleep(delay)
        else:
            raise EmbeddingFailed(
                f"Embedding failed after {self.max_retries + 1} attempts: {last_error}"
            ) from last_error

        if not is_finite_vector(vector):
            raise EmbeddingFailed(f"{self.model} returned an empty or non-numeric embedding")

        embedding = to_float_list(vector)
        logger.debug(f"Embedding generated with {self.model}, dimension: {len(embedding)}")
        return embedding

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """Generate embeddings for multiple texts"""
        return [self.embed(t) for t in texts]

    def close(self) -> None:
        self._session.close()


class OllamaEmbedder(BaseEmbedder):
    """
    Local embedding generation via Ollama

    Default: nomic-embed-text (768 dimensions)
    """

    DEFAULT_MODEL = "nomic-embed-text"

    def __init__(self, model: Optional[str] = None,
                 base_url: Optional[str] = None, **kwargs):
        super().__init__(model=model, **kwargs)
        self.base_url = (base_url or "http://localhost:11434").rstrip("/")

    def _request_embedding(self, text: str) -> Any:
        response = self._session.post(
            f"{self.base_url}/api/embeddings",
            json={"model": self.model, "prompt": text},
            timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()["embedding"]


class OpenAIEmbedder(BaseEmbedder):
    """
    OpenAI embeddings

    Default: text-embedding-3-small (1536 dimensions)
    """

    DEFAULT_MODEL = "text-embedding-3-small"

    def __init__(self, api_key: Optional[str] = None,
                 model: Optional[str] = None,
                 base_url: Optional[str] = None, **kwargs):
        super().__init__(model=model, **kwargs)
        self.api_key = api_key or os.getenv("OPENAI_API_KEY", "")
        if not self.api_key:
            raise ValueError("OPENAI_API_KEY required or pass api_key parameter")
        self.base_url = (base_url or "https://api.openai.com/v1").rstrip("/")
        self._session.headers.update({
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        })

    def _request_embedding(self, text: str) -> Any:
        response = self._session.post(
            f"{self.base_url}/embeddings",
            json={"model": self.model, "input": text, "encoding_format": "float"},
            timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()["data"][0]["embedding"]


EMBEDDERS = {
    "ollama": OllamaEmbedder,
    "openai": OpenAIEmbedder,
}


def create_embedder(settings: Dict[str, Any]) -> BaseEmbedder:
    """
    Build an embedder from the `embedding` config section.

    Args:
        settings: Dict with provider, model and base_url keys

    Raises:
        ValueError: Unknown provider
    """
    provider = str(settings.get("provider") or "ollama").lower()
    if provider not in EMBEDDERS:
        raise ValueError(f"Unsupported embedding provider: {provider}. Must be one of: {sorted(EMBEDDERS)}")
    kwargs = {k: settings[k] for k in ("model", "base_url") if settings.get(k)}
    if provider == "openai" and settings.get("api_key"):
        kwargs["api_key"] = settings["api_key"]
    return EMBEDDERS[provider](**kwargs)
