from __future__ import annotations

import os
import random
import re
import time
from typing import Any, List, Optional

from openai import OpenAI, OpenAIError

DEFAULT_EMBED_MODEL = "text-embedding-3-small"
DEFAULT_DIM = 1536


def parse_retry_seconds(message: str) -> float:
    # Một số lỗi có thể chứa: "Please try again in 38.34s"
    m = re.search(r"(retry|try again) in\s+([0-9.]+)\s*s", message, re.IGNORECASE)
    if m:
        return float(m.group(2))

    # Hoặc: "retry_after: 38"
    m = re.search(r"retry[_-]?after[:=]\s*([0-9.]+)", message, re.IGNORECASE)
    if m:
        return float(m.group(1))

    return 30.0


def retry_after_seconds(err: Exception) -> Optional[float]:
    """Retry-After từ response headers của OpenAI SDK error (nếu có)."""
    resp = getattr(err, "response", None)
    headers = getattr(resp, "headers", None) if resp is not None else None
    if not headers:
        return None

    ra = headers.get("retry-after")
    if ra:
        try:
            return float(ra)
        except ValueError:
            pass

    ram = headers.get("retry-after-ms")
    if ram:
        try:
            return float(ram) / 1000.0
        except ValueError:
            pass
    return None


class EmbeddingClient:
    """
    OpenAI embeddings, inject vào retrieval adapter (không dùng client global).
    Retry theo Retry-After khi bị rate-limit, exponential backoff cho lỗi khác.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        dimensions: Optional[int] = None,
        max_retries: int = 5,
        client: Any = None,
        sleep=time.sleep,
    ) -> None:
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.model = model or os.getenv("OPENAI_EMBED_MODEL") or DEFAULT_EMBED_MODEL
        self.dimensions = int(dimensions or os.getenv("OPENAI_EMBED_DIM") or DEFAULT_DIM)
        self.max_retries = max(1, max_retries)
        self._client = client
        self._sleep = sleep

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise RuntimeError("Missing OPENAI_API_KEY")
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def embed_texts(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []

        client = self._get_client()
        last_err: Exception | None = None

        for attempt in range(self.max_retries):
            try:
                kwargs = {"model": self.model, "input": texts}
                if self.dimensions and self.model.startswith("text-embedding-3"):
                    kwargs["dimensions"] = self.dimensions
                res = client.embeddings.create(**kwargs)
                return [list(item.embedding) for item in res.data]

            except OpenAIError as e:
                wait_s = retry_after_seconds(e)
                if wait_s is None:
                    wait_s = parse_retry_seconds(str(e))
                print(f"[EMBED] attempt={attempt + 1} openai error: {e}, retry in {wait_s:.1f}s")
                self._sleep(float(wait_s) + 1.0)
                last_err = e

            except Exception as e:
                last_err = e
                self._sleep(min(16.0, (2 ** attempt) + random.random()))

        raise last_err if last_err else RuntimeError("Embedding failed without exception detail.")

    def embed_query(self, text: str) -> List[float]:
        return self.embed_texts([text])[0]
