"""
Bounded-retry wrapper around an embedding provider.

One attempt, then exactly one retry. If both fail, or the provider returns a
vector of the wrong dimension, the resolver returns None instead of raising,
so search can fall back to keyword matching.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Protocol, Sequence

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from vkb_core.config import settings

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2


class EmbeddingProvider(Protocol):
    def embed(self, text: str) -> Sequence[float]:
        ...


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Embedding attempt %d failed (%s), retrying",
        retry_state.attempt_number,
        exc,
    )


class EmbeddingResolver:
    """
    Resolves query embeddings through `provider`.

    Background resolution runs on one long-lived pool per resolver, created on
    first use and bounded by `max_workers`, so a hung provider holds at most
    that many threads no matter how many requests time out.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        retry_wait: float | None = None,
        dim: int | None = None,
        max_workers: int | None = None,
    ):
        self.provider = provider
        self.retry_wait = settings.EMBEDDING_RETRY_WAIT_SECONDS if retry_wait is None else retry_wait
        self.dim = settings.EMBEDDING_DIM if dim is None else dim
        self.max_workers = max_workers or settings.EMBEDDING_MAX_WORKERS
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.Lock()

    def resolve(self, text: str) -> list[float] | None:
        """Embed `text`, or return None if the provider failed twice or gave the wrong dimension."""
        retrying = Retrying(
            stop=stop_after_attempt(MAX_ATTEMPTS),
            wait=wait_fixed(self.retry_wait),
            retry=retry_if_exception_type(Exception),
            before_sleep=_log_retry,
        )
        try:
            vec = retrying(self.provider.embed, text)
        except RetryError as e:
            logger.warning(
                "Embedding unavailable after %d attempts: %s",
                MAX_ATTEMPTS,
                e.last_attempt.exception(),
            )
            return None
        if len(vec) != self.dim:
            logger.warning("Embedding has %d dimensions, expected %d; ignoring it", len(vec), self.dim)
            return None
        return [float(x) for x in vec]

    def submit(self, text: str) -> Future:
        """Run `resolve(text)` on the resolver's pool."""
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers, thread_name_prefix="vkb-embed"
                )
            executor = self._executor
        return executor.submit(self.resolve, text)

    def close(self) -> None:
        """Drop queued work and release the pool; running calls finish on their own."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)


_default_resolver: EmbeddingResolver | None = None

def get_default_resolver() -> EmbeddingResolver:
    global _default_resolver
    if _default_resolver is None:
        # deferred: importing the embedder pulls in torch
        from vkb_engine.embeddings.embedder import SentenceTransformerProvider
        _default_resolver = EmbeddingResolver(SentenceTransformerProvider())
    return _default_resolver
