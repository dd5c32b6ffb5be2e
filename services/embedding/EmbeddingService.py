"""Embedding generation with a remote model and a deterministic lexical fallback.

Every call returns a vector: the remote endpoint is used while the breaker
allows it, and any failure falls back to LexicalEmbedder for that call.
Auth, quota, rate-limit, timeout and transport failures additionally trip the
breaker so the following calls skip the remote until the cooldown has passed.
"""

import asyncio
import math
from typing import Awaitable, Callable

from services.embedding.EmbeddingBreaker import BreakerState, EmbeddingBreaker
from services.embedding.LexicalEmbedder import LexicalEmbedder, l2_normalize
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import EmbeddingResult, EmbeddingSource
from shared.models.errors import EmbeddingUnavailable

DEFAULT_MAX_CHARS = 2000
DEFAULT_DIMENSION = 384
DEFAULT_COOLDOWN_SECONDS = 60
DEFAULT_BATCH_DELAY = 0.05


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / 4)


class EmbeddingService:
    def __init__(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientInterface | None = None,
        breaker: EmbeddingBreaker | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._embed_client = embed_client
        self.max_chars = int(helper_config.get_number_val("EMBEDDING_MAX_CHARS", default=DEFAULT_MAX_CHARS))
        self.dimension = int(helper_config.get_number_val("EMBEDDING_DIMENSION", default=DEFAULT_DIMENSION))
        self.batch_delay = float(helper_config.get_number_val("EMBEDDING_BATCH_DELAY", default=DEFAULT_BATCH_DELAY))
        self._breaker = breaker or EmbeddingBreaker(
            cooldown_seconds=helper_config.get_number_val("EMBEDDING_COOLDOWN_SECONDS", default=DEFAULT_COOLDOWN_SECONDS)
        )
        self._fallback = LexicalEmbedder(dimension=self.dimension)
        self._sleep = sleep

    ##########################################
    ################ GETTER ##################
    ##########################################

    def is_configured(self) -> bool:
        """Embeddings can always be produced thanks to the fallback."""
        return True

    def has_remote(self) -> bool:
        return self._embed_client is not None

    def get_breaker_state(self) -> BreakerState:
        return self._breaker.state

    ##########################################
    ############## EMBEDDINGS ################
    ##########################################

    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """Embed a single text.

        Args:
            text (str): The text to embed; only the first max_chars characters are used.

        Returns:
            EmbeddingResult: A unit-length vector of the configured dimension, or an
                all-zero vector with 0 tokens for blank text.
        """
        truncated = (text or "")[:self.max_chars]
        if not truncated.strip():
            return EmbeddingResult(embedding=[0.0] * self.dimension, tokens=0, source=EmbeddingSource.FALLBACK)

        if self._embed_client is not None and self._breaker.allows_request():
            vector = await self._try_remote(truncated)
            if vector is not None:
                return EmbeddingResult(embedding=vector, tokens=estimate_tokens(truncated), source=EmbeddingSource.REMOTE)

        return EmbeddingResult(
            embedding=self._fallback.embed(truncated),
            tokens=estimate_tokens(truncated),
            source=EmbeddingSource.FALLBACK,
        )

    async def generate_batch_embeddings(self, texts: list[str]) -> list[EmbeddingResult]:
        """Embed texts sequentially, pausing batch_delay seconds between calls.

        Returns:
            list[EmbeddingResult]: One result per input, in input order.
        """
        results: list[EmbeddingResult] = []
        for index, text in enumerate(texts):
            if index > 0 and self.batch_delay > 0:
                await self._sleep(self.batch_delay)
            results.append(await self.generate_embedding(text))
        return results

    async def _try_remote(self, text: str) -> list[float] | None:
        """Call the remote endpoint and update the breaker.

        Returns:
            list[float] | None: The normalized vector, or None if the caller should fall back.
        """
        try:
            vector = await self._embed_client.do_embed(text)
        except EmbeddingUnavailable as e:
            if e.trips_breaker:
                self._breaker.record_failure()
                self.logging.warning(
                    "Remote embeddings unavailable (%s), using lexical fallback for %ss.",
                    e, self._breaker.cooldown_seconds,
                )
            else:
                self.logging.warning("Remote embedding failed (%s), using lexical fallback for this call.", e)
            return None

        if len(vector) != self.dimension or not any(vector):
            self.logging.warning(
                "Remote embedding has %d dimensions, expected %d. Using lexical fallback for this call.",
                len(vector), self.dimension,
            )
            return None

        if self._breaker.state is BreakerState.COOLING_DOWN:
            self.logging.info("Remote embeddings available again.")
        self._breaker.record_success()
        return l2_normalize(vector)
