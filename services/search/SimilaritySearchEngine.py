"""Brute-force cosine similarity search over a user's stored chunks."""

import numpy as np

from shared.clients.index.IndexStoreInterface import IndexStoreInterface
from shared.errors import EmbeddingUnavailable
from shared.helper.HelperConfig import HelperConfig
from shared.models.embedding import EmbeddingChunk
from shared.models.search import SearchResultItem

CANDIDATE_FACTOR = 2  # raw chunk hits requested per result


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine of the angle between two vectors.

    Returns 0.0 when either vector has zero magnitude.

    Raises:
        ValueError: If the vectors differ in dimensionality.
    """
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    if va.shape != vb.shape:
        raise ValueError(f"Vector dimensions differ: {va.shape[0]} != {vb.shape[0]}.")

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


class SimilaritySearchEngine:
    """Ranks stored chunks against a query vector."""

    def __init__(
        self,
        helper_config: HelperConfig,
        index_store: IndexStoreInterface,
        candidate_factor: int | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._index_store = index_store
        if candidate_factor is None:
            candidate_factor = int(helper_config.get_number_val("SEARCH_CANDIDATE_FACTOR", default=CANDIDATE_FACTOR))
        self._candidate_factor = max(1, candidate_factor)

    @staticmethod
    def _validate_query(query_vector: list[float]) -> None:
        if not query_vector or not np.any(np.asarray(query_vector, dtype=float)):
            raise EmbeddingUnavailable("Query vector is empty or has zero magnitude.")

    async def rank_chunks(
        self, user_id: str, query_vector: list[float], limit: int
    ) -> list[tuple[EmbeddingChunk, float]]:
        """Score every chunk of the user and return the best `limit` raw hits.

        Chunks whose dimensionality differs from the query are skipped.

        Raises:
            EmbeddingUnavailable: If the query vector is empty or all zeros.
        """
        self._validate_query(query_vector)

        scored: list[tuple[EmbeddingChunk, float]] = []
        skipped = 0
        for chunk in await self._index_store.do_fetch_all_chunks(user_id):
            if len(chunk.vector) != len(query_vector):
                skipped += 1
                continue
            scored.append((chunk, cosine_similarity(query_vector, chunk.vector)))

        if skipped:
            self.logging.warning(
                "Skipped %d chunks of user '%s' with a dimension other than %d.", skipped, user_id, len(query_vector)
            )

        scored.sort(key=lambda hit: hit[1], reverse=True)
        return scored[:limit]

    async def search(self, user_id: str, query_vector: list[float], limit: int) -> list[SearchResultItem]:
        """Return the best matching chunk of each file, at most `limit` files.

        Args:
            user_id (str): Owner of the index.
            query_vector (list[float]): Embedded query.
            limit (int): Maximum number of results.

        Returns:
            list[SearchResultItem]: Results ordered by descending similarity,
                never two for the same file.

        Raises:
            EmbeddingUnavailable: If the query vector is empty or all zeros.
        """
        hits = await self.rank_chunks(user_id, query_vector, limit * self._candidate_factor)

        best: dict[str, tuple[EmbeddingChunk, float]] = {}
        for chunk, similarity in hits:
            current = best.get(chunk.file_id)
            if current is None or similarity > current[1]:
                best[chunk.file_id] = (chunk, similarity)

        ranked = sorted(best.values(), key=lambda hit: hit[1], reverse=True)[:limit]
        return [
            SearchResultItem(
                file_id=chunk.file_id,
                file_name=chunk.file_name,
                content=chunk.content,
                similarity=similarity,
                metadata=chunk.metadata,
            )
            for chunk, similarity in ranked
        ]
