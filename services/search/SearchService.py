"""Search service: embeds query text and runs a similarity search on the user's index."""

from services.search.SimilaritySearchEngine import SimilaritySearchEngine
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.index.IndexStoreInterface import IndexStoreInterface
from shared.errors import EmbeddingUnavailable, ProviderUnavailable
from shared.helper.HelperConfig import HelperConfig
from shared.helper.UserLockRegistry import UserLockRegistry
from shared.models.search import SearchRequest, SearchResponse


class SearchService:
    """Orchestrates query embedding, ranking and result assembly."""

    def __init__(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientInterface,
        index_store: IndexStoreInterface,
        lock_registry: UserLockRegistry,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._embed_client = embed_client
        self._lock_registry = lock_registry
        self._engine = SimilaritySearchEngine(helper_config=helper_config, index_store=index_store)

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_search(self, request: SearchRequest) -> SearchResponse:
        """Execute a natural language query against the user's index.

        Args:
            request (SearchRequest): Query text, user and result limit.

        Returns:
            SearchResponse: At most `limit` results, one per file.

        Raises:
            EmbeddingUnavailable: If the query cannot be embedded.
        """
        self.logging.info(
            "Executing search - user_id=%s query=%r limit=%d",
            request.user_id,
            request.query[:80],
            request.limit,
        )

        try:
            vectors = await self._embed_client.do_embed([request.query])
        except ProviderUnavailable as exc:
            raise EmbeddingUnavailable(f"Could not embed search query: {exc}") from exc

        async with self._lock_registry.get_lock(request.user_id):
            items = await self._engine.search(request.user_id, vectors[0], request.limit)

        self.logging.info("Search complete - user_id=%s results=%d", request.user_id, len(items))
        return SearchResponse(query=request.query, results=items, total=len(items))
