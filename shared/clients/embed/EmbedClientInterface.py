from abc import abstractmethod

import httpx

from shared.clients.ClientInterface import ClientInterface
from shared.errors import ProviderUnavailable
from shared.helper.HelperConfig import HelperConfig


class EmbedClientInterface(ClientInterface):
    """Embedding provider contract: text in, fixed-length vectors out.

    The provider never fabricates data. Any failure to produce a non-empty
    vector for every input is reported as ProviderUnavailable.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # model and embedding config
        self.embed_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_MODEL", default="mxbai-embed-large")
        self.embed_model_max_chars = int(helper_config.get_number_val(f"{self.get_client_type().upper()}_MODEL_MAX_CHARS", default=8000))

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "embed"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_models(self) -> str:
        """
        Returns the endpoint path for model listing requests (e.g. "/api/tags").
        """
        pass

    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """
        Returns the endpoint path for embedding requests (e.g. "/api/embed").
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the backend-specific request body for an embedding request.

        Args:
            texts (list[str]): The texts to embed, already truncated.

        Returns:
            dict: JSON-serialisable request body.
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_model_names(self, response_data: dict) -> list[str]:
        """Extract the available model names from a model listing response."""
        pass

    @abstractmethod
    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Extract embedding vectors from a raw embedding API response.

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the input texts.

        Raises:
            ValueError: If the response format is invalid or embeddings are empty.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def is_available(self) -> bool:
        """Check whether the provider is reachable and serves the configured model.

        Returns:
            bool: True if the configured model is listed by the backend. Never raises.
        """
        try:
            response = await self.do_request(method="GET", endpoint=self._get_endpoint_models())
            if response.status_code != 200:
                return False
            models = self.extract_model_names(response.json())
        except (httpx.HTTPError, RuntimeError, ValueError) as exc:
            self.logging.warning("Embedding provider %s not reachable: %s", self.get_engine_name(), exc)
            return False
        return any(name.split(":")[0] == self.embed_model.split(":")[0] for name in models)

    async def do_embed(self, texts: list[str] | str) -> list[list[float]]:
        """Embed one or more texts in a single request.

        Inputs are truncated to the model's character budget. The returned
        vectors keep the input order.

        Args:
            texts (list[str] | str): One or more texts to embed.

        Returns:
            list[list[float]]: One non-empty vector per input text.

        Raises:
            ProviderUnavailable: If the request fails, the backend answers with a
                non-200 status, or any returned vector is missing or empty.
        """
        texts = [texts] if isinstance(texts, str) else texts
        if not texts:
            return []
        body = self.get_embed_payload([text[: self.embed_model_max_chars] for text in texts])

        try:
            response = await self.do_request(method="POST", endpoint=self.get_endpoint_embedding(), json=body)
        except (httpx.HTTPError, RuntimeError) as exc:
            raise ProviderUnavailable(f"Embedding request to {self.get_engine_name()} failed: {exc}") from exc

        if response.status_code != 200:
            self.logging.error(
                "Embedding request failed: status %d, body: %s",
                response.status_code,
                response.text[:200],
            )
            raise ProviderUnavailable(f"Embedding request failed with status {response.status_code}.")

        try:
            vectors = self.extract_embeddings_from_response(response.json())
        except ValueError as exc:
            raise ProviderUnavailable(str(exc)) from exc

        if len(vectors) != len(texts) or any(not vector for vector in vectors):
            raise ProviderUnavailable(
                f"Embedding provider returned {len(vectors)} vectors for {len(texts)} texts or an empty vector."
            )
        return vectors
