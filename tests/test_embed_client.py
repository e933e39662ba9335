"""Tests for the Ollama embedding client against a mocked transport."""

import asyncio
import json

import httpx
import pytest

from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.embed.ollama.EmbedClientOllama import EmbedClientOllama
from shared.errors import ProviderUnavailable


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("EMBED_MODEL", "EMBED_MODEL_MAX_CHARS", "EMBED_ENGINE", "EMBED_OLLAMA_API_KEY"):
        monkeypatch.delenv(key, raising=False)


def _client(helper_config, handler) -> EmbedClientOllama:
    client = EmbedClientOllama(helper_config=helper_config)
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return client


def test_embed_sends_one_batch_request(helper_config):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"embeddings": [[0.1, 0.2], [0.3, 0.4]]})

    client = _client(helper_config, handler)
    vectors = asyncio.run(client.do_embed(["first", "second"]))

    assert vectors == [[0.1, 0.2], [0.3, 0.4]]
    assert len(requests) == 1
    assert requests[0].url.path == "/api/embed"
    assert json.loads(requests[0].content) == {"model": "mxbai-embed-large", "input": ["first", "second"]}


def test_embed_truncates_input(helper_config, monkeypatch):
    monkeypatch.setenv("EMBED_MODEL_MAX_CHARS", "5")
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"embeddings": [[1.0]]})

    asyncio.run(_client(helper_config, handler).do_embed("abcdefghij"))

    assert bodies[0]["input"] == ["abcde"]


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="model crashed"),
        httpx.Response(200, json={"embeddings": []}),
        httpx.Response(200, json={"embeddings": [[0.1], []]}),
        httpx.Response(200, json={"embeddings": [[0.1]]}),
    ],
)
def test_embed_failures_raise_provider_unavailable(helper_config, response):
    client = _client(helper_config, lambda request: response)

    with pytest.raises(ProviderUnavailable):
        asyncio.run(client.do_embed(["one", "two"]))


def test_embed_transport_error_raises_provider_unavailable(helper_config):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderUnavailable):
        asyncio.run(_client(helper_config, handler).do_embed(["text"]))


def test_embed_without_boot_raises_provider_unavailable(helper_config):
    client = EmbedClientOllama(helper_config=helper_config)

    with pytest.raises(ProviderUnavailable):
        asyncio.run(client.do_embed(["text"]))


def test_is_available_matches_model_without_tag(helper_config):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/tags"
        return httpx.Response(200, json={"models": [{"name": "mxbai-embed-large:latest"}]})

    assert asyncio.run(_client(helper_config, handler).is_available()) is True


def test_is_available_false_when_model_missing_or_unreachable(helper_config):
    def missing(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"models": [{"name": "llama3:8b"}]})

    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    assert asyncio.run(_client(helper_config, missing).is_available()) is False
    assert asyncio.run(_client(helper_config, unreachable).is_available()) is False


def test_manager_builds_ollama_client(helper_config):
    client = EmbedClientManager(helper_config=helper_config).get_client()

    assert isinstance(client, EmbedClientOllama)
    assert client.get_engine_name() == "ollama"
