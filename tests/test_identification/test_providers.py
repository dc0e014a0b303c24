"""
Tests for the HTTP identification providers.

Requests are served by httpx.MockTransport; nothing leaves the process.
"""

import json

import httpx
import pytest

from plantmatch.core.config import Settings
from plantmatch.core.exceptions import ProviderError, ProviderTimeoutError
from plantmatch.identification.providers import (
    PlantIdProvider,
    PlantNetProvider,
    build_providers,
    guess_mime_type,
)
from plantmatch.models.enums import ProviderType

JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-png"


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestPlantIdProvider:
    """Test the Plant.id client."""

    @pytest.mark.asyncio
    async def test_request_shape(self):
        """Test URL, headers and JSON body."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json={"result": {"classification": {"suggestions": []}}})

        provider = PlantIdProvider(api_key="secret", client=mock_client(handler))
        body = await provider.identify(JPEG_BYTES)

        request = seen["request"]
        assert request.method == "POST"
        assert request.url.host == "api.plant.id"
        assert request.url.path == "/v3/identification"
        assert request.headers["Api-Key"] == "secret"
        assert request.url.params["language"] == "en"

        payload = json.loads(request.content)
        assert payload["images"][0].startswith("data:image/jpeg;base64,")
        assert body == {"result": {"classification": {"suggestions": []}}}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,message", [
        (401, "Invalid API key"),
        (402, "API quota exceeded"),
        (429, "API rate limit exceeded"),
        (500, "API error: 500"),
    ])
    async def test_status_mapping(self, status, message):
        """Test error messages for failing status codes."""
        provider = PlantIdProvider(
            api_key="secret",
            client=mock_client(lambda request: httpx.Response(status, json={})),
        )

        with pytest.raises(ProviderError) as exc_info:
            await provider.identify(JPEG_BYTES)

        assert exc_info.value.message == message
        assert exc_info.value.status_code == status
        assert exc_info.value.provider == "Plant.id"

    @pytest.mark.asyncio
    async def test_missing_api_key(self, monkeypatch):
        """Test that an unconfigured provider fails without a request."""
        monkeypatch.delenv("PLANT_ID_API_KEY", raising=False)

        def handler(request):
            raise AssertionError("no request expected")

        provider = PlantIdProvider(client=mock_client(handler))

        assert provider.is_configured is False
        with pytest.raises(ProviderError):
            await provider.identify(JPEG_BYTES)

    def test_api_key_from_environment(self, monkeypatch):
        """Test the environment variable fallback."""
        monkeypatch.setenv("PLANT_ID_API_KEY", "from-env")
        assert PlantIdProvider().api_key == "from-env"

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test that client timeouts raise ProviderTimeoutError."""
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        provider = PlantIdProvider(api_key="secret", client=mock_client(handler))

        with pytest.raises(ProviderTimeoutError):
            await provider.identify(JPEG_BYTES)

    @pytest.mark.asyncio
    async def test_connection_error(self):
        """Test that transport errors raise ProviderError."""
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider = PlantIdProvider(api_key="secret", client=mock_client(handler))

        with pytest.raises(ProviderError) as exc_info:
            await provider.identify(JPEG_BYTES)
        assert not isinstance(exc_info.value, ProviderTimeoutError)

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        """Test a 200 response that is not JSON."""
        provider = PlantIdProvider(
            api_key="secret",
            client=mock_client(lambda request: httpx.Response(200, text="<html>")),
        )

        with pytest.raises(ProviderError):
            await provider.identify(JPEG_BYTES)

    def test_provider_info(self):
        """Test metadata."""
        provider = PlantIdProvider(api_key="secret", timeout=12.0)
        info = provider.get_provider_info()

        assert info["name"] == "Plant.id"
        assert info["type"] == ProviderType.PLANT_ID.value
        assert info["timeout"] == 12.0
        assert info["is_configured"] is True


class TestPlantNetProvider:
    """Test the Pl@ntNet client."""

    @pytest.mark.asyncio
    async def test_request_shape(self):
        """Test URL, API key parameter and multipart body."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json={"results": []})

        provider = PlantNetProvider(
            api_key="secret", organs=["flower"], client=mock_client(handler)
        )
        body = await provider.identify(PNG_BYTES)

        request = seen["request"]
        assert request.url.host == "my-api.plantnet.org"
        assert request.url.path == "/v2/identify/all"
        assert request.url.params["api-key"] == "secret"
        assert request.headers["content-type"].startswith("multipart/form-data")

        content = request.read()
        assert b'name="organs"' in content
        assert b"flower" in content
        assert b"plant.png" in content
        assert body == {"results": []}

    @pytest.mark.asyncio
    async def test_not_found(self):
        """Test a generic failing status code."""
        provider = PlantNetProvider(
            api_key="secret",
            client=mock_client(lambda request: httpx.Response(404, json={"message": "Species not found"})),
        )

        with pytest.raises(ProviderError) as exc_info:
            await provider.identify(JPEG_BYTES)
        assert exc_info.value.status_code == 404

    def test_default_organs(self):
        """Test the organ default."""
        assert PlantNetProvider(api_key="secret").organs == ["leaf"]


class TestProviderHelpers:
    """Test module helpers."""

    def test_guess_mime_type(self):
        """Test PNG detection."""
        assert guess_mime_type(PNG_BYTES) == "image/png"
        assert guess_mime_type(JPEG_BYTES) == "image/jpeg"

    def test_build_providers_in_order(self):
        """Test building providers from settings."""
        settings = Settings(
            plant_id_api_key="a",
            plantnet_api_key="b",
            provider_order=["plantnet", "plant_id"],
            plantnet_timeout_seconds=5.0,
        )

        providers = build_providers(settings)

        assert [p.name for p in providers] == ["PlantNet", "Plant.id"]
        assert providers[0].timeout == 5.0

    def test_build_providers_skips_unknown(self):
        """Test that unknown provider names are ignored."""
        settings = Settings(provider_order=["plant_id", "leafsnap"])
        assert [p.name for p in build_providers(settings)] == ["Plant.id"]
