"""
Upstream identification providers.

Provides HTTP clients for:
- Plant.id API v3 (Kindwise)
- Pl@ntNet API v2

Each provider returns the decoded JSON body and raises ProviderError on
any failure. Normalization and fallback decisions happen elsewhere.
"""

import base64
import logging
import os
import time
from typing import Dict, Any, List, Optional, Mapping

import httpx

from plantmatch.core.exceptions import ProviderError, ProviderTimeoutError
from plantmatch.identification.base import IdentificationProvider
from plantmatch.models.enums import ProviderType

logger = logging.getLogger(__name__)


def guess_mime_type(image: bytes) -> str:
    """Detect PNG by signature; everything else is sent as JPEG."""
    if image.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    return "image/jpeg"


class HTTPIdentificationProvider(IdentificationProvider):
    """Shared request handling for HTTP-based providers."""

    # Status codes with a provider-independent meaning
    STATUS_MESSAGES = {
        401: "Invalid API key",
        402: "API quota exceeded",
        429: "API rate limit exceeded",
    }

    def __init__(
        self,
        api_key: Optional[str],
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self._timeout = timeout
        self._client = client

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _send(self, method: str, url: str, **kwargs) -> Mapping[str, Any]:
        """Send a request and return the decoded JSON body."""
        if not self.api_key:
            raise ProviderError(self.name, "API key not configured")

        start_time = time.time()
        try:
            if self._client is not None:
                response = await self._client.request(method, url, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException:
            raise ProviderTimeoutError(self.name, "API timeout")
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"Request failed: {e}")

        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(f"{self.name} responded {response.status_code} in {elapsed_ms:.0f}ms")

        if response.status_code in self.STATUS_MESSAGES:
            raise ProviderError(
                self.name,
                self.STATUS_MESSAGES[response.status_code],
                status_code=response.status_code,
            )
        if not response.is_success:
            raise ProviderError(
                self.name,
                f"API error: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            raise ProviderError(
                self.name,
                "Response body is not valid JSON",
                status_code=response.status_code,
            )


class PlantIdProvider(HTTPIdentificationProvider):
    """
    Plant.id API v3 integration.

    API: https://plant.id/
    Requires an API key from https://admin.kindwise.com/
    """

    API_URL = "https://api.plant.id/v3/identification"

    # Only the details the normalizer reads
    DETAILS = ["common_names", "taxonomy", "url"]

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 45.0,
        language: str = "en",
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(
            api_key=api_key or os.getenv("PLANT_ID_API_KEY"),
            timeout=timeout,
            client=client,
        )
        self.language = language

    @property
    def name(self) -> str:
        return "Plant.id"

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.PLANT_ID

    async def identify(self, image: bytes) -> Mapping[str, Any]:
        """Run identification using the Plant.id API."""
        encoded = base64.b64encode(image).decode("ascii")
        payload = {
            "images": [f"data:{guess_mime_type(image)};base64,{encoded}"],
            "similar_images": False,
        }
        params = {
            "details": ",".join(self.DETAILS),
            "language": self.language,
        }
        headers = {"Api-Key": self.api_key or ""}

        logger.info("Calling Plant.id API...")
        return await self._send(
            "POST", self.API_URL, json=payload, params=params, headers=headers
        )


class PlantNetProvider(HTTPIdentificationProvider):
    """
    Pl@ntNet API integration.

    API: https://my.plantnet.org/
    Species: 50,000+ plant species
    """

    API_URL = "https://my-api.plantnet.org/v2/identify/all"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        organs: Optional[List[str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(
            api_key=api_key or os.getenv("PLANTNET_API_KEY"),
            timeout=timeout,
            client=client,
        )
        self.organs = organs or ["leaf"]

    @property
    def name(self) -> str:
        return "PlantNet"

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.PLANTNET

    async def identify(self, image: bytes) -> Mapping[str, Any]:
        """Run identification using the Pl@ntNet API."""
        mime_type = guess_mime_type(image)
        extension = "png" if mime_type == "image/png" else "jpg"
        files = {"images": (f"plant.{extension}", image, mime_type)}
        data = {"organs": self.organs}
        params = {"api-key": self.api_key or ""}

        logger.info("Calling PlantNet API...")
        return await self._send(
            "POST", self.API_URL, files=files, data=data, params=params
        )


def build_providers(settings) -> List[IdentificationProvider]:
    """
    Build the configured providers in fallback order.

    Args:
        settings: Application settings

    Returns:
        Providers named in `settings.provider_order`
    """
    factories: Dict[str, Any] = {
        ProviderType.PLANT_ID.value: lambda: PlantIdProvider(
            api_key=settings.plant_id_api_key,
            timeout=settings.plant_id_timeout_seconds,
        ),
        ProviderType.PLANTNET.value: lambda: PlantNetProvider(
            api_key=settings.plantnet_api_key,
            timeout=settings.plantnet_timeout_seconds,
            organs=settings.plantnet_organs,
        ),
    }

    providers = []
    for provider_name in settings.provider_order:
        factory = factories.get(provider_name)
        if factory is None:
            logger.warning(f"Ignoring unknown identification provider: {provider_name}")
            continue
        providers.append(factory())

    logger.info(f"Configured identification providers: {[p.name for p in providers]}")
    return providers
