"""
API Tests for the Plant Marketplace Matching Service

Tests the main API endpoints with various scenarios. The marketplace
service is replaced through dependency overrides so no provider is called.
"""

import base64
import io
import struct
import zlib
from typing import Any, Mapping

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from plantmatch.identification.base import IdentificationProvider
from plantmatch.identification.fallback import FallbackSelector
from plantmatch.main import app
from plantmatch.matching.alias_table import AliasTable
from plantmatch.matching.fuzzy_matcher import FuzzyMatcher
from plantmatch.models.enums import ProviderType
from plantmatch.services.marketplace_service import (
    MarketplaceMatchingService,
    get_marketplace_service,
)


class StaticProvider(IdentificationProvider):
    """Provider with a fixed answer."""

    def __init__(self, name: str, payload: Any):
        self._name = name
        self.payload = payload

    @property
    def name(self) -> str:
        return self._name

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.CANONICAL

    async def identify(self, image: bytes) -> Mapping[str, Any]:
        return self.payload


TOMATO_PAYLOAD = {"candidates": [{
    "scientificName": "Solanum lycopersicum",
    "commonNames": ["Tomato"],
    "family": "Solanaceae",
    "genus": "Solanum",
    "confidence": 0.88,
}]}


def build_service(*providers) -> MarketplaceMatchingService:
    return MarketplaceMatchingService(
        selector=FallbackSelector(list(providers)),
        matcher=FuzzyMatcher(alias_table=AliasTable()),
    )


@pytest.fixture
def service():
    """Service with one in-memory provider."""
    return build_service(StaticProvider("Plant.id", TOMATO_PAYLOAD))


@pytest.fixture
def client(service):
    """Create test client."""
    app.dependency_overrides[get_marketplace_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sample_image_base64():
    """Generate a sample test image as base64."""
    # Create a simple green image (simulating a leaf)
    img = Image.new('RGB', (224, 224), color=(34, 139, 34))  # Forest green

    buffer = io.BytesIO()
    img.save(buffer, format='JPEG')
    buffer.seek(0)

    return base64.b64encode(buffer.read()).decode('utf-8')


@pytest.fixture
def listings():
    """Catalog listings in wire format."""
    return [
        {"id": "1", "sellerId": "s1", "plantName": "Lycopersicon esculentum", "quantity": 4, "price": "12.00"},
        {"id": "2", "sellerId": "s2", "plantName": "Banana", "quantity": 3, "price": "8.50"},
        {"id": "3", "sellerId": "s3", "plantName": "Tomato Plant", "quantity": 0, "price": "5.00"},
        {"id": "4", "sellerId": "s4", "plantName": "Heirloom", "scientificName": "Solanum lycopersicum", "quantity": 2},
    ]


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_health_check(self, client):
        """Test basic health check."""
        response = client.get("/api/v1/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "version" in data

    def test_liveness_check(self, client):
        """Test liveness probe."""
        response = client.get("/api/v1/health/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    def test_readiness_check(self, client):
        """Test detailed readiness check."""
        response = client.get("/api/v1/health/ready")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "ready"
        assert data["components"]["identification"]["configured"] == ["Plant.id"]
        assert data["components"]["matching"]["alias_entries"] == len(AliasTable.DEFAULT_ALIASES)

    def test_not_ready_without_providers(self):
        """Test readiness when no provider can be called."""
        app.dependency_overrides[get_marketplace_service] = lambda: build_service()
        try:
            response = TestClient(app).get("/api/v1/health/ready")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 503


class TestIdentifyEndpoints:
    """Test identification endpoints."""

    def test_identify(self, client, sample_image_base64):
        """Test identifying a photo."""
        response = client.post("/api/v1/identify", json={"image": sample_image_base64})

        assert response.status_code == 200
        data = response.json()
        assert data["sourceService"] == "Plant.id"
        assert data["fallbackUsed"] is False
        assert data["candidates"][0]["scientificName"] == "Solanum lycopersicum"
        assert data["candidates"][0]["rank"] == 1
        assert data["error"] is None

    def test_identify_data_url(self, client, sample_image_base64):
        """Test an image sent as a data URL."""
        response = client.post(
            "/api/v1/identify",
            json={"image": f"data:image/jpeg;base64,{sample_image_base64}"}
        )
        assert response.status_code == 200

    def test_invalid_base64(self, client):
        """Test with invalid base64 image."""
        response = client.post("/api/v1/identify", json={"image": "not_valid_base64!!"})
        assert response.status_code == 422  # Validation error

    def test_not_an_image(self, client):
        """Test base64 data that is not an image."""
        payload = base64.b64encode(b"definitely not an image").decode()
        response = client.post("/api/v1/identify", json={"image": payload})

        assert response.status_code == 400

    def test_oversized_dimensions(self, client):
        """Test a small file that declares a huge image."""
        def chunk(kind, body):
            crc = zlib.crc32(kind + body) & 0xFFFFFFFF
            return struct.pack(">I", len(body)) + kind + body + struct.pack(">I", crc)

        ihdr = struct.pack(">IIBBBBB", 20000, 20000, 8, 2, 0, 0, 0)
        png = b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IEND", b"")

        response = client.post("/api/v1/identify", json={"image": base64.b64encode(png).decode()})

        assert response.status_code == 400
        assert "dimensions" in response.json()["detail"]

    def test_trailing_newline(self, client, sample_image_base64):
        """Test a base64 body ending in a newline."""
        response = client.post("/api/v1/identify", json={"image": sample_image_base64 + "\n"})
        assert response.status_code == 200

    def test_all_providers_failed_is_not_an_http_error(self, sample_image_base64):
        """Test that an unidentified photo is reported in the body."""
        failing = build_service(StaticProvider("Plant.id", "not a json object"))
        app.dependency_overrides[get_marketplace_service] = lambda: failing
        try:
            response = TestClient(app).post("/api/v1/identify", json={"image": sample_image_base64})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 200
        data = response.json()
        assert data["candidates"] == []

    def test_list_providers(self, client):
        """Test provider listing."""
        response = client.get("/api/v1/identify/providers")

        assert response.status_code == 200
        assert response.json()["providers"][0]["name"] == "Plant.id"
        assert response.json()["min_confidence"] == 0.3


class TestMatchEndpoints:
    """Test matching endpoints."""

    def test_match(self, client, listings):
        """Test matching a known plant name."""
        response = client.post(
            "/api/v1/match",
            json={"identifiedName": "tomato", "listings": listings, "threshold": 0.5}
        )

        assert response.status_code == 200
        data = response.json()
        ids = [m["listing"]["id"] for m in data["matches"]]
        assert ids == ["1"]
        assert data["matches"][0]["tier"] == "strong"
        assert data["recommendations"][0]["tier"] == "strong"

    def test_match_with_scientific_name(self, client, listings):
        """Test that the scientific name adds matches."""
        response = client.post(
            "/api/v1/match",
            json={
                "identifiedName": "tomato",
                "scientificName": "Solanum lycopersicum",
                "listings": listings,
            }
        )

        ids = [m["listing"]["id"] for m in response.json()["matches"]]
        assert ids == ["4", "1"]

    def test_match_empty_catalog(self, client):
        """Test the "none" recommendation for an empty catalog."""
        response = client.post("/api/v1/match", json={"identifiedName": "tomato", "listings": []})

        assert response.status_code == 200
        data = response.json()
        assert data["matches"] == []
        assert data["recommendations"][0]["tier"] == "none"

    def test_match_requires_listings(self, client):
        """Test that a request without listings is rejected."""
        response = client.post("/api/v1/match", json={"identifiedName": "tomato"})
        assert response.status_code == 422

    @pytest.mark.parametrize("threshold", [0, 1.5])
    def test_match_threshold_range(self, client, listings, threshold):
        """Test out-of-range thresholds."""
        response = client.post(
            "/api/v1/match",
            json={"identifiedName": "tomato", "listings": listings, "threshold": threshold}
        )
        assert response.status_code == 422

    def test_identify_and_match(self, client, listings, sample_image_base64):
        """Test the combined endpoint."""
        response = client.post(
            "/api/v1/match/identify",
            json={"image": sample_image_base64, "listings": listings}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["identifiedName"] == "Tomato"
        assert data["scientificName"] == "Solanum lycopersicum"
        assert data["identification"]["sourceService"] == "Plant.id"
        assert [m["listing"]["id"] for m in data["matches"]] == ["4", "1"]
        assert "processingTimeMs" in data


class TestAliasEndpoints:
    """Test alias table endpoints."""

    def test_list_aliases(self, client):
        """Test listing the alias table."""
        response = client.get("/api/v1/aliases")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == len(AliasTable.DEFAULT_ALIASES)
        assert "lycopersicon esculentum" in data["aliases"]["tomato"]

    def test_add_aliases(self, client, service):
        """Test adding synonyms at runtime."""
        response = client.post(
            "/api/v1/aliases",
            json={"canonicalName": "Okra", "synonyms": ["Bhindi", "Lady Finger"]}
        )

        assert response.status_code == 200
        assert response.json() == {"canonicalName": "okra", "synonyms": ["bhindi", "lady finger"]}
        assert service.alias_table.score_alias("okra", "bhindi") == 0.9

    def test_added_alias_used_for_matching(self, client):
        """Test that a new alias affects later match requests."""
        client.post("/api/v1/aliases", json={"canonicalName": "okra", "synonyms": ["bhindi"]})

        response = client.post(
            "/api/v1/match",
            json={
                "identifiedName": "okra",
                "listings": [{"id": "9", "sellerId": "s9", "plantName": "Bhindi", "quantity": 1}],
            }
        )

        assert len(response.json()["matches"]) == 1

    def test_add_invalid_alias(self, client):
        """Test a synonym that is empty after normalization."""
        response = client.post(
            "/api/v1/aliases",
            json={"canonicalName": "okra", "synonyms": ["plant"]}
        )
        assert response.status_code == 400

    def test_resolve(self, client):
        """Test resolving a synonym."""
        response = client.get("/api/v1/aliases/resolve", params={"name": "maize"})

        assert response.status_code == 200
        assert response.json()["canonicalNames"] == ["corn"]


class TestRootEndpoint:
    """Test root endpoint."""

    def test_root(self, client):
        """Test root endpoint returns API info."""
        response = client.get("/")
        assert response.status_code == 200

        data = response.json()
        assert "name" in data
        assert "version" in data
        assert "documentation" in data
