"""
Pydantic schemas for API request/response validation.

These schemas define the contract between the API and clients. Field
names on the wire are camelCase (identifiedName, sellerId, ...); the
snake_case attribute names are accepted as well.
"""

from decimal import Decimal
from pydantic import BaseModel, Field, field_validator
from typing import Optional
import base64
import binascii

from plantmatch.matching.base import CatalogListing
from plantmatch.models.enums import ListingStatus


# === Request Schemas ===

class ImageRequest(BaseModel):
    """
    Request carrying a plant photo.

    Attributes:
        image: Base64-encoded image data (JPEG, PNG supported), optionally
            as a data URL
    """
    image: str = Field(
        ...,
        description="Base64-encoded image data",
        min_length=1
    )

    @field_validator("image")
    @classmethod
    def validate_base64(cls, v: str) -> str:
        """Validate that the image is valid base64."""
        data = v.split(",", 1)[1] if v.startswith("data:") and "," in v else v
        try:
            decoded = base64.b64decode(data.strip(), validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Invalid base64 image data: {e}")
        if not decoded:
            raise ValueError("Image data is empty")
        return v


class CatalogListingSchema(BaseModel):
    """Seller listing supplied by the catalog."""
    id: str = Field(..., min_length=1, description="Listing identifier")
    seller_id: str = Field(..., alias="sellerId", description="Seller identifier")
    plant_name: Optional[str] = Field(
        default=None,
        alias="plantName",
        description="Free-text plant name entered by the seller"
    )
    scientific_name: Optional[str] = Field(
        default=None,
        alias="scientificName",
        description="Scientific name, if the seller provided one"
    )
    quantity: int = Field(default=0, ge=0, description="Units in stock")
    price: Decimal = Field(default=Decimal("0"), ge=0, description="Unit price")
    status: ListingStatus = Field(default=ListingStatus.ACTIVE, description="Listing status")

    class Config:
        populate_by_name = True

    def to_domain(self) -> CatalogListing:
        return CatalogListing(
            id=self.id,
            seller_id=self.seller_id,
            plant_name=self.plant_name,
            scientific_name=self.scientific_name,
            quantity=self.quantity,
            price=self.price,
            status=self.status,
        )


class MatchRequest(BaseModel):
    """
    Request to match an already identified plant against listings.

    Attributes:
        identified_name: Name from identification (common or scientific)
        scientific_name: Optional scientific name, matched as well
        listings: Catalog listings to search; may be empty
        threshold: Minimum similarity in (0, 1]
    """
    identified_name: str = Field(..., alias="identifiedName")
    scientific_name: Optional[str] = Field(default=None, alias="scientificName")
    listings: list[CatalogListingSchema] = Field(...)
    threshold: Optional[float] = Field(default=None, gt=0.0, le=1.0)

    class Config:
        populate_by_name = True


class IdentifyAndMatchRequest(ImageRequest):
    """Request to identify a photo and match it against listings."""
    listings: list[CatalogListingSchema] = Field(...)
    threshold: Optional[float] = Field(default=None, gt=0.0, le=1.0)


class AliasRequest(BaseModel):
    """Request to add synonyms to an alias entry."""
    canonical_name: str = Field(..., alias="canonicalName", min_length=1)
    synonyms: list[str] = Field(..., min_length=1)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "canonicalName": "okra",
                "synonyms": ["abelmoschus esculentus", "bhindi", "lady finger"],
            }
        }


# === Response Schemas ===

class AliasEntryResponse(BaseModel):
    """Alias entry after an update."""
    canonicalName: str
    synonyms: list[str]


class AliasTableResponse(BaseModel):
    """Current alias table."""
    count: int
    aliases: dict[str, list[str]]


# === Error Schemas ===

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict] = Field(default=None, description="Additional error details")
