# app/schemas.py
import json
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional, Tuple
from datetime import datetime
from .config import ALL_CATEGORIES, DEFAULT_PAGE_SIZE
from .utils import order_by_ids

# --- ingestion ---

class DetailRefIn(BaseModel):
    detail: int
    option: Optional[int] = None

    @field_validator("option", mode="before")
    @classmethod
    def _blank_option(cls, value):
        return None if value == "" else value

class SellerNoteIn(BaseModel):
    note: int
    texts: List[int] = []

class ListingIn(BaseModel):
    """A listing as submitted in a multipart form.

    Array fields arrive JSON-encoded; blank or missing ones mean empty.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    price: str = ""
    extra: str = ""
    details: List[DetailRefIn] = []
    features: List[int] = []
    videos: List[str] = []
    pages: List[str] = []
    seller_notes: List[SellerNoteIn] = Field(default_factory=list, alias="sellerNotes")
    domain: List[str] = []

    @field_validator("details", "features", "videos", "pages", "seller_notes", "domain", mode="before")
    @classmethod
    def _decode_json(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            if not value.strip():
                return []
            return json.loads(value)
        return value

# --- responses ---

class FeatureOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
    id: int
    name: str
    icon: Optional[str] = None

class OptionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
    id: int
    detail_id: int = Field(alias="detailId")
    name: str
    icon: Optional[str] = None

class DetailOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
    id: int
    name: str
    icon: Optional[str] = None

class DetailWithOptionsOut(DetailOut):
    options: List[OptionOut] = []

class ListingDetailOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
    id: int
    detail: DetailOut
    option: Optional[OptionOut] = None

class ImageOut(BaseModel):
    filename: str
    path: str

class ListingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
    id: int
    title: str
    price: str
    extra: str
    features: List[FeatureOut]
    details: List[ListingDetailOut]
    videos: List[str]
    images: List[ImageOut]
    seller_notes: List[SellerNoteIn] = Field(alias="sellerNotes")
    domain: List[str]
    pages: List[str]
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @classmethod
    def from_listing(cls, listing, detail_order=()):
        """Build the response for an ORM listing, details in custom order."""
        details = order_by_ids(listing.details, detail_order, key=lambda d: d.detail_id)
        return cls(
            id=listing.id,
            title=listing.title,
            price=listing.price,
            extra=listing.extra,
            features=[FeatureOut.model_validate(f) for f in listing.features],
            details=[ListingDetailOut.model_validate(d) for d in details],
            videos=listing.videos or [],
            images=listing.images or [],
            seller_notes=listing.seller_notes or [],
            domain=[d.name for d in listing.domains],
            pages=listing.pages or [],
            created_at=listing.created_at,
            updated_at=listing.updated_at,
        )

class ListingCreated(BaseModel):
    message: str
    car: ListingOut

class PriceRange(BaseModel):
    min: float = 0
    max: float = 0

class Pagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    current_page: int = Field(alias="currentPage")
    total_pages: int = Field(alias="totalPages")
    limit: int
    total_items: int = Field(alias="totalItems")
    price_range: PriceRange = Field(default_factory=PriceRange, alias="priceRange")

class ListingPage(BaseModel):
    data: List[ListingOut]
    pagination: Pagination

# --- search ---

class DetailFilter(BaseModel):
    name: str
    values: List[str]

class ListingQuery(BaseModel):
    """Typed search input for the listing query builder.

    ``sort`` holds ``(column, direction)`` pairs with direction 1 or -1;
    ``max_price`` of ``None`` means unbounded.
    """
    category: str = ALL_CATEGORIES
    search: str = ""
    details: List[DetailFilter] = []
    features: List[str] = []
    sort: List[Tuple[str, int]] = [("created_at", -1)]
    skip: int = 0
    limit: int = DEFAULT_PAGE_SIZE
    detail_order: List[int] = []
    min_price: float = 0
    max_price: Optional[float] = None
