# app/services.py
from . import crud, schemas, storage
from .config import DETAIL_ORDERING_NAME, NUMERIC_DETAILS
from .models import Listing, ListingDetail, ListingDomain
from sqlalchemy.orm import Session
from .utils import logger, to_number, order_by_ids
from typing import Any, Dict, List

class InvalidListingError(ValueError):
    """Submitted listing data refers to reference rows that do not exist."""

def _resolve_references(db: Session, payload: schemas.ListingIn) -> Dict[str, Any]:
    """Turn submitted ids into ORM rows, rejecting anything that does not resolve."""
    detail_ids = [ref.detail for ref in payload.details]
    option_ids = [ref.option for ref in payload.details if ref.option is not None]
    details = crud.get_details(db, detail_ids)
    options = crud.get_options(db, option_ids)
    features = crud.get_features(db, payload.features)

    missing = sorted(set(detail_ids) - details.keys())
    if missing:
        raise InvalidListingError(f"Unknown detail ids: {missing}")
    missing = sorted(set(option_ids) - options.keys())
    if missing:
        raise InvalidListingError(f"Unknown option ids: {missing}")
    missing = sorted(set(payload.features) - features.keys())
    if missing:
        raise InvalidListingError(f"Unknown feature ids: {missing}")

    listing_details = []
    for ref in payload.details:
        option = options.get(ref.option) if ref.option is not None else None
        if option is not None and option.detail_id != ref.detail:
            raise InvalidListingError(f"Option {option.id} does not belong to detail {ref.detail}")
        listing_details.append(ListingDetail(detail=details[ref.detail], option=option))

    # duplicates collapse; first occurrence keeps its place
    feature_rows = [features[i] for i in dict.fromkeys(payload.features)]
    return {"details": listing_details, "features": feature_rows}

def derived_fields(price: str, details: List[ListingDetail]) -> Dict[str, Any]:
    """Numeric columns computed from the listing's text price and detail options."""
    fields = {"numeric_price": to_number(price) or 0.0}
    by_name = {d.detail.name.lower(): d.option for d in details}
    for column, detail_name in NUMERIC_DETAILS.items():
        option = by_name.get(detail_name)
        fields[column] = to_number(option.name) if option is not None else None
    return fields

def _listing_fields(db: Session, payload: schemas.ListingIn) -> Dict[str, Any]:
    refs = _resolve_references(db, payload)
    fields = {
        "title": payload.title,
        "price": payload.price,
        "extra": payload.extra,
        "videos": payload.videos,
        "pages": payload.pages,
        "seller_notes": [note.model_dump() for note in payload.seller_notes],
        "domains": [ListingDomain(name=name) for name in dict.fromkeys(payload.domain)],
        **refs,
    }
    fields.update(derived_fields(payload.price, refs["details"]))
    return fields

def ingest_listing(db: Session, payload: schemas.ListingIn, uploads: List[storage.ImageUpload]) -> Listing:
    """Validate, store images, then persist the listing as one unit.

    Raises `InvalidListingError` before anything is written, `StorageError`
    if an image cannot be stored. Stored images are removed again when the
    listing cannot be saved.
    """
    fields = _listing_fields(db, payload)
    images = storage.save_images(uploads)
    try:
        listing = crud.create_listing(db, Listing(images=images, **fields))
    except Exception:
        db.rollback()
        storage.discard_images(images)
        raise
    logger.info("Ingested listing %s with %d images", listing.id, len(images))
    return listing

def replace_listing(db: Session, listing: Listing, payload: schemas.ListingIn, uploads: List[storage.ImageUpload]) -> Listing:
    """Full replacement of an existing listing; its old images are dropped after commit."""
    fields = _listing_fields(db, payload)
    # keep rows for domains that stay so the (listing, name) key is not re-inserted
    current = {d.name: d for d in listing.domains}
    fields["domains"] = [current.get(d.name, d) for d in fields["domains"]]
    old_images = list(listing.images or [])
    images = storage.save_images(uploads)
    try:
        listing = crud.replace_listing(db, listing, dict(fields, images=images))
    except Exception:
        db.rollback()
        storage.discard_images(images)
        raise
    storage.discard_images(old_images)
    logger.info("Replaced listing %s with %d images", listing.id, len(images))
    return listing

def detail_order(db: Session) -> List[int]:
    return crud.get_ordering_ids(db, DETAIL_ORDERING_NAME)

def search_listings(db: Session, query: schemas.ListingQuery) -> schemas.ListingPage:
    result = crud.search_listings(db, query)
    total = result["total"]
    page = query.skip // query.limit + 1
    logger.info(
        "Search category=%s page=%d matched %d listings", query.category, page, total
    )
    return schemas.ListingPage(
        data=[schemas.ListingOut.from_listing(listing, query.detail_order) for listing in result["items"]],
        pagination=schemas.Pagination(
            current_page=page,
            total_pages=-(-total // query.limit),
            limit=query.limit,
            total_items=total,
            price_range=schemas.PriceRange(**result["price_range"]),
        ),
    )

def ordered_details(db: Session):
    """Reference details with their options, in the custom detail order."""
    return order_by_ids(crud.list_details(db), detail_order(db), key=lambda d: d.id)

def load_reference_data(db: Session, data: Dict[str, Any]) -> Dict[str, int]:
    """Upsert features, details with options, and orderings from a plain dict.

    ``orderings`` list detail names; they are stored as detail ids.
    """
    counts = {"features": 0, "details": 0, "options": 0, "orderings": 0}
    for item in data.get("features", []):
        crud.upsert_feature(db, item["name"], item.get("icon"))
        counts["features"] += 1
    details_by_name = {}
    for item in data.get("details", []):
        detail = crud.upsert_detail(db, item["name"], item.get("icon"))
        details_by_name[detail.name] = detail
        counts["details"] += 1
        for option in item.get("options", []):
            crud.upsert_option(db, detail, option["name"], option.get("icon"))
            counts["options"] += 1
    for item in data.get("orderings", []):
        ids = []
        for name in item.get("details", []):
            detail = details_by_name.get(name) or crud.get_detail_by_name(db, name)
            if detail is None:
                raise ValueError(f"Ordering {item['name']!r} names unknown detail {name!r}")
            ids.append(detail.id)
        crud.upsert_ordering(db, item["name"], ids)
        counts["orderings"] += 1
    db.commit()
    logger.info("Loaded reference data: %s", counts)
    return counts
