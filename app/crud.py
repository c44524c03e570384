# app/crud.py
"""Persistence helpers for listings and reference data.

`search_listings` is the filtered listing query builder: it turns a
`ListingQuery` into a single statement that returns the requested page along
with the match count and price range of the whole filtered set.
"""
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload
from .models import Listing, ListingDetail, ListingDomain, Feature, Detail, Option, Ordering
from .schemas import ListingQuery
from .config import ALL_CATEGORIES
from typing import Dict, Any, List, Optional

_LISTING_LOADS = (
    selectinload(Listing.details).selectinload(ListingDetail.detail),
    selectinload(Listing.details).selectinload(ListingDetail.option),
    selectinload(Listing.features),
    selectinload(Listing.domains),
)

def create_listing(db: Session, listing: Listing) -> Listing:
    db.add(listing)
    db.commit()
    db.refresh(listing)
    return listing

def get_listing(db: Session, listing_id: int) -> Optional[Listing]:
    return db.query(Listing).options(*_LISTING_LOADS).filter(Listing.id == listing_id).first()

def replace_listing(db: Session, listing: Listing, fields: Dict[str, Any]) -> Listing:
    """Overwrite every writable attribute of ``listing`` and commit."""
    for k, v in fields.items():
        setattr(listing, k, v)
    db.commit()
    db.refresh(listing)
    return listing

def listing_conditions(query: ListingQuery) -> List:
    conds = []
    if query.category != ALL_CATEGORIES:
        conds.append(Listing.domains.any(ListingDomain.name == query.category))
    if query.search:
        conds.append(
            Listing.title.icontains(query.search, autoescape=True)
            | Listing.extra.icontains(query.search, autoescape=True)
        )
    # AND across detail names, OR across the values of one name
    for detail_filter in query.details:
        conds.append(Listing.details.any(
            ListingDetail.detail.has(Detail.name == detail_filter.name)
            & ListingDetail.option.has(Option.name.in_(detail_filter.values))
        ))
    if query.features:
        conds.append(Listing.features.any(Feature.name.in_(query.features)))
    conds.append(Listing.numeric_price >= query.min_price)
    if query.max_price is not None:
        conds.append(Listing.numeric_price <= query.max_price)
    return conds

def sort_columns(query: ListingQuery) -> List:
    order = []
    for name, direction in query.sort:
        column = getattr(Listing, name)
        order.append((column.asc() if direction == 1 else column.desc()).nulls_last())
    # newest id wins ties so pages are stable
    order.append(Listing.id.desc())
    return order

def search_listings(db: Session, query: ListingQuery) -> Dict[str, Any]:
    conds = listing_conditions(query)
    # window aggregates run over the filtered set before offset/limit
    total = func.count().over().label("total")
    price_min = func.min(Listing.numeric_price).over().label("price_min")
    price_max = func.max(Listing.numeric_price).over().label("price_max")
    rows = (
        db.query(Listing, total, price_min, price_max)
        .options(*_LISTING_LOADS)
        .filter(*conds)
        .order_by(*sort_columns(query))
        .offset(query.skip)
        .limit(query.limit)
        .all()
    )
    if rows:
        summary = (rows[0].total, rows[0].price_min, rows[0].price_max)
    elif query.skip:
        # page past the end: no rows carry the aggregates
        summary = (
            db.query(func.count(Listing.id), func.min(Listing.numeric_price), func.max(Listing.numeric_price))
            .filter(*conds)
            .one()
        )
    else:
        summary = (0, None, None)
    count, low, high = summary
    return {
        "items": [row[0] for row in rows],
        "total": count or 0,
        "price_range": {"min": low or 0, "max": high or 0},
    }

# --- reference data ---

def list_features(db: Session) -> List[Feature]:
    return db.query(Feature).order_by(Feature.id).all()

def list_details(db: Session) -> List[Detail]:
    return db.query(Detail).options(selectinload(Detail.options)).order_by(Detail.id).all()

def get_features(db: Session, ids: List[int]) -> Dict[int, Feature]:
    if not ids:
        return {}
    return {f.id: f for f in db.query(Feature).filter(Feature.id.in_(ids)).all()}

def get_details(db: Session, ids: List[int]) -> Dict[int, Detail]:
    if not ids:
        return {}
    return {d.id: d for d in db.query(Detail).filter(Detail.id.in_(ids)).all()}

def get_options(db: Session, ids: List[int]) -> Dict[int, Option]:
    if not ids:
        return {}
    return {o.id: o for o in db.query(Option).filter(Option.id.in_(ids)).all()}

def get_detail_by_name(db: Session, name: str) -> Optional[Detail]:
    return db.query(Detail).filter(Detail.name == name).first()

def get_ordering_ids(db: Session, name: str) -> List[int]:
    ordering = db.query(Ordering).filter(Ordering.name == name).first()
    return list(ordering.ids) if ordering else []

def upsert_ordering(db: Session, name: str, ids: List[int]) -> Ordering:
    ordering = db.query(Ordering).filter(Ordering.name == name).first()
    if ordering is None:
        ordering = Ordering(name=name)
        db.add(ordering)
    ordering.ids = list(ids)
    db.flush()
    return ordering

def upsert_feature(db: Session, name: str, icon: Optional[str] = None) -> Feature:
    feature = db.query(Feature).filter(Feature.name == name).first()
    if feature is None:
        feature = Feature(name=name)
        db.add(feature)
    feature.icon = icon
    db.flush()
    return feature

def upsert_detail(db: Session, name: str, icon: Optional[str] = None) -> Detail:
    detail = db.query(Detail).filter(Detail.name == name).first()
    if detail is None:
        detail = Detail(name=name)
        db.add(detail)
    detail.icon = icon
    db.flush()
    return detail

def upsert_option(db: Session, detail: Detail, name: str, icon: Optional[str] = None) -> Option:
    option = db.query(Option).filter(Option.detail_id == detail.id, Option.name == name).first()
    if option is None:
        option = Option(detail_id=detail.id, name=name)
        db.add(option)
    option.icon = icon
    db.flush()
    return option
