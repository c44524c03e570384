# app/filters.py
"""Parsing of raw search parameters into a typed `ListingQuery`.

Degenerate entries (blank names, blank values, groups without values) are
dropped here so the query builder only sees well-formed filters.
"""
import math
from typing import List, Optional, Tuple
from urllib.parse import urlparse
from .config import ALL_CATEGORIES, CATEGORY_TITLES, SORT_FIELDS
from .schemas import DetailFilter, ListingQuery

DEFAULT_SORT = [("created_at", -1)]

def _split(raw: Optional[str], sep: str) -> List[str]:
    if not raw:
        return []
    return [part for part in raw.split(sep) if part]

def parse_details(raw: Optional[str]) -> List[DetailFilter]:
    """``"Color:Red,Blue;Make:Ford"`` -> one `DetailFilter` per named group."""
    filters = []
    for group in _split(raw, ";"):
        name, _, values = group.partition(":")
        # anything after a second colon is ignored
        values = _split(values.split(":")[0], ",")
        if name and values:
            filters.append(DetailFilter(name=name, values=values))
    return filters

def parse_features(raw: Optional[str]) -> List[str]:
    return _split(raw, ",")

def parse_sort(raw: Optional[str]) -> List[Tuple[str, int]]:
    """``"price:asc,year:desc"`` -> ``[("numeric_price", 1), ("numeric_year", -1)]``.

    Unknown fields are skipped; if none remain the default (newest first) applies.
    """
    sort = []
    for entry in _split(raw, ","):
        name, _, order = entry.partition(":")
        column = SORT_FIELDS.get(name)
        if column:
            sort.append((column, 1 if order == "asc" else -1))
    return sort or list(DEFAULT_SORT)

def category_from_referer(referer: Optional[str]) -> Optional[str]:
    """Map the referring page to a category tag.

    Returns ``"inventory"`` for the all-inventory pages, the category tag for a
    configured category page, or ``None`` when the page is not recognized.
    """
    path = urlparse(referer or "").path.rstrip("/")
    if ALL_CATEGORIES in path:
        return ALL_CATEGORIES
    if path in CATEGORY_TITLES:
        return path.lstrip("/")
    return None

def build_listing_query(
    category: str,
    page: int = 1,
    limit: int = 24,
    search: Optional[str] = None,
    details: Optional[str] = None,
    features: Optional[str] = None,
    sort_by: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    detail_order: Optional[List[int]] = None,
) -> ListingQuery:
    if max_price is not None and math.isinf(max_price):
        max_price = None
    return ListingQuery(
        category=category,
        search=(search or "").strip(),
        details=parse_details(details),
        features=parse_features(features),
        sort=parse_sort(sort_by),
        skip=(page - 1) * limit,
        limit=limit,
        detail_order=detail_order or [],
        min_price=min_price if min_price is not None else 0,
        max_price=max_price,
    )
