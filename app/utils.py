# app/utils.py
"""Shared utilities: logging setup and text-to-number conversion."""
import os
import re
import logging
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

_NON_NUMERIC = re.compile(r"[^0-9.]")

def get_logger(name=__name__):
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        level=getattr(logging, level, logging.INFO)
    )
    return logging.getLogger(name)

logger = get_logger("car-inventory")

def to_number(text) -> Optional[float]:
    """Derive a number from a display string such as ``"$12,500"``.

    Everything but digits and the decimal point is stripped. Returns ``None``
    when nothing numeric remains.
    """
    if text is None:
        return None
    cleaned = _NON_NUMERIC.sub("", str(text))
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        # e.g. "1.2.3" from a version-like string
        return None

def order_by_ids(items, ids, key):
    """Sort ``items`` by the position of ``key(item)`` in ``ids``.

    Items whose key is not listed keep their relative order after the listed ones.
    """
    if not ids:
        return list(items)
    rank = {value: position for position, value in enumerate(ids)}
    return sorted(items, key=lambda item: rank.get(key(item), len(rank)))
