# app/config.py
"""Environment-driven settings for the inventory service."""
import os
import json
from dotenv import load_dotenv

load_dotenv()

UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join("public", "uploads"))
# relative URL prefix recorded on stored images; also where they are served
UPLOAD_URL_PREFIX = "api/uploads"
UPLOAD_WORKERS = int(os.getenv("UPLOAD_WORKERS", "4"))

DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "24"))

# referer path -> page title; keys double as category tags (without the slash)
CATEGORY_TITLES = json.loads(os.getenv("CATEGORY_TITLES") or json.dumps({
    "/cars": "Cars",
    "/trucks": "Trucks",
    "/motorcycles": "Motorcycles",
    "/trailers": "Trailers",
}))
ALL_CATEGORIES = "inventory"

DETAIL_ORDERING_NAME = "CarDetail"

# sortBy field -> derived numeric column on Listing
SORT_FIELDS = {
    "price": "numeric_price",
    "year": "numeric_year",
    "mileage": "numeric_mileage",
    "size": "numeric_size",
    "weight": "numeric_weight",
}

# derived column -> detail whose option name holds the value
NUMERIC_DETAILS = {
    "numeric_year": "year",
    "numeric_mileage": "mileage",
    "numeric_size": "size",
    "numeric_weight": "weight",
}

# upper bounds on search paging; larger values are rejected as client errors
MAX_PAGE = int(os.getenv("MAX_PAGE", "100000"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
