# app/api/routes.py
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session
from typing import List, Optional, Union
from .. import crud, filters, schemas, services
from ..config import DEFAULT_PAGE_SIZE, MAX_PAGE, MAX_PAGE_SIZE
from ..db import get_db
from ..storage import ImageUpload
from ..utils import logger

router = APIRouter()

@router.get("/health")
def health():
    return {"status": "ok"}


def _read_form(
    title: str = Form(""),
    price: str = Form(""),
    extra: str = Form(""),
    details: Optional[str] = Form(None),
    features: Optional[str] = Form(None),
    videos: Optional[str] = Form(None),
    pages: Optional[str] = Form(None),
    seller_notes: Optional[str] = Form(None, alias="sellerNotes"),
    domain: Optional[str] = Form(None),
    images: Optional[List[Union[UploadFile, str]]] = File(None),
):
    try:
        payload = schemas.ListingIn(
            title=title,
            price=price,
            extra=extra,
            details=details,
            features=features,
            videos=videos,
            pages=pages,
            seller_notes=seller_notes,
            domain=domain,
        )
    except ValidationError as e:
        logger.warning("Rejected listing form: %s", e)
        raise HTTPException(status_code=400, detail="Invalid listing data")
    # browsers send an empty, nameless part when no file is chosen
    uploads = [
        ImageUpload(f.filename, f.file.read())
        for f in images or []
        if not isinstance(f, str) and f.filename
    ]
    return payload, uploads


@router.post("/api/car", response_model=schemas.ListingCreated)
def create_car(form=Depends(_read_form), db: Session = Depends(get_db)):
    payload, uploads = form
    try:
        listing = services.ingest_listing(db, payload, uploads)
    except services.InvalidListingError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Listing upload failed: %s", e)
        raise HTTPException(status_code=500, detail="Failed to process the car data")
    return schemas.ListingCreated(
        message="Car data uploaded successfully",
        car=schemas.ListingOut.from_listing(listing, services.detail_order(db)),
    )


@router.get("/api/car", response_model=schemas.ListingPage)
def search_cars(
    request: Request,
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: Optional[str] = Query(None),
    details: Optional[str] = Query(None),
    features: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    db: Session = Depends(get_db)
):
    category = filters.category_from_referer(request.headers.get("referer"))
    if category is None:
        logger.warning("Unrecognized listing category from referer %r", request.headers.get("referer"))
        empty = schemas.ListingPage(
            data=[],
            pagination=schemas.Pagination(current_page=page, total_pages=0, limit=limit, total_items=0),
        )
        return JSONResponse(status_code=400, content=empty.model_dump(mode="json", by_alias=True))
    try:
        query = filters.build_listing_query(
            category,
            page=page,
            limit=limit,
            search=search,
            details=details,
            features=features,
            sort_by=sort_by,
            min_price=min_price,
            max_price=max_price,
            detail_order=services.detail_order(db),
        )
        return services.search_listings(db, query)
    except Exception as e:
        logger.exception("Listing search failed: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch car data")


@router.get("/api/car/{listing_id}", response_model=schemas.ListingOut)
def get_car(listing_id: int, db: Session = Depends(get_db)):
    obj = crud.get_listing(db, listing_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Listing not found")
    return schemas.ListingOut.from_listing(obj, services.detail_order(db))


@router.put("/api/car/{listing_id}", response_model=schemas.ListingOut)
def replace_car(listing_id: int, form=Depends(_read_form), db: Session = Depends(get_db)):
    payload, uploads = form
    obj = crud.get_listing(db, listing_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Listing not found")
    try:
        listing = services.replace_listing(db, obj, payload, uploads)
    except services.InvalidListingError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Listing replacement failed: %s", e)
        raise HTTPException(status_code=500, detail="Failed to process the car data")
    return schemas.ListingOut.from_listing(listing, services.detail_order(db))


@router.get("/api/features", response_model=List[schemas.FeatureOut])
def features(db: Session = Depends(get_db)):
    return crud.list_features(db)


@router.get("/api/details", response_model=List[schemas.DetailWithOptionsOut])
def details(db: Session = Depends(get_db)):
    return services.ordered_details(db)
