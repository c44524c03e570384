# tests/test_routes.py
import json
import os
import pytest
from fastapi.testclient import TestClient
from app import config
from app.main import app

INVENTORY = {"Referer": "http://localhost:3000/inventory"}


@pytest.fixture
def client(db):
    with TestClient(app) as c:
        yield c


def form_for(reference, title, price, details=None, features=(), domain=("cars",)):
    return {
        "title": title,
        "price": price,
        "extra": "",
        "details": json.dumps(reference.detail_refs(details or {})),
        "features": json.dumps([reference.features[name] for name in features]),
        "videos": json.dumps([]),
        "pages": json.dumps([]),
        "sellerNotes": json.dumps([]),
        "domain": json.dumps(list(domain)),
    }


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_upload_with_two_images(client, reference, upload_dir):
    files = [
        ("images", ("front.jpg", b"front-bytes", "image/jpeg")),
        ("images", ("back.jpg", b"back-bytes", "image/jpeg")),
    ]
    data = form_for(reference, "Ford Focus", "$12,500", details={"Color": "Red"}, features=["Bluetooth"])
    response = client.post("/api/car", data=data, files=files)
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Car data uploaded successfully"
    images = body["car"]["images"]
    assert len(images) == 2
    assert all(image["filename"] and image["path"] for image in images)
    assert sorted(os.listdir(upload_dir)) == sorted(image["filename"] for image in images)

    served = client.get("/" + images[0]["path"])
    assert served.status_code == 200
    assert served.content == b"front-bytes"


def test_upload_response_shape(client, reference):
    data = form_for(reference, "Ford Focus", "$12,500", details={"Color": "Red", "Year": "2020"}, features=["Bluetooth"])
    data["sellerNotes"] = json.dumps([{"note": 4, "texts": [5, 6]}])
    car = client.post("/api/car", data=data).json()["car"]
    assert car["title"] == "Ford Focus"
    assert car["price"] == "$12,500"
    assert car["domain"] == ["cars"]
    assert car["sellerNotes"] == [{"note": 4, "texts": [5, 6]}]
    assert "createdAt" in car and "updatedAt" in car
    # custom ordering puts Year before Color
    assert [d["detail"]["name"] for d in car["details"]] == ["Year", "Color"]
    assert car["details"][0]["option"]["detailId"] == reference.details["Year"]
    assert car["features"] == [{"id": reference.features["Bluetooth"], "name": "Bluetooth", "icon": "bluetooth.svg"}]


def test_upload_with_malformed_json_is_rejected(client, reference):
    data = form_for(reference, "Ford Focus", "$12,500")
    data["details"] = "[{not json"
    response = client.post("/api/car", data=data)
    assert response.status_code == 400


def test_upload_with_unknown_reference_is_rejected(client, reference):
    data = form_for(reference, "Ford Focus", "$12,500")
    data["features"] = json.dumps([999])
    response = client.post("/api/car", data=data)
    assert response.status_code == 400
    assert "999" in response.json()["detail"]


def test_search_first_page(client, add_listing):
    for i, price in enumerate(["$12,500", "$8,000", "$30,000", "$15,250", "$9,999"]):
        add_listing(f"Car {i}", price)
    response = client.get("/api/car?page=1&limit=2", headers=INVENTORY)
    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {
        "currentPage": 1,
        "totalPages": 3,
        "limit": 2,
        "totalItems": 5,
        "priceRange": {"min": 8000, "max": 30000},
    }


def test_search_last_page_is_partial(client, add_listing):
    for i in range(5):
        add_listing(f"Car {i}", f"${i + 1},000")
    body = client.get("/api/car?page=3&limit=2", headers=INVENTORY).json()
    assert [car["title"] for car in body["data"]] == ["Car 0"]
    assert body["pagination"]["currentPage"] == 3


def test_search_detail_filter(client, add_listing):
    add_listing("Red car", "$1", details={"Color": "Red"})
    add_listing("Blue car", "$2", details={"Color": "Blue"})
    add_listing("Green car", "$3", details={"Color": "Green"})
    body = client.get("/api/car", params={"details": "Color:Red,Blue"}, headers=INVENTORY).json()
    assert sorted(car["title"] for car in body["data"]) == ["Blue car", "Red car"]


def test_search_features_sort_and_price(client, add_listing):
    add_listing("Cheap", "$9,999", features=["Sunroof"])
    add_listing("Pricey", "$12,500", features=["Sunroof", "Bluetooth"])
    add_listing("No roof", "$11,000", features=["Bluetooth"])
    params = {"features": "Sunroof", "sortBy": "price:asc", "minPrice": "5000", "maxPrice": "20000"}
    body = client.get("/api/car", params=params, headers=INVENTORY).json()
    assert [car["title"] for car in body["data"]] == ["Cheap", "Pricey"]
    assert body["pagination"]["priceRange"] == {"min": 9999, "max": 12500}


def test_search_unknown_sort_falls_back_to_newest(client, add_listing):
    add_listing("Older", "$1")
    add_listing("Newer", "$2")
    body = client.get("/api/car", params={"sortBy": "colour:asc"}, headers=INVENTORY).json()
    assert [car["title"] for car in body["data"]] == ["Newer", "Older"]


def test_search_category_from_referer(client, add_listing):
    add_listing("Sedan", "$1", domain=["cars"])
    add_listing("Pickup", "$2", domain=["trucks"])
    body = client.get("/api/car", headers={"Referer": "https://dealer.example/trucks/"}).json()
    assert [car["title"] for car in body["data"]] == ["Pickup"]


def test_search_unknown_category_is_rejected(client, add_listing):
    add_listing("Sedan", "$1")
    response = client.get("/api/car?page=2&limit=5", headers={"Referer": "http://localhost:3000/boats"})
    assert response.status_code == 400
    body = response.json()
    assert body["data"] == []
    assert body["pagination"]["totalItems"] == 0
    assert body["pagination"]["currentPage"] == 2


def test_search_without_referer_is_rejected(client, db):
    assert client.get("/api/car").status_code == 400


def test_search_bad_page_number(client, db):
    assert client.get("/api/car?page=zero", headers=INVENTORY).status_code == 422
    assert client.get("/api/car?page=0", headers=INVENTORY).status_code == 422


def test_created_listing_round_trips_through_search(client, reference):
    data = form_for(reference, "Ford Focus", "$12,500", details={"Color": "Red", "Make": "Ford"}, features=["Bluetooth", "Sunroof"])
    created = client.post("/api/car", data=data).json()["car"]
    found = client.get("/api/car", headers=INVENTORY).json()["data"]
    assert len(found) == 1
    assert found[0]["id"] == created["id"]
    assert found[0]["details"] == created["details"]
    assert found[0]["features"] == created["features"]


def test_get_car(client, add_listing):
    listing = add_listing("Ford Focus", "$12,500")
    response = client.get(f"/api/car/{listing.id}")
    assert response.status_code == 200
    assert response.json()["title"] == "Ford Focus"
    assert client.get(f"/api/car/{listing.id + 1}").status_code == 404


def test_replace_car(client, reference, add_listing):
    listing = add_listing("Ford Focus", "$12,500", details={"Color": "Red"})
    data = form_for(reference, "Ford Focus ST", "$14,000", details={"Color": "Blue"}, domain=["trucks"])
    response = client.put(f"/api/car/{listing.id}", data=data)
    assert response.status_code == 200
    car = response.json()
    assert car["title"] == "Ford Focus ST"
    assert car["details"][0]["option"]["name"] == "Blue"
    assert car["domain"] == ["trucks"]
    assert client.put(f"/api/car/{listing.id + 1}", data=data).status_code == 404


def test_reference_endpoints(client, reference):
    features = client.get("/api/features").json()
    assert [f["name"] for f in features] == ["Bluetooth", "Sunroof", "Tow Package"]
    details = client.get("/api/details").json()
    assert [d["name"] for d in details] == ["Year", "Make", "Color"]
    assert [o["name"] for o in details[0]["options"]] == ["2018", "2020", "2022"]


def test_upload_with_empty_image_part_means_no_images(client, reference, upload_dir):
    data = form_for(reference, "Ford Focus", "$12,500")
    files = [("images", ("", b"", "application/octet-stream"))]
    response = client.post("/api/car", data=data, files=files)
    assert response.status_code == 200
    assert response.json()["car"]["images"] == []
    assert os.listdir(upload_dir) == []


def test_search_paging_out_of_range_is_rejected(client, db):
    assert client.get("/api/car?page=10000000000000000000", headers=INVENTORY).status_code == 422
    assert client.get("/api/car?limit=100000", headers=INVENTORY).status_code == 422


def test_search_database_failure(client, db, monkeypatch):
    def broken_search(db, query):
        raise RuntimeError("connection lost")

    monkeypatch.setattr("app.crud.search_listings", broken_search)
    response = client.get("/api/car", headers=INVENTORY)
    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to fetch car data"}


def test_serve_runs_uvicorn(monkeypatch):
    calls = []
    monkeypatch.setattr("app.main.uvicorn.run", lambda target, **kwargs: calls.append((target, kwargs)))
    from app.main import serve
    serve()
    assert calls == [(app, {"host": config.HOST, "port": config.PORT})]
