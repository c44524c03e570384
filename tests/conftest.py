# tests/conftest.py
import os
import shutil
import tempfile
import pytest

# settings are read on import; point them at throwaway resources first
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="car-uploads-")

from app import config, crud, schemas, services  # noqa: E402
from app.db import Base, engine, SessionLocal  # noqa: E402
import app.models  # noqa: E402,F401

REFERENCE = {
    "features": [
        {"name": "Bluetooth", "icon": "bluetooth.svg"},
        {"name": "Sunroof"},
        {"name": "Tow Package"},
    ],
    "details": [
        {"name": "Color", "options": [{"name": "Red"}, {"name": "Blue"}, {"name": "Green"}]},
        {"name": "Make", "options": [{"name": "Ford"}, {"name": "Toyota"}]},
        {"name": "Year", "options": [{"name": "2018"}, {"name": "2020"}, {"name": "2022"}]},
    ],
    "orderings": [{"name": "CarDetail", "details": ["Year", "Make", "Color"]}],
}


class Reference:
    """Name -> id lookups for the loaded reference data."""

    def __init__(self, db):
        details = crud.list_details(db)
        self.features = {f.name: f.id for f in crud.list_features(db)}
        self.details = {d.name: d.id for d in details}
        self.options = {(d.name, o.name): o.id for d in details for o in d.options}

    def detail_refs(self, details):
        return [
            {"detail": self.details[name], "option": self.options[(name, value)] if value else None}
            for name, value in details.items()
        ]

    def payload(self, title, price, details=None, features=(), domain=("cars",), **fields):
        return schemas.ListingIn(
            title=title,
            price=price,
            details=self.detail_refs(details or {}),
            features=[self.features[name] for name in features],
            domain=list(domain),
            **fields,
        )


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def upload_dir():
    yield config.UPLOAD_DIR
    for name in os.listdir(config.UPLOAD_DIR):
        path = os.path.join(config.UPLOAD_DIR, name)
        if os.path.isdir(path):
            shutil.rmtree(path)
        else:
            os.remove(path)


@pytest.fixture
def reference(db):
    services.load_reference_data(db, REFERENCE)
    return Reference(db)


@pytest.fixture
def add_listing(db, reference):
    def _add(title, price, **kwargs):
        return services.ingest_listing(db, reference.payload(title, price, **kwargs), [])
    return _add


@pytest.fixture
def reference_data():
    return REFERENCE
