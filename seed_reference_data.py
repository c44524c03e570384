import sys
import json
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()


def main(path):
    """Load features, details/options and orderings from a JSON file into the DB."""
    from app.db import Base, SessionLocal, engine
    from app.services import load_reference_data
    import app.models  # noqa: F401

    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        counts = load_reference_data(db, data)
    finally:
        db.close()
    print(f"Loaded {counts['features']} features, {counts['details']} details, "
          f"{counts['options']} options, {counts['orderings']} orderings from {path}")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        raise SystemExit("usage: python seed_reference_data.py <reference-data.json>")
    main(sys.argv[1])
