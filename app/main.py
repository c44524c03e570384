import os
import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from app.db import Base, engine
from app.config import HOST, PORT, UPLOAD_DIR, UPLOAD_URL_PREFIX
from app.api.routes import router as api_router
from app.utils import logger
import app.models  # noqa: F401 ensure models are imported so tables are known

# create FastAPI instance
app = FastAPI(title="Car Inventory API")
app.include_router(api_router)

# uploaded listing images are served back from where their records point
os.makedirs(UPLOAD_DIR, exist_ok=True)
app.mount(f"/{UPLOAD_URL_PREFIX}", StaticFiles(directory=UPLOAD_DIR), name="uploads")


@app.on_event("startup")
def on_startup_create_tables():
    # Ensure database tables are created on startup
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")


def serve():
    """Run the API with uvicorn on ``HOST``/``PORT``."""
    uvicorn.run(app, host=HOST, port=PORT)


if __name__ == "__main__":
    serve()
