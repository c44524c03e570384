# app/storage.py
"""Image file storage for listing uploads.

Files land in ``UPLOAD_DIR`` and are recorded as ``{filename, path}`` pairs,
where ``path`` is the URL path they are served from.
"""
import os
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, NamedTuple
from . import config
from .utils import logger


class StorageError(RuntimeError):
    """Raised when an upload cannot be written; nothing from the batch is kept."""


class ImageUpload(NamedTuple):
    filename: str
    content: bytes


def stored_name(original: str) -> str:
    # time prefix plus a random tag keeps same-named files in one batch apart
    base = os.path.basename(original or "") or "image"
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{base}"


def _write(upload: ImageUpload) -> Dict[str, str]:
    filename = stored_name(upload.filename)
    with open(os.path.join(config.UPLOAD_DIR, filename), "wb") as fh:
        fh.write(upload.content)
    return {"filename": filename, "path": f"{config.UPLOAD_URL_PREFIX}/{filename}"}


def save_images(uploads: List[ImageUpload]) -> List[Dict[str, str]]:
    """Write all uploads concurrently and return their records in input order.

    If any write fails, the files that did get written are removed and
    `StorageError` is raised.
    """
    if not uploads:
        return []
    os.makedirs(config.UPLOAD_DIR, exist_ok=True)
    with ThreadPoolExecutor(max_workers=config.UPLOAD_WORKERS) as executor:
        futures = [executor.submit(_write, upload) for upload in uploads]
    saved, errors = [], []
    for future in futures:
        try:
            saved.append(future.result())
        except OSError as e:
            errors.append(e)
    if errors:
        discard_images(saved)
        raise StorageError(f"Failed to store {len(errors)} of {len(uploads)} images: {errors[0]}")
    logger.info("Stored %d images in %s", len(saved), config.UPLOAD_DIR)
    return saved


def discard_images(images: List[Dict[str, str]]) -> None:
    """Remove stored files for the given image records, ignoring ones already gone."""
    for image in images:
        try:
            os.remove(os.path.join(config.UPLOAD_DIR, image["filename"]))
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not remove %s: %s", image["filename"], e)
