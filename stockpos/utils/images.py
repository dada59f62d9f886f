# utils/images.py
import logging
import shutil
import uuid
from pathlib import Path
from typing import BinaryIO, Optional

logger = logging.getLogger(__name__)

# Accepted upload types and the extension the stored file gets
ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


def save_image(source: BinaryIO, content_type: str, images_dir: Path) -> Path:
    """Copy an uploaded picture into images_dir under a fresh name.

    The client filename is never used, so the file always lands directly
    inside images_dir.
    """
    ext = ALLOWED_CONTENT_TYPES[content_type]
    images_dir.mkdir(parents=True, exist_ok=True)
    target = images_dir / f"{uuid.uuid4()}.{ext}"
    with target.open("wb") as buffer:
        shutil.copyfileobj(source, buffer)
    return target


def remove_image(path: Optional[str], images_dir: Path) -> None:
    # Only files we stored ourselves are deleted
    if not path:
        return
    candidate = Path(path)
    try:
        if candidate.resolve().parent != images_dir.resolve():
            return
        candidate.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove image {path}: {e}")
