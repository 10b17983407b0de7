"""
services.photo_service - Student photo storage.

Photos are cropped, fitted to a fixed portrait size on a white
background and stored as JPEG under PHOTOS_DIR/<school_id>/<srn>.jpg.
Paths saved on the Student row are relative to PHOTOS_DIR.
"""

from __future__ import annotations

import io
import logging
import re
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

import config

logger = logging.getLogger(__name__)

NO_PHOTO = "No photo"

_UNSAFE = re.compile(r"[^\w\-.]+")


class PhotoError(Exception):
    """Raised when an upload cannot be turned into a photo."""
    pass


def photo_filename(student) -> str:
    """Export label for a student's photo."""
    return f"{student.srn_no}.jpg" if student.photo_path else NO_PHOTO


def photo_rel_path(school_id: str, srn_no: str) -> str:
    return f"{_UNSAFE.sub('_', school_id)}/{_UNSAFE.sub('_', srn_no)}.jpg"


def photo_abspath(rel_path: str) -> Path:
    """Resolve a stored relative path, refusing anything outside PHOTOS_DIR."""
    root = Path(config.PHOTOS_DIR).resolve()
    target = (root / rel_path).resolve()
    if root not in target.parents:
        raise PhotoError(f"Invalid photo path: {rel_path}")
    return target


def prepare_photo(
    image_bytes: bytes,
    box: tuple[int, int, int, int] | None = None,
) -> Image.Image:
    """Decode, optionally crop to ``box`` (left, top, right, bottom), and fit to size."""
    try:
        img = Image.open(io.BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise PhotoError(f"Unreadable image: {exc}") from exc

    img = ImageOps.exif_transpose(img)

    if box is not None:
        left, top, right, bottom = box
        if not (0 <= left < right <= img.width and 0 <= top < bottom <= img.height):
            raise PhotoError(f"Crop box {box} outside image {img.width}x{img.height}")
        img = img.crop(box)

    if img.mode in ("RGBA", "LA", "P"):
        img = img.convert("RGBA")
        background = Image.new("RGB", img.size, "white")
        background.paste(img, mask=img.split()[-1])
        img = background
    else:
        img = img.convert("RGB")

    return ImageOps.pad(img, (config.PHOTO_WIDTH, config.PHOTO_HEIGHT), color="white")


def store_photo(
    school_id: str,
    srn_no: str,
    image_bytes: bytes,
    box: tuple[int, int, int, int] | None = None,
    previous: str | None = None,
) -> str:
    """
    Save a student's photo and return its path relative to PHOTOS_DIR.
    A previous photo stored under a different name is removed.
    """
    img = prepare_photo(image_bytes, box)

    rel_path = photo_rel_path(school_id, srn_no)
    target = photo_abspath(rel_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    img.save(target, format="JPEG", quality=config.PHOTO_QUALITY)
    logger.info("Stored photo %s", rel_path)

    if previous and previous != rel_path:
        delete_photo(previous)
    return rel_path


def load_photo(rel_path: str) -> bytes:
    path = photo_abspath(rel_path)
    if not path.is_file():
        raise PhotoError(f"Photo not found: {rel_path}")
    return path.read_bytes()


def delete_photo(rel_path: str | None) -> None:
    if not rel_path:
        return
    try:
        path = photo_abspath(rel_path)
    except PhotoError:
        logger.warning("Refusing to delete photo outside store: %s", rel_path)
        return
    if path.is_file():
        path.unlink()
        logger.info("Deleted photo %s", rel_path)


def rename_photo(rel_path: str, school_id: str, srn_no: str) -> str | None:
    """Move a stored photo to match a changed SRN; returns the new relative path."""
    new_rel = photo_rel_path(school_id, srn_no)
    if new_rel == rel_path:
        return rel_path
    src, dst = photo_abspath(rel_path), photo_abspath(new_rel)
    if not src.is_file():
        logger.warning("Photo %s missing, clearing reference", rel_path)
        return None
    dst.parent.mkdir(parents=True, exist_ok=True)
    src.replace(dst)
    return new_rel
