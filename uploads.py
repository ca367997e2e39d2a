"""
Product image uploads.

Compression itself is left to an external image pipeline; this module only
validates the files, picks the compression parameters and stores the files
where the product image URLs point.
"""
import logging
import random
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List, Optional

from errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".webp", ".gif"}
ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"}
MAX_FILE_SIZE = 10 * 1024 * 1024
MAX_FILES = 10
MB = 1024 * 1024

PRESETS = {
    "high": (70, 800),
    "medium": (85, 1000),
    "low": (95, 1200),
}


@dataclass
class CompressionOptions:
    quality: int
    max_width: int
    max_height: int


@dataclass
class StoredImage:
    filename: str
    original_name: str
    url: str
    size: int
    compression: CompressionOptions

    def as_dict(self) -> dict:
        data = asdict(self)
        data["compression"] = {
            "quality": self.compression.quality,
            "maxWidth": self.compression.max_width,
            "maxHeight": self.compression.max_height,
        }
        data["originalName"] = data.pop("original_name")
        return data


def compression_options(quality: str, size_bytes: int,
                        max_width: Optional[int] = None, max_height: Optional[int] = None) -> CompressionOptions:
    """Pick quality and bounding box from the requested preset, or from the
    file size when the preset is ``auto`` (or unknown)."""
    if quality in PRESETS:
        q, dim = PRESETS[quality]
    elif size_bytes > 3 * MB:
        q, dim = 75, 800
    elif size_bytes > 1 * MB:
        q, dim = 85, 1000
    else:
        q, dim = 90, 1200
    options = CompressionOptions(quality=q, max_width=dim, max_height=dim)
    if max_width:
        options.max_width = int(max_width)
    if max_height:
        options.max_height = int(max_height)
    return options


class ImageUploader:
    def __init__(self, upload_dir, url_prefix: str = "/uploads/products"):
        self.upload_dir = Path(upload_dir)
        self.url_prefix = url_prefix.rstrip("/")

    def check(self, filename: str, content_type: Optional[str], size: int):
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS or (content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
            raise ValidationError("Only image files are allowed!")
        if size > MAX_FILE_SIZE:
            raise ValidationError("File size is too large. Max size is 10MB")

    def _unique_name(self, ext: str) -> str:
        return f"images-{int(time.time() * 1000)}-{random.randint(0, 10 ** 9)}{ext}"

    def store(self, files: List[tuple], quality: str = "auto",
              max_width: Optional[int] = None, max_height: Optional[int] = None) -> List[StoredImage]:
        """Store ``(filename, content_type, data)`` triples. All files are
        checked before any is written."""
        if not files:
            raise ValidationError("No files uploaded.")
        if len(files) > MAX_FILES:
            raise ValidationError("Unexpected field")
        for filename, content_type, data in files:
            self.check(filename, content_type, len(data))

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        stored = []
        for filename, content_type, data in files:
            name = self._unique_name(Path(filename).suffix.lower())
            (self.upload_dir / name).write_bytes(data)
            stored.append(StoredImage(
                filename=name,
                original_name=filename,
                url=f"{self.url_prefix}/{name}",
                size=len(data),
                compression=compression_options(quality, len(data), max_width, max_height),
            ))
            logger.info("Stored upload %s as %s (%d bytes)", filename, name, len(data))
        return stored

    def discard(self, stored: List[StoredImage]):
        """Remove files written by ``store`` that ended up unused."""
        for image in stored:
            (self.upload_dir / image.filename).unlink(missing_ok=True)
            logger.info("Discarded upload %s", image.filename)
