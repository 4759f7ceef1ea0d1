"""Thumbnail derivation and image validation utilities."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Tuple

from filetype import guess
from PIL import Image

from .config import SiteConfig
from .errors import NotFound, ParseError
from .utils import static_url, strip_static_prefix

logger = logging.getLogger("bruggi_site.images")


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect image type using filetype; returns lowercase extension."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            return "jpg"
        return ext
    return None


class ThumbnailCache:
    """Keeps fixed-width thumbnails under the thumbnails root in sync with sources.

    Holds no cached state of its own: freshness is decided from file
    modification times on every call. Regeneration of a given source is
    serialized so concurrent callers never write the same thumbnail twice.
    """

    def __init__(self, config: SiteConfig) -> None:
        self.static_dir = config.static_dir
        self.thumbs_dir = config.thumbs_dir
        self.prefix = config.static_url_prefix
        self.width = config.thumbnail_width
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, relative: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(relative)
            if lock is None:
                lock = self._locks[relative] = threading.Lock()
            return lock

    def paths(self, source: str) -> Tuple[str, Path, Path]:
        relative = strip_static_prefix(source, self.prefix)
        return relative, self.static_dir / relative, self.thumbs_dir / relative

    def is_fresh(self, source_path: Path, thumb_path: Path) -> bool:
        try:
            thumb_mtime = thumb_path.stat().st_mtime
        except FileNotFoundError:
            return False
        return thumb_mtime >= source_path.stat().st_mtime

    def ensure(self, source: str) -> Tuple[str, str]:
        """Return (original URL, thumbnail URL), regenerating the thumbnail if stale."""
        relative, source_path, thumb_path = self.paths(source)
        if not relative or not source_path.is_file():
            raise NotFound(f"Source image not found: {source_path}")

        original_url = static_url(relative, self.prefix)
        thumb_url = static_url(
            f"{self.thumbs_dir.relative_to(self.static_dir).as_posix()}/{relative}",
            self.prefix,
        )

        if self.is_fresh(source_path, thumb_path):
            return original_url, thumb_url

        with self._lock_for(relative):
            # Another worker may have finished while we waited.
            if not self.is_fresh(source_path, thumb_path):
                self._generate(source_path, thumb_path)
        return original_url, thumb_url

    def _generate(self, source_path: Path, thumb_path: Path) -> None:
        try:
            with Image.open(source_path) as image:
                image.load()
                source_format = image.format
                width, height = image.size
                target_height = max(1, round(height * self.width / width))
                thumb = image.resize((self.width, target_height), Image.LANCZOS)
        except (OSError, Image.DecompressionBombError) as exc:
            raise ParseError(f"Cannot decode image {source_path}: {exc}") from exc

        if thumb.mode not in ("RGB", "L") and source_format == "JPEG":
            thumb = thumb.convert("RGB")
        thumb_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            # Thumbnails keep the source encoding whatever the file suffix says.
            thumb.save(thumb_path, format=source_format)
        except (ValueError, KeyError) as exc:
            raise ParseError(f"Cannot encode thumbnail {thumb_path}: {exc}") from exc
        logger.debug("Generated thumbnail %s (%dx%d)", thumb_path, self.width, target_height)
