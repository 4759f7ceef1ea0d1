"""Configuration objects and constants for the site builder."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_LOCALE = "it"
LOCALES = ("it", "en")
STATIC_URL_PREFIX = "/static/"
THUMBNAIL_WIDTH = 600
INDEX_GALLERY_LIMIT = 8
DEFAULT_PORT = 8080
ROOT_ENV_VAR = "BRUGGI_SITE_ROOT"


@dataclass
class SiteConfig:
    """Locations and knobs that control a build."""

    root: Path
    static_url_prefix: str = STATIC_URL_PREFIX
    thumbnail_width: int = THUMBNAIL_WIDTH
    index_gallery_limit: int = INDEX_GALLERY_LIMIT
    workers: int = 1
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls, root: Optional[Path] = None, **overrides) -> "SiteConfig":
        """Resolve the site root from the argument, the environment, or cwd."""
        if root is None:
            env_root = os.getenv(ROOT_ENV_VAR)
            root = Path(env_root).expanduser() if env_root else Path.cwd()
        return cls(root=Path(root).resolve(), **overrides)

    @property
    def content_dir(self) -> Path:
        return self.root / "content"

    @property
    def itineraries_dir(self) -> Path:
        return self.content_dir / "itineraries"

    @property
    def templates_dir(self) -> Path:
        return self.root / "templates"

    @property
    def static_dir(self) -> Path:
        return self.root / "static"

    @property
    def thumbs_dir(self) -> Path:
        return self.static_dir / "thumbs"

    @property
    def webcam_dir(self) -> Path:
        return self.static_dir / "webcam"

    @property
    def output_dir(self) -> Path:
        return self.root / "dist"

    @property
    def output_static_dir(self) -> Path:
        return self.output_dir / "static"

    def locale_output_dir(self, locale: str) -> Path:
        """Default locale renders at the output root, others in a subdirectory."""
        if locale == DEFAULT_LOCALE:
            return self.output_dir
        return self.output_dir / locale
