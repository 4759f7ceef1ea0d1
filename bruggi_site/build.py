"""Full-site build and webcam publishing."""

from __future__ import annotations

import datetime as dt
import logging
import shutil
import time
from pathlib import Path
from typing import List, Optional, Tuple

from .config import LOCALES, SiteConfig
from .content import load_content, load_site
from .errors import NotFound, ParseError
from .images import ThumbnailCache, detect_image_format
from .models import LoadedContent, SiteContent
from .render import PagePlan, TemplateEngine, build_view, plan_pages, webcam_page
from .utils import static_url

logger = logging.getLogger("bruggi_site.build")

WEBCAM_CURRENT = "current.jpg"
WEBCAM_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


class BuildOrchestrator:
    """Owns the output tree; every build reconstructs it from scratch."""

    def __init__(
        self,
        config: SiteConfig,
        engine: Optional[TemplateEngine] = None,
        cache: Optional[ThumbnailCache] = None,
    ) -> None:
        self.config = config
        self.engine = engine or TemplateEngine(config.templates_dir)
        self.cache = cache or ThumbnailCache(config)

    def load(self) -> LoadedContent:
        return load_content(self.config, self.cache)

    def list_webcam_images(self) -> List[str]:
        """Archived snapshots, oldest first, excluding the rolling current image."""
        webcam_dir = self.config.webcam_dir
        if not webcam_dir.is_dir():
            return []
        names = sorted(
            entry.name
            for entry in webcam_dir.iterdir()
            if entry.is_file()
            and entry.suffix.lower() == ".jpg"
            and entry.name != WEBCAM_CURRENT
        )
        prefix = self.config.static_url_prefix
        return [static_url(f"webcam/{name}", prefix) for name in names]

    def prepare_output(self) -> None:
        output = self.config.output_dir
        if output.exists():
            shutil.rmtree(output)
        for locale in LOCALES:
            self.config.locale_output_dir(locale).mkdir(parents=True, exist_ok=True)

    def copy_static(self) -> None:
        source = self.config.static_dir
        if not source.is_dir():
            logger.warning("No static directory at %s", source)
            self.config.output_static_dir.mkdir(parents=True, exist_ok=True)
            return
        shutil.copytree(source, self.config.output_static_dir, dirs_exist_ok=True)

    def write_page(self, locale: str, plan: PagePlan) -> Path:
        destination = self.config.locale_output_dir(locale) / plan.output_name
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(self.engine.render(plan.page))
        logger.debug("Wrote %s", destination)
        return destination

    def render_locale(self, content: LoadedContent, locale: str, webcam_images: List[str]) -> int:
        view = build_view(
            locale,
            content.site,
            content.itineraries,
            content.gallery,
            webcam_images,
        )
        plans = plan_pages(view, self.config.index_gallery_limit)
        for plan in plans:
            self.write_page(locale, plan)
        return len(plans)

    def build(self) -> float:
        """Rebuild the whole output tree and return the elapsed seconds."""
        start = time.perf_counter()
        logger.info("Building site from %s", self.config.root)

        # Loading first also materializes thumbnails before static/ is mirrored,
        # and leaves the previous output untouched if the content is broken.
        content = self.load()
        self.prepare_output()
        self.copy_static()

        webcam_images = self.list_webcam_images()
        pages = 0
        for locale in LOCALES:
            pages += self.render_locale(content, locale, webcam_images)

        elapsed = time.perf_counter() - start
        logger.info("Build complete in %.2fs (%d pages)", elapsed, pages)
        return elapsed

    def render_webcam_pages(self, site: SiteContent) -> None:
        """Re-render only the webcam page of every locale."""
        webcam_images = self.list_webcam_images()
        for locale in LOCALES:
            view = build_view(locale, site, (), (), webcam_images)
            self.write_page(locale, webcam_page(view))

    def publish_webcam_snapshot(
        self,
        source: Path,
        now: Optional[dt.datetime] = None,
    ) -> Tuple[str, str]:
        """Install a new snapshot as current and archived image, then refresh webcam pages."""
        if not source.is_file():
            raise NotFound(f"Webcam image not found: {source}")
        with source.open("rb") as handle:
            head = handle.read(262)
        if detect_image_format(head) != "jpg":
            raise ParseError(f"Webcam image must be a JPEG: {source}")

        now = now or dt.datetime.now()
        archived = f"{now.strftime(WEBCAM_TIMESTAMP_FORMAT)}.jpg"
        targets = (self.config.webcam_dir, self.config.output_static_dir / "webcam")
        for directory in targets:
            directory.mkdir(parents=True, exist_ok=True)
            for name in (WEBCAM_CURRENT, archived):
                shutil.copyfile(source, directory / name)
                logger.debug("Copied %s to %s", source, directory / name)

        self.render_webcam_pages(load_site(self.config))
        logger.info("Published webcam snapshot %s as %s", source, archived)
        return WEBCAM_CURRENT, archived
