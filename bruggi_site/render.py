"""Locale merging, page planning and Jinja2 rendering."""

from __future__ import annotations

import copy
import datetime as dt
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError, select_autoescape

from .config import DEFAULT_LOCALE, INDEX_GALLERY_LIMIT, LOCALES
from .errors import ParseError, RenderError
from .models import BIKING, HIKING, GalleryImage, Itinerary, SiteContent
from .utils import resolve_year
from .views import (
    ContactsPage,
    GalleryPage,
    HomePage,
    ItineraryDetailPage,
    ItineraryListPage,
    ItineraryView,
    PageView,
    RenderView,
    WebcamPage,
)

logger = logging.getLogger("bruggi_site.render")

LIST_FILTERS = ("all", HIKING, BIKING)


def alternate_url(locale: str, path: str) -> str:
    """Map a page path to the same page in the other locale.

    Italian lives at the root and English under /en, so only Italian paths
    need rewriting; English pages point back at the unprefixed path.
    """
    if locale == DEFAULT_LOCALE:
        if path == "/":
            return "/en/"
        return "/en" + path
    return path


def _set_path(target: Dict[str, Any], dotted: str, value: Any) -> None:
    *parents, leaf = dotted.split(".")
    for key in parents:
        target = target.setdefault(key, {})
    target[leaf] = value


def merge_locale(
    locale: str,
    site: SiteContent,
    webcam_images: Sequence[str] = (),
    year: Optional[int] = None,
) -> Dict[str, Any]:
    """Overlay the locale-invariant fields onto a copy of one locale's strings."""
    if locale not in site.locales:
        raise ParseError(f"No strings defined for locale '{locale}'")
    strings = copy.deepcopy(site.locales[locale])
    events = site.events.locales.get(locale)
    year = year if year is not None else dt.date.today().year

    shared = {
        "hero.images": list(site.hero_images),
        "welcome.image": site.welcome_image,
        "itineraries.hero_image": site.itineraries_hero_image,
        "contacts": asdict(site.contacts),
        "webcam_page.images": list(webcam_images),
        "august_events": {
            "enabled": site.events.enabled and events is not None,
            "title": events.title if events else "",
            "items": list(events.items) if events else [],
        },
        "footer.copyright": resolve_year(strings["footer"]["copyright"], year),
    }
    for dotted, value in shared.items():
        _set_path(strings, dotted, value)
    return strings


def eligible_itineraries(itineraries: Iterable[Itinerary]) -> List[Itinerary]:
    """Only itineraries with a GPX track are published, sorted by slug."""
    return sorted((it for it in itineraries if it.has_track), key=lambda it: it.slug)


def build_view(
    locale: str,
    site: SiteContent,
    itineraries: Iterable[Itinerary],
    gallery: Sequence[GalleryImage] = (),
    webcam_images: Sequence[str] = (),
    year: Optional[int] = None,
) -> RenderView:
    strings = merge_locale(locale, site, webcam_images, year)
    views = [ItineraryView.from_itinerary(it, locale) for it in eligible_itineraries(itineraries)]
    logger.debug("Locale %s: %d published itineraries", locale, len(views))
    return RenderView(
        locale=locale,
        base_url="" if locale == DEFAULT_LOCALE else f"/{locale}",
        t=strings,
        itineraries=views,
        hiking=[view for view in views if view.type == HIKING],
        biking=[view for view in views if view.type == BIKING],
        gallery_images=list(gallery),
    )


@dataclass
class PagePlan:
    """A page to emit: its site path and the view model to render."""

    path: str
    page: PageView

    @property
    def output_name(self) -> str:
        if self.path.endswith("/"):
            return self.path.lstrip("/") + "index.html"
        return self.path.lstrip("/")


def _page(cls, view: RenderView, path: str, title: str, **extra: Any) -> PagePlan:
    page = cls(
        locale=view.locale,
        base_url=view.base_url,
        alternate_url=alternate_url(view.locale, path),
        page_title=title,
        t=view.t,
        **extra,
    )
    return PagePlan(path=path, page=page)


def webcam_page(view: RenderView) -> PagePlan:
    return _page(WebcamPage, view, "/webcam.html", view.t["webcam_page"]["title"])


def plan_pages(view: RenderView, index_gallery_limit: int = INDEX_GALLERY_LIMIT) -> List[PagePlan]:
    """Every page of one locale, in a stable order."""
    t = view.t
    plans = [
        _page(
            HomePage,
            view,
            "/",
            t["hero"]["title"],
            itineraries=view.itineraries,
            gallery_images=view.gallery_images[:index_gallery_limit],
        ),
        _page(
            GalleryPage,
            view,
            "/galleries.html",
            t["sections"]["gallery_title"],
            gallery_images=view.gallery_images,
        ),
        webcam_page(view),
        _page(ContactsPage, view, "/contacts.html", t["nav"]["contact"]),
    ]
    for name in LIST_FILTERS:
        path = "/itineraries.html" if name == "all" else f"/itineraries/{name}.html"
        plans.append(
            _page(
                ItineraryListPage,
                view,
                path,
                t["sections"]["itineraries_title"],
                itineraries=view.by_filter(name),
                current_filter=name,
            )
        )
    for itinerary in view.itineraries:
        plans.append(
            _page(
                ItineraryDetailPage,
                view,
                f"/itineraries/{itinerary.slug}.html",
                itinerary.title,
                itinerary=itinerary,
            )
        )
    return plans


class TemplateEngine:
    """Thin wrapper around a Jinja2 environment: view model in, bytes out."""

    def __init__(self, templates_dir: Path) -> None:
        self.templates_dir = templates_dir
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        self.env.globals["locales"] = LOCALES

    def render(self, page: PageView) -> bytes:
        try:
            template = self.env.get_template(page.template)
            return template.render(**page.context()).encode("utf-8")
        except TemplateError as exc:
            raise RenderError(f"Failed to render {page.template}: {exc}") from exc
