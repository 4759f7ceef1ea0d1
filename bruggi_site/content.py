"""Parse TOML content descriptors into typed, render-ready records."""

from __future__ import annotations

import logging
import tomllib
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set, TypeVar

from .config import DEFAULT_LOCALE, LOCALES, SiteConfig
from .errors import NotFound, ParseError
from .gpx import analyze_file
from .images import ThumbnailCache
from .models import (
    ITINERARY_TYPES,
    Contacts,
    EventItem,
    Events,
    EventsLocale,
    GalleryImage,
    Itinerary,
    ItineraryText,
    LoadedContent,
    SiteContent,
)
from .utils import slugify, static_url, strip_static_prefix

logger = logging.getLogger("bruggi_site.content")

T = TypeVar("T")
R = TypeVar("R")

INDEX_FILE = "index.toml"
EVENTS_FILE = "august_events.toml"
GALLERY_FILE = "galleries.toml"

REQUIRED_LOCALE_KEYS: Dict[str, Sequence[str]] = {
    "nav": ("home", "itineraries", "webcam", "gallery", "contact"),
    "hero": ("title", "subtitle", "cta"),
    "welcome": ("title", "subtitle", "description", "altitude", "founded", "cta_history"),
    "sections": (
        "itineraries_title",
        "itineraries_subtitle",
        "see_all_itineraries",
        "read_more",
        "filter_all",
        "filter_hiking",
        "filter_biking",
        "gallery_title",
        "gallery_subtitle",
        "see_all_gallery",
    ),
    "itinerary_page": (
        "trail_details",
        "author",
        "type",
        "type_hiking",
        "type_biking",
        "duration",
        "distance",
        "elevation_gain",
        "download_gpx",
        "gpx_not_available",
        "description",
        "difficulty",
        "difficulty_easy",
        "difficulty_medium",
        "difficulty_hard",
    ),
    "webcam_page": (
        "title",
        "live",
        "panorama_title",
        "location",
        "snapshot",
        "timelapse",
        "status_online",
        "next_update",
    ),
    "contact_info": (
        "title",
        "subtitle",
        "email_label",
        "phone_label",
        "address_label",
        "form_title",
        "form_name",
        "form_email",
        "form_message",
        "form_submit",
    ),
    "footer": ("motto", "explore_title", "contacts_title", "copyright"),
}

REQUIRED_EVENT_KEYS: Dict[str, Sequence[str]] = {"": ("title",)}
REQUIRED_ITINERARY_KEYS: Dict[str, Sequence[str]] = {"": ("title", "description")}


def read_toml(path: Path) -> Dict[str, Any]:
    """Decode a descriptor, turning any syntax or I/O problem into ParseError."""
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ParseError(f"Missing content descriptor: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ParseError(f"Malformed TOML in {path}: {exc}") from exc


def _key_paths(table: Mapping[str, Any], prefix: str = "") -> Set[str]:
    paths: Set[str] = set()
    for key, value in table.items():
        path = f"{prefix}{key}"
        paths.add(path)
        if isinstance(value, Mapping):
            paths |= _key_paths(value, path + ".")
    return paths


def check_locale_tables(
    data: Mapping[str, Any],
    source: Path,
    required: Optional[Mapping[str, Sequence[str]]] = None,
) -> Dict[str, Dict[str, Any]]:
    """Return the per-locale tables of a descriptor after validating them.

    Every locale must provide the required keys, and all locales must share
    exactly the same nested key structure.
    """
    tables: Dict[str, Dict[str, Any]] = {}
    for locale in LOCALES:
        table = data.get(locale)
        if not isinstance(table, dict):
            raise ParseError(f"{source}: missing [{locale}] table")
        tables[locale] = table

    for locale, table in tables.items():
        for section, keys in (required or {}).items():
            scope = table.get(section) if section else table
            label = f"{locale}.{section}" if section else locale
            if not isinstance(scope, dict):
                raise ParseError(f"{source}: missing [{label}] table")
            missing = [key for key in keys if not isinstance(scope.get(key), str)]
            if missing:
                raise ParseError(f"{source}: [{label}] lacks string keys {', '.join(missing)}")

    reference = _key_paths(tables[DEFAULT_LOCALE])
    for locale, table in tables.items():
        paths = _key_paths(table)
        if paths != reference:
            missing = sorted(reference - paths)
            extra = sorted(paths - reference)
            raise ParseError(
                f"{source}: [{locale}] is not parallel to [{DEFAULT_LOCALE}]"
                f" (missing: {missing or '-'}, extra: {extra or '-'})"
            )
    return tables


def _get(data: Mapping[str, Any], key: str, kind: type, default: Any, source: Path) -> Any:
    value = data.get(key, default)
    if kind is float and isinstance(value, int) and not isinstance(value, bool):
        value = float(value)
    wrong_bool = isinstance(value, bool) and kind is not bool
    if wrong_bool or not isinstance(value, kind):
        raise ParseError(f"{source}: '{key}' must be of type {kind.__name__}")
    return value


def _get_str_list(data: Mapping[str, Any], key: str, source: Path) -> List[str]:
    values = _get(data, key, list, [], source)
    if not all(isinstance(item, str) for item in values):
        raise ParseError(f"{source}: '{key}' must be a list of strings")
    return list(values)


def _map(config: SiteConfig, func: Callable[[T], R], items: Iterable[T]) -> List[R]:
    """Apply func to each item, on a thread pool when configured; keeps input order."""
    items = list(items)
    if config.workers <= 1 or len(items) <= 1:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=config.workers) as pool:
        return list(pool.map(func, items))


def process_gallery_image(
    raw: str,
    cache: ThumbnailCache,
    alt: str = "",
    author: str = "",
) -> GalleryImage:
    """Derive the thumbnail for one image, degrading to the original on failure."""
    try:
        url, thumbnail = cache.ensure(raw)
    except (NotFound, ParseError) as exc:
        logger.warning("Processing image %s failed: %s", raw, exc)
        url = static_url(raw, cache.prefix)
        thumbnail = url
    return GalleryImage(url=url, thumbnail=thumbnail, alt=alt, author=author)


def load_site(config: SiteConfig) -> SiteContent:
    path = config.content_dir / INDEX_FILE
    data = read_toml(path)
    locales = check_locale_tables(data, path, REQUIRED_LOCALE_KEYS)
    prefix = config.static_url_prefix

    hero = _get(data, "hero", dict, {}, path)
    welcome = _get(data, "welcome", dict, {}, path)
    itineraries = _get(data, "itineraries", dict, {}, path)
    contacts = _get(data, "contacts", dict, {}, path)

    return SiteContent(
        hero_images=[static_url(img, prefix) for img in _get_str_list(hero, "images", path)],
        welcome_image=static_url(_get(welcome, "image", str, "", path), prefix),
        itineraries_hero_image=static_url(_get(itineraries, "hero_image", str, "", path), prefix),
        contacts=Contacts(
            email=_get(contacts, "email", str, "", path),
            phone=_get(contacts, "phone", str, "", path),
            address=_get(contacts, "address", str, "", path),
        ),
        locales=locales,
        events=load_events(config),
    )


def load_events(config: SiteConfig) -> Events:
    path = config.content_dir / EVENTS_FILE
    if not path.exists():
        logger.debug("No events descriptor at %s; events disabled", path)
        return Events()
    data = read_toml(path)
    tables = check_locale_tables(data, path, REQUIRED_EVENT_KEYS)
    locales: Dict[str, EventsLocale] = {}
    for locale, table in tables.items():
        items = []
        for entry in _get(table, "items", list, [], path):
            if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
                raise ParseError(f"{path}: every [[{locale}.items]] entry needs a name")
            items.append(
                EventItem(
                    name=entry["name"],
                    date=_get(entry, "date", str, "", path),
                    time=_get(entry, "time", str, "", path),
                )
            )
        locales[locale] = EventsLocale(title=table["title"], items=tuple(items))
    return Events(enabled=_get(data, "enabled", bool, False, path), locales=locales)


def load_gallery(config: SiteConfig, cache: ThumbnailCache) -> List[GalleryImage]:
    path = config.content_dir / GALLERY_FILE
    data = read_toml(path)
    entries = _get(data, "images", list, [], path)
    for entry in entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("url"), str):
            raise ParseError(f"{path}: every [[images]] entry needs a url")
        _get(entry, "alt", str, "", path)
        _get(entry, "author", str, "", path)

    return _map(
        config,
        lambda entry: process_gallery_image(
            entry["url"], cache, alt=entry.get("alt", ""), author=entry.get("author", "")
        ),
        entries,
    )


def parse_itinerary(path: Path, data: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate one itinerary descriptor and return constructor arguments."""
    slug = _get(data, "slug", str, "", path).strip() or slugify(path.stem)
    kind = _get(data, "type", str, "", path)
    if kind not in ITINERARY_TYPES:
        raise ParseError(f"{path}: type must be one of {', '.join(ITINERARY_TYPES)}, got '{kind}'")
    if slug in ITINERARY_TYPES:
        # Detail pages share a directory with the filtered list pages.
        raise ParseError(f"{path}: slug '{slug}' is reserved")

    tables = check_locale_tables(data, path, REQUIRED_ITINERARY_KEYS)
    texts = {}
    for locale, table in tables.items():
        texts[locale] = ItineraryText(
            title=table["title"],
            description=table["description"],
            long_description=_get(table, "long_description", str, "", path),
            tags=tuple(_get_str_list(table, "tags", path)),
        )

    return {
        "slug": slug,
        "type": kind,
        "image": _get(data, "image", str, "", path),
        "texts": texts,
        "difficulty": _get(data, "difficulty", str, "", path),
        "duration": _get(data, "duration", str, "", path),
        "distance_km": _get(data, "distance_km", float, 0.0, path),
        "elevation_gain": _get(data, "elevation_gain", int, 0, path),
        "gpx_file": _get(data, "gpx_file", str, "", path).strip(),
        "youtube_video_id": _get(data, "youtube_video_id", str, "", path),
        "author": _get(data, "author", str, "", path),
        "gallery": tuple(_get_str_list(data, "gallery", path)),
    }


def resolve_itinerary(draft: Dict[str, Any], config: SiteConfig, cache: ThumbnailCache) -> Itinerary:
    """Attach computed track metrics and gallery thumbnails to a parsed itinerary."""
    prefix = config.static_url_prefix
    fields = dict(draft)
    fields["image"] = static_url(fields["image"], prefix)

    if fields["gpx_file"]:
        relative = strip_static_prefix(fields["gpx_file"], prefix)
        gpx_path = config.static_dir / relative
        try:
            gain, distance = analyze_file(gpx_path)
        except (NotFound, ParseError) as exc:
            logger.warning("Failed to process GPX %s: %s", gpx_path, exc)
        else:
            fields["elevation_gain"] = gain
            fields["distance_km"] = distance
            logger.debug("%s: %d m gain over %.2f km", fields["slug"], gain, distance)
        fields["gpx_file"] = static_url(relative, prefix)

    fields["gallery_images"] = tuple(
        process_gallery_image(raw, cache) for raw in fields["gallery"]
    )
    return Itinerary(**fields)


def load_itineraries(config: SiteConfig, cache: ThumbnailCache) -> List[Itinerary]:
    drafts = []
    for path in config.itineraries_dir.rglob("*.toml"):
        if path.is_file():
            drafts.append(parse_itinerary(path, read_toml(path)))

    seen: Dict[str, int] = {}
    for draft in drafts:
        seen[draft["slug"]] = seen.get(draft["slug"], 0) + 1
    duplicates = sorted(slug for slug, count in seen.items() if count > 1)
    if duplicates:
        raise ParseError(f"Duplicate itinerary slugs: {', '.join(duplicates)}")

    drafts.sort(key=lambda draft: draft["slug"])
    return _map(config, lambda draft: resolve_itinerary(draft, config, cache), drafts)


def load_content(config: SiteConfig, cache: Optional[ThumbnailCache] = None) -> LoadedContent:
    """Load every descriptor under the content root; any ParseError is fatal."""
    cache = cache or ThumbnailCache(config)
    site = load_site(config)
    gallery = load_gallery(config, cache)
    itineraries = load_itineraries(config, cache)
    logger.info(
        "Loaded %d itineraries and %d gallery images", len(itineraries), len(gallery)
    )
    return LoadedContent(site=site, itineraries=itineraries, gallery=gallery)
