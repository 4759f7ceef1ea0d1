"""Data models used throughout the content pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

HIKING = "hiking"
BIKING = "biking"
ITINERARY_TYPES = (HIKING, BIKING)


@dataclass(frozen=True)
class TrackPoint:
    """Single GPS fix; coordinates in degrees, elevation in meters."""

    latitude: float
    longitude: float
    elevation: float = 0.0


@dataclass(frozen=True)
class GalleryImage:
    """Image shown in a gallery, with its derived thumbnail URL."""

    url: str
    thumbnail: str
    alt: str = ""
    author: str = ""


@dataclass(frozen=True)
class Contacts:
    email: str = ""
    phone: str = ""
    address: str = ""


@dataclass(frozen=True)
class EventItem:
    name: str
    date: str = ""
    time: str = ""


@dataclass(frozen=True)
class EventsLocale:
    title: str
    items: Tuple[EventItem, ...] = ()


@dataclass(frozen=True)
class Events:
    """August events block; the whole section is hidden when disabled."""

    enabled: bool = False
    locales: Dict[str, EventsLocale] = field(default_factory=dict)


@dataclass(frozen=True)
class ItineraryText:
    title: str
    description: str
    long_description: str = ""
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Itinerary:
    """One hiking or biking route, fully resolved for a single build."""

    slug: str
    type: str
    image: str
    texts: Dict[str, ItineraryText]
    difficulty: str = ""
    duration: str = ""
    distance_km: float = 0.0
    elevation_gain: int = 0
    gpx_file: str = ""
    youtube_video_id: str = ""
    author: str = ""
    gallery: Tuple[str, ...] = ()
    gallery_images: Tuple[GalleryImage, ...] = ()

    @property
    def has_track(self) -> bool:
        return bool(self.gpx_file)

    def text(self, locale: str) -> ItineraryText:
        return self.texts[locale]


@dataclass
class SiteContent:
    """Locale-invariant assets plus one string dictionary per locale."""

    hero_images: List[str]
    welcome_image: str
    contacts: Contacts
    locales: Dict[str, Dict[str, Any]]
    itineraries_hero_image: str = ""
    events: Events = field(default_factory=Events)


@dataclass
class LoadedContent:
    """Everything the renderer needs, produced once per build."""

    site: SiteContent
    itineraries: List[Itinerary]
    gallery: List[GalleryImage]
