"""View models handed to the template engine, one record type per page kind."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Dict, List, Tuple

from .models import GalleryImage, Itinerary


@dataclass(frozen=True)
class ItineraryView:
    """An itinerary flattened to a single locale."""

    slug: str
    type: str
    image: str
    gpx_file: str
    youtube_video_id: str
    gallery: Tuple[GalleryImage, ...]
    difficulty: str
    distance_km: float
    duration: str
    elevation_gain: int
    author: str
    title: str
    description: str
    long_description: str
    tags: Tuple[str, ...]

    @classmethod
    def from_itinerary(cls, itinerary: Itinerary, locale: str) -> "ItineraryView":
        text = itinerary.text(locale)
        return cls(
            slug=itinerary.slug,
            type=itinerary.type,
            image=itinerary.image,
            gpx_file=itinerary.gpx_file,
            youtube_video_id=itinerary.youtube_video_id,
            gallery=itinerary.gallery_images,
            difficulty=itinerary.difficulty,
            distance_km=itinerary.distance_km,
            duration=itinerary.duration,
            elevation_gain=itinerary.elevation_gain,
            author=itinerary.author,
            title=text.title,
            description=text.description,
            long_description=text.long_description,
            tags=text.tags,
        )


@dataclass
class RenderView:
    """Locale-resolved projection of the site shared by every page of one locale."""

    locale: str
    base_url: str
    t: Dict[str, Any]
    itineraries: List[ItineraryView]
    hiking: List[ItineraryView]
    biking: List[ItineraryView]
    gallery_images: List[GalleryImage]

    def by_filter(self, name: str) -> List[ItineraryView]:
        return {"all": self.itineraries, "hiking": self.hiking, "biking": self.biking}[name]


@dataclass
class PageView:
    template: ClassVar[str]

    locale: str
    base_url: str
    alternate_url: str
    page_title: str
    t: Dict[str, Any]

    def context(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class HomePage(PageView):
    template: ClassVar[str] = "index.html"

    itineraries: List[ItineraryView] = field(default_factory=list)
    gallery_images: List[GalleryImage] = field(default_factory=list)


@dataclass
class GalleryPage(PageView):
    template: ClassVar[str] = "gallery.html"

    gallery_images: List[GalleryImage] = field(default_factory=list)


@dataclass
class WebcamPage(PageView):
    template: ClassVar[str] = "webcam.html"


@dataclass
class ContactsPage(PageView):
    template: ClassVar[str] = "contacts.html"


@dataclass
class ItineraryListPage(PageView):
    template: ClassVar[str] = "itinerary_list.html"

    itineraries: List[ItineraryView] = field(default_factory=list)
    current_filter: str = "all"


@dataclass
class ItineraryDetailPage(PageView):
    template: ClassVar[str] = "itinerary_detail.html"

    itinerary: ItineraryView
