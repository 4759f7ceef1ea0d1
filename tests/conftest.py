"""Pytest fixtures and configuration."""

import shutil
from pathlib import Path

import pytest
from PIL import Image

from bruggi_site.config import SiteConfig

SAMPLE_SITE = Path(__file__).resolve().parent.parent / "site"


def make_image(path: Path, size=(1200, 800), color=(40, 90, 40)) -> Path:
    """Write a solid-colour image; format follows the file extension."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path)
    return path


def write_gpx(path: Path, points) -> Path:
    """Write a single-segment GPX track from (lat, lon, ele) tuples."""
    rows = "\n".join(
        f'      <trkpt lat="{lat}" lon="{lon}"><ele>{ele}</ele></trkpt>'
        for lat, lon, ele in points
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<gpx version="1.1" creator="tests" xmlns="http://www.topografix.com/GPX/1/1">\n'
        "  <trk>\n    <trkseg>\n"
        f"{rows}\n"
        "    </trkseg>\n  </trk>\n</gpx>\n",
        encoding="utf-8",
    )
    return path


def write_itinerary(directory: Path, slug: str, kind: str = "hiking", gpx: str = "", **extra) -> Path:
    lines = [f'slug = "{slug}"', f'type = "{kind}"', f'image = "img/{slug}.jpg"']
    if gpx:
        lines.append(f'gpx_file = "{gpx}"')
    for key, value in extra.items():
        if isinstance(value, str):
            lines.append(f'{key} = "{value}"')
        elif isinstance(value, list):
            lines.append(f"{key} = [" + ", ".join(f'"{item}"' for item in value) + "]")
        else:
            lines.append(f"{key} = {value}")
    lines += [
        "",
        "[it]",
        f'title = "Titolo {slug}"',
        f'description = "Descrizione {slug}"',
        "",
        "[en]",
        f'title = "Title {slug}"',
        f'description = "Description {slug}"',
    ]
    path = directory / f"{slug}.toml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def site_root(tmp_path):
    """A private copy of the bundled sample site."""
    root = tmp_path / "site"
    shutil.copytree(SAMPLE_SITE, root, ignore=shutil.ignore_patterns("dist", "thumbs"))
    return root


@pytest.fixture
def config(site_root):
    return SiteConfig(root=site_root)
