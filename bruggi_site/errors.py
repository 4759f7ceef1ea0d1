"""Exception types raised by the content pipeline."""

from __future__ import annotations


class SiteError(Exception):
    """Base class for build failures that carry a readable message."""


class ParseError(SiteError):
    """A content descriptor or GPX track could not be parsed."""


class NotFound(SiteError):
    """A file referenced by a descriptor does not exist on disk."""


class RenderError(SiteError):
    """A template could not be rendered with the supplied view model."""
