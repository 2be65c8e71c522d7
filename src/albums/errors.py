"""
Albums - Error taxonomy

All errors raised by the albums package derive from AlbumError. Wrapped
errors keep the original exception as ``__cause__`` (``raise ... from e``).
"""
from typing import Optional


class AlbumError(Exception):
    """Base class for album errors."""


class PathError(AlbumError):
    """Root/album directory relationship is invalid or unresolvable."""


class AlbumIOError(AlbumError):
    """Filesystem create/remove/write failure."""


class PipelineError(AlbumError):
    """Metadata extraction or image resize/convert/rotate failure."""

    def __init__(self, message: str, image: Optional[str] = None, geometry: Optional[str] = None):
        super().__init__(message)
        self.image = image
        self.geometry = geometry


class PersistenceError(AlbumError):
    """The document store raised while writing."""


class NotFoundError(AlbumError):
    """A lookup matched nothing."""


class InitError(AlbumError):
    """Album initialization failed, the instance must not be used."""


class AddImageError(AlbumError):
    """Adding an image to an album failed."""


class DeleteError(AlbumError):
    """Deleting an image or an album failed."""
