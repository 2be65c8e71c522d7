"""
Albums - photo album entity, persistence and queries.

Usage:
    from src.albums import Album, Albums

    album = Album({"rootDir": root, "albumDir": path, "collection": coll, "redis": redis})
    await album.init()
    await album.save()
"""
from .album import Album, AlbumState
from .errors import (
    AddImageError,
    AlbumError,
    AlbumIOError,
    DeleteError,
    InitError,
    NotFoundError,
    PathError,
    PersistenceError,
    PipelineError,
)
from .models import (
    AddImageResult,
    AlbumConfig,
    DeleteAlbumResult,
    ImageDescriptor,
    ImagePatch,
    InitSkip,
    SaveResult,
    StepResult,
    UpdateImageResult,
    normalize_album_config,
)
from .queries import Albums
from .stream import RecentAlbumsStream, RecentEntry
from .unpacker import ArchiveUnpacker, UnpackResult

__all__ = [
    "Album",
    "AlbumState",
    "Albums",

    # Errors
    "AlbumError",
    "PathError",
    "AlbumIOError",
    "PipelineError",
    "PersistenceError",
    "NotFoundError",
    "InitError",
    "AddImageError",
    "DeleteError",

    # Models
    "AlbumConfig",
    "ImageDescriptor",
    "ImagePatch",
    "InitSkip",
    "normalize_album_config",
    "StepResult",
    "SaveResult",
    "AddImageResult",
    "UpdateImageResult",
    "DeleteAlbumResult",

    # Collaborators
    "RecentAlbumsStream",
    "RecentEntry",
    "ArchiveUnpacker",
    "UnpackResult",
]
