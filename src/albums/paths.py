"""
Albums - Path Resolver

Validates the root/album directory relationship and derives the public
URL fragments of an album from its directory.
"""
import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from src.albums.errors import AlbumIOError, PathError
from src.core.logging import component_logger


@dataclass(frozen=True)
class AlbumUrls:
    album_url: str
    album_image_url: str


def join_url(base: Optional[str], name: str) -> str:
    """``base/name`` without doubling the slash, empty when there is no base."""
    if not base:
        return ""
    return f"{base}{'' if base.endswith('/') else '/'}{name}"


class PathResolver:
    """
    Root/album directory rules.

    - album dir must be a strict descendant of the root dir
    - album image url is everything after the public assets marker
    """

    def __init__(self, public_marker: str = "public", log=None):
        self.public_marker = public_marker
        self.log = log or component_logger("albums.paths")

    def resolve(self, root_dir: str, album_dir: str) -> str:
        """
        Canonical album directory.

        Raises:
            PathError: If album_dir is not inside root_dir.
        """
        if not root_dir or not album_dir:
            raise PathError(f"Cannot resolve album dir {album_dir!r} against root {root_dir!r}")
        root = os.path.abspath(root_dir)
        album = os.path.abspath(album_dir)
        try:
            relative = os.path.relpath(album, root)
        except ValueError as e:
            # different drives on Windows
            raise PathError(f"Album dir {album} is not in {root}") from e

        if relative == os.curdir or relative.split(os.sep)[0] == os.pardir \
                or os.path.join(root, relative) != album:
            self.log.error(f"rootDir: {root}, albumDir: {album}, path difference: {relative}")
            raise PathError(f"Album dir {album} is not in {root}")
        return album

    async def ensure_root(self, root_dir: str) -> bool:
        """
        Check that root_dir exists, creating it recursively if missing.

        Returns:
            True if it already existed, False if it was just created.

        Raises:
            AlbumIOError: If the directory cannot be created.
        """
        root = Path(root_dir).resolve()
        if await asyncio.to_thread(root.is_dir):
            return True
        self.log.warning(f"Expected album root dir is missing: {root}")
        try:
            await asyncio.to_thread(root.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            self.log.error(f"Failed to make album root dir {root}: {e}")
            raise AlbumIOError(f"Failed to make album root dir: {root}") from e
        self.log.info(f"Created album root dir: {root}")
        return False

    def derive_urls(self, album_dir: str, album_url: Optional[str] = None,
                    album_image_url: Optional[str] = None) -> AlbumUrls:
        """
        Derive public URL fragments from the album directory.

        Explicitly supplied values are kept as they are.

        Raises:
            PathError: If no image url was supplied and the path has no
                public marker segment.
        """
        album = Path(os.path.abspath(album_dir))
        url = album_url or album.name
        if album_image_url:
            return AlbumUrls(url, album_image_url)

        parts = album.parent.parts
        if self.public_marker not in parts:
            raise PathError(
                f"No '{self.public_marker}' segment in {album}, cannot derive the album image url")
        index = parts.index(self.public_marker)
        image_url = "/".join(parts[index + 1:] + (album.name,))
        self.log.debug(f"album image url derived: {image_url}")
        return AlbumUrls(url, image_url)
