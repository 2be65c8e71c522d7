"""
Albums - Archive unpacker

Extracts a zip/tar archive of images into the albums root dir.
"""
import asyncio
import os
import shutil
from dataclasses import dataclass
from typing import Optional

from src.albums.errors import AlbumIOError
from src.core.logging import component_logger

_ARCHIVE_SUFFIXES = (".tar.gz", ".tar.bz2", ".tar.xz", ".tgz", ".tbz2", ".txz", ".zip", ".tar")


@dataclass
class UnpackResult:
    unpacked: bool
    final_path: str


def archive_stem(archive: str) -> str:
    """``/tmp/summer.tar.gz`` -> ``summer``."""
    name = os.path.basename(archive)
    lower = name.lower()
    for suffix in _ARCHIVE_SUFFIXES:
        if lower.endswith(suffix):
            return name[:-len(suffix)]
    return os.path.splitext(name)[0]


class ArchiveUnpacker:
    """Unpacks archives with shutil in a worker thread."""

    def __init__(self, log=None):
        self.log = log or component_logger("albums.unpacker")

    async def unpack(self, archive: str, dest: str, rename: Optional[str] = None) -> UnpackResult:
        """
        Extract ``archive`` below ``dest``.

        The archive is expected to hold a single top level directory named
        after the archive. That directory is the final path, renamed to
        ``rename`` when given. Archives without one are extracted into a
        directory named after the archive.

        Raises:
            AlbumIOError: If the archive cannot be read or extracted.
        """
        stem = archive_stem(archive)
        dest = os.path.abspath(dest)
        try:
            final_path = await asyncio.to_thread(self._unpack_sync, archive, dest, stem, rename)
        except (OSError, ValueError, shutil.ReadError) as e:
            self.log.error(f"Failed to unpack {archive} into {dest}: {e}")
            raise AlbumIOError(f"Failed to unpack {archive}") from e
        self.log.info(f"Unpacked {archive} to {final_path}")
        return UnpackResult(unpacked=True, final_path=final_path)

    @staticmethod
    def _unpack_sync(archive: str, dest: str, stem: str, rename: Optional[str]) -> str:
        os.makedirs(dest, exist_ok=True)
        before = set(os.listdir(dest))
        shutil.unpack_archive(archive, dest)
        created = sorted(set(os.listdir(dest)) - before)

        if len(created) == 1 and os.path.isdir(os.path.join(dest, created[0])):
            extracted = os.path.join(dest, created[0])
        elif not created:
            # everything landed in directories that already existed
            extracted = os.path.join(dest, stem)
            if not os.path.isdir(extracted):
                raise ValueError(f"{archive} extracted nothing new into {dest}")
        else:
            # loose files, gather them under a directory named after the archive
            extracted = os.path.join(dest, stem)
            os.makedirs(extracted, exist_ok=True)
            for name in created:
                shutil.move(os.path.join(dest, name), os.path.join(extracted, name))

        if rename:
            target = os.path.join(dest, rename)
            if os.path.exists(target):
                raise FileExistsError(f"{target} already exists")
            os.rename(extracted, target)
            extracted = target
        return extracted
