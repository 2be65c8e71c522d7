"""
Albums - Metadata Extractor

Reads and writes image metadata (EXIF, IPTC, XMP) with pyexiv2.

Records use ``Group:Tag`` keys, one record per image:
    File:FileName, IPTC:ObjectName, XMP:Title, Composite:Keywords,
    Composite:Description, Composite:Creator, Composite:ImageSize,
    EXIF:ThumbnailImage (raw bytes of the embedded preview)
"""
import asyncio
import os
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, Set, runtime_checkable

from src.core.logging import component_logger

IMAGE_EXTENSIONS = {
    '.jpg', '.jpeg', '.png', '.tif', '.tiff', '.webp', '.heic', '.heif',
    '.cr2', '.cr3', '.nef', '.arw', '.dng', '.raf', '.orf', '.rw2',
}

# Group selectors expand to the tags they cover
TAG_GROUPS = {
    "MWG:all": {"Composite:Keywords", "Composite:Description", "Composite:Creator", "XMP:Title"},
    "preview:all": {"EXIF:ThumbnailImage"},
    "Composite:all": {"Composite:Keywords", "Composite:Description", "Composite:Creator",
                      "Composite:ImageSize"},
}

ALL_TAGS = {
    "File:FileName", "IPTC:ObjectName", "XMP:Title", "Composite:Keywords",
    "Composite:Description", "Composite:Creator", "Composite:ImageSize", "EXIF:ThumbnailImage",
}


@runtime_checkable
class MetadataExtractor(Protocol):
    """
    Protocol for metadata collaborators.
    Album code depends on this shape only, tests substitute doubles.
    """

    async def read(self, path: str, tags: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        """One record per image in ``path`` (a file or a directory)."""
        ...

    async def write(self, path: str, tags: Dict[str, Any]) -> Dict[str, Any]:
        """Write tags back into the file at ``path``."""
        ...

    async def set_thumbnail(self, path: str, thumbnail_path: str) -> None:
        """Embed the image at ``thumbnail_path`` as the preview of ``path``."""
        ...


def expand_selection(tags: Optional[Iterable[str]]) -> Set[str]:
    """Resolve a tag selection (``-`` prefixes allowed) to concrete tag keys."""
    if not tags:
        return set(ALL_TAGS)
    selected: Set[str] = set()
    for tag in tags:
        tag = tag.lstrip('-')
        if tag in TAG_GROUPS:
            selected |= TAG_GROUPS[tag]
        else:
            selected.add(tag)
    return selected


def _lang_alt(value: Any) -> Optional[str]:
    """Plain string from an XMP lang-alt value."""
    if isinstance(value, dict):
        # pyexiv2 keys look like 'lang="x-default"'
        for key, val in value.items():
            if "x-default" in key:
                return val
        return next(iter(value.values()), None)
    return value or None


def _as_list(value: Any) -> List[str]:
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


class Exiv2MetadataExtractor:
    """MetadataExtractor backed by pyexiv2."""

    def __init__(self, log=None):
        self.log = log or component_logger("albums.metadata")

    async def read(self, path: str, tags: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        selection = expand_selection(tags)
        return await asyncio.to_thread(self._read_sync, path, selection)

    async def write(self, path: str, tags: Dict[str, Any]) -> Dict[str, Any]:
        return await asyncio.to_thread(self._write_sync, path, tags)

    async def set_thumbnail(self, path: str, thumbnail_path: str) -> None:
        await asyncio.to_thread(self._set_thumbnail_sync, path, thumbnail_path)

    # ==================== Reading ====================

    def _read_sync(self, path: str, selection: Set[str]) -> List[Dict[str, Any]]:
        if os.path.isdir(path):
            files = [
                os.path.join(path, name) for name in sorted(os.listdir(path))
                if os.path.splitext(name)[1].lower() in IMAGE_EXTENSIONS
            ]
        else:
            files = [path]

        records = []
        for file_path in files:
            try:
                records.append(self._read_file(file_path, selection))
            except Exception as e:
                # same as exiftool: unreadable files produce no record
                self.log.error(f"Failed to read metadata from {file_path}: {e}")
        return records

    def _read_file(self, file_path: str, selection: Set[str]) -> Dict[str, Any]:
        import pyexiv2

        record: Dict[str, Any] = {"SourceFile": file_path}
        with pyexiv2.Image(file_path) as img:
            exif = img.read_exif()
            iptc = img.read_iptc()
            xmp = img.read_xmp()
            thumbnail = None
            if "EXIF:ThumbnailImage" in selection:
                try:
                    thumbnail = img.read_thumbnail()
                except Exception as e:
                    self.log.debug(f"No embedded thumbnail in {file_path}: {e}")

        values = {
            "File:FileName": os.path.basename(file_path),
            "IPTC:ObjectName": iptc.get("Iptc.Application2.ObjectName") or None,
            "XMP:Title": _lang_alt(xmp.get("Xmp.dc.title")),
            "Composite:Keywords": (_as_list(iptc.get("Iptc.Application2.Keywords"))
                                   or _as_list(xmp.get("Xmp.dc.subject"))),
            "Composite:Description": (_lang_alt(xmp.get("Xmp.dc.description"))
                                      or exif.get("Exif.Image.ImageDescription")
                                      or iptc.get("Iptc.Application2.Caption")
                                      or None),
            "Composite:Creator": (", ".join(_as_list(xmp.get("Xmp.dc.creator")))
                                  or exif.get("Exif.Image.Artist")
                                  or ", ".join(_as_list(iptc.get("Iptc.Application2.Byline")))
                                  or None),
            "EXIF:ThumbnailImage": thumbnail or None,
        }
        if "Composite:ImageSize" in selection:
            values["Composite:ImageSize"] = self._image_size(file_path)

        for key, value in values.items():
            if key in selection and value not in (None, [], ""):
                record[key] = value
        return record

    @staticmethod
    def _image_size(file_path: str) -> Optional[str]:
        from PIL import Image
        try:
            with Image.open(file_path) as im:
                return f"{im.width}x{im.height}"
        except Exception:
            return None

    # ==================== Writing ====================

    def _write_sync(self, path: str, tags: Dict[str, Any]) -> Dict[str, Any]:
        import pyexiv2

        xmp_updates: Dict[str, Any] = {}
        iptc_updates: Dict[str, Any] = {}
        exif_updates: Dict[str, Any] = {}

        for tag, value in tags.items():
            if tag == "XMP:Title":
                xmp_updates["Xmp.dc.title"] = {'lang="x-default"': value}
            elif tag == "IPTC:ObjectName":
                iptc_updates["Iptc.Application2.ObjectName"] = value
            elif tag == "MWG:Description":
                xmp_updates["Xmp.dc.description"] = {'lang="x-default"': value}
                exif_updates["Exif.Image.ImageDescription"] = value
                iptc_updates["Iptc.Application2.Caption"] = value
            elif tag == "MWG:Keywords":
                keywords = _as_list(value)
                xmp_updates["Xmp.dc.subject"] = keywords
                iptc_updates["Iptc.Application2.Keywords"] = keywords
            else:
                raise ValueError(f"Unsupported tag for writing: {tag}")

        try:
            with pyexiv2.Image(path) as img:
                if xmp_updates:
                    img.modify_xmp(xmp_updates)
                if iptc_updates:
                    img.modify_iptc(iptc_updates)
                if exif_updates:
                    img.modify_exif(exif_updates)
        except Exception as e:
            self.log.error(f"Failed to write metadata to {path}: {e}")
            raise
        self.log.info(f"Updated metadata for {path}: {sorted(tags)}")
        return {"file": path, "tags": sorted(tags)}

    def _set_thumbnail_sync(self, path: str, thumbnail_path: str) -> None:
        import pyexiv2

        with open(thumbnail_path, "rb") as f:
            data = f.read()
        with pyexiv2.Image(path) as img:
            img.modify_thumbnail(data)
        self.log.debug(f"Embedded thumbnail {thumbnail_path} into {path}")
