"""
Albums - Metadata & Size Pipeline

Turns the raw file listing of an album directory into ImageDescriptors:
one batched metadata read for the whole directory, embedded thumbnails
written next to their source, then big/med/sml variants plus a thumbnail
per image.

Size generation is a sequential awaited pass over the images, so the
order of ``images`` is the order of completion and at most one image is
held in memory at a time.
"""
import asyncio
import base64
import binascii
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from src.albums.errors import PipelineError
from src.albums.metadata import Exiv2MetadataExtractor, MetadataExtractor
from src.albums.models import ImageDescriptor, SizeVariants
from src.albums.paths import join_url
from src.albums.processing import ImageProcessor, PillowImageProcessor
from src.core.config import SizeSettings
from src.core.logging import component_logger

# Tag selection requested from the metadata extractor
METADATA_TAGS: Tuple[str, ...] = (
    "-File:FileName",
    "-IPTC:ObjectName",
    "-MWG:all",
    "-preview:all",
    "-Composite:ImageSize",
)

# Formats that are written as-is, everything else is converted to JPEG first
RASTER_FORMATS = {"jpeg", "jpg", "png"}

LANDSCAPE = "landscape"
PORTRAIT = "portrait"

VARIANT_RE = re.compile(r"^(?P<stem>.+)_(?:\d+x\d+\.jpg|thumbnail\.[^.]+)$", re.IGNORECASE)


def is_generated_variant(file_name: str) -> bool:
    """True for ``<name>_<WxH>.jpg`` and ``<name>_thumbnail.<ext>`` files."""
    return VARIANT_RE.match(file_name) is not None


def belongs_to_image(file_name: str, image_name: str) -> bool:
    """True for the image itself and every variant generated from it."""
    if file_name == image_name:
        return True
    match = VARIANT_RE.match(file_name)
    return match is not None and match.group("stem") == Path(image_name).stem


def thumbnail_name(image_name: str, ext: Optional[str] = None) -> str:
    parts = Path(image_name)
    return f"{parts.stem}_thumbnail{ext if ext is not None else parts.suffix}"


def decode_thumbnail(payload: Any) -> bytes:
    """
    Embedded preview bytes from an extractor record.

    exiftool-style ``base64:...`` strings are decoded, bytes pass through.
    """
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)
    if isinstance(payload, str):
        data = payload[7:] if payload.startswith("base64:") else payload
        return base64.b64decode(data, validate=True)
    raise ValueError(f"Unsupported thumbnail payload type: {type(payload).__name__}")


class ImagePipeline:
    """
    Metadata extraction and size variant generation for one album.
    """

    def __init__(
        self,
        extractor: Optional[MetadataExtractor] = None,
        processor: Optional[ImageProcessor] = None,
        sizes: Optional[SizeSettings] = None,
        log=None,
    ):
        self.extractor = extractor or Exiv2MetadataExtractor()
        self.processor = processor or PillowImageProcessor()
        self.sizes = sizes or SizeSettings()
        self.log = log or component_logger("albums.pipeline")

    # ==================== Metadata ====================

    async def extract(
        self,
        album_dir: str,
        names: Sequence[str],
        owner: Optional[str],
        image_url: Optional[str],
    ) -> List[ImageDescriptor]:
        """
        Build descriptors for ``names`` from one metadata read over the
        whole directory.

        Raises:
            PipelineError: If the metadata extractor fails.
        """
        if not names:
            return []
        try:
            records = await self.extractor.read(album_dir, METADATA_TAGS)
        except Exception as e:
            self.log.error(f"Metadata extraction failed for {album_dir}: {e}")
            raise PipelineError(f"Metadata extraction failed for {album_dir}") from e

        by_name: Dict[str, Dict[str, Any]] = {}
        for record in records or []:
            file_name = record.get("File:FileName")
            if file_name:
                by_name[file_name] = record

        descriptors = []
        for name in names:
            record = by_name.get(name, {})
            if not record:
                self.log.debug(f"No metadata record for {name}, using defaults")
            descriptors.append(await self._describe(album_dir, name, record, owner, image_url))
        return descriptors

    async def describe(self, image_path: str, owner: Optional[str], image_url: Optional[str]) -> ImageDescriptor:
        """
        Descriptor for a single file.

        Raises:
            PipelineError: If the metadata extractor fails or returns nothing.
        """
        try:
            records = await self.extractor.read(image_path, METADATA_TAGS)
        except Exception as e:
            self.log.error(f"Failed to get metadata for {image_path}: {e}")
            raise PipelineError(f"Failed to get metadata for {image_path}", image=image_path) from e
        if not records:
            raise PipelineError(f"No metadata returned for {image_path}", image=image_path)

        record = records[0]
        name = record.get("File:FileName") or os.path.basename(image_path)
        descriptor = await self._describe(os.path.dirname(image_path), name, record, owner, image_url)
        # single images start without variants until sizes run
        descriptor.big = None
        return descriptor

    async def _describe(
        self,
        album_dir: str,
        name: str,
        record: Dict[str, Any],
        owner: Optional[str],
        image_url: Optional[str],
    ) -> ImageDescriptor:
        url = join_url(image_url, name)
        thumbnail = None
        payload = record.get("EXIF:ThumbnailImage")
        if payload:
            thumbnail = await self._write_embedded_thumbnail(album_dir, name, payload, image_url)

        keywords = record.get("Composite:Keywords") or []
        if not isinstance(keywords, list):
            keywords = [keywords]

        return ImageDescriptor(
            name=name,
            url=url,
            big=url,
            med=None,
            sml=None,
            thumbnail=thumbnail,
            title=record.get("IPTC:ObjectName") or record.get("XMP:Title"),
            keywords=[str(k) for k in keywords],
            description=record.get("Composite:Description"),
            creator=record.get("Composite:Creator") or owner,
            hide=False,
        )

    async def _write_embedded_thumbnail(
        self, album_dir: str, name: str, payload: Any, image_url: Optional[str]
    ) -> Optional[str]:
        """Write an embedded preview next to its source; failures only skip it."""
        thumb_name = thumbnail_name(name, ".jpg")
        thumb_path = os.path.join(album_dir, thumb_name)
        try:
            data = decode_thumbnail(payload)
            await asyncio.to_thread(Path(thumb_path).write_bytes, data)
        except (ValueError, binascii.Error, OSError) as e:
            self.log.error(f"Failed to create thumbnail image for {name}, save path: {thumb_path}: {e}")
            return None
        self.log.debug(f"Wrote embedded thumbnail {thumb_path}")
        return join_url(image_url, thumb_name)

    # ==================== Sizes ====================

    def geometries(self, width: int, height: int) -> Tuple[str, str, str, str]:
        """Orientation and big/med/sml geometries; square counts as portrait."""
        if width > height:
            return LANDSCAPE, self.sizes.landscape_big, self.sizes.landscape_med, self.sizes.landscape_sml
        return PORTRAIT, self.sizes.portrait_big, self.sizes.portrait_med, self.sizes.portrait_sml

    async def generate_sizes(
        self,
        album_dir: str,
        descriptor: ImageDescriptor,
        image_url: Optional[str],
        remake_thumbnail: bool = False,
    ) -> SizeVariants:
        """
        Write the big/med/sml variants (and the thumbnail when missing or
        forced) of one image and record their urls on the descriptor.

        Raises:
            PipelineError: On any failure, naming the image and geometry.
        """
        name = descriptor.name
        original = os.path.join(album_dir, name)
        stem = Path(name).stem

        try:
            image = await self.processor.open(original)
        except Exception as e:
            self.log.error(f"Failed to open image: {original}: {e}")
            raise PipelineError(f"Failed to open image: {original}", image=name) from e

        orientation, big, med, sml = self.geometries(image.width, image.height)
        self.log.debug(f"Image geometry is: {image.width}x{image.height}, {orientation}")

        if (image.format or "").lower() not in RASTER_FORMATS:
            try:
                self.log.debug(f"Converting {name} from {image.format} to JPEG")
                await image.convert("jpeg")
            except Exception as e:
                raise PipelineError(f"Failed to convert {name} to JPEG", image=name) from e

        for field, geometry in (("big", big), ("med", med), ("sml", sml)):
            variant = f"{stem}_{geometry}.jpg"
            await self._resize_and_write(image, name, geometry, os.path.join(album_dir, variant))
            setattr(descriptor, field, join_url(image_url, variant))

        if remake_thumbnail or not descriptor.thumbnail:
            thumb = thumbnail_name(name, ".jpg")
            try:
                await image.strip()
            except Exception as e:
                raise PipelineError(f"Failed to strip metadata from {name}",
                                    image=name, geometry=self.sizes.thumbnail) from e
            await self._resize_and_write(image, name, self.sizes.thumbnail, os.path.join(album_dir, thumb))
            descriptor.thumbnail = join_url(image_url, thumb)

        return SizeVariants(
            big=descriptor.big,
            med=descriptor.med,
            sml=descriptor.sml,
            thumbnail=descriptor.thumbnail,
        )

    async def _resize_and_write(self, image, name: str, geometry: str, target: str) -> None:
        try:
            await image.resize(geometry)
            await image.write(target)
        except Exception as e:
            self.log.error(f"Failed to resize ({geometry}) and save {target}: {e}")
            raise PipelineError(f"Failed to resize ({geometry}) {name}", image=name, geometry=geometry) from e

    async def generate_all(
        self,
        album_dir: str,
        descriptors: Iterable[ImageDescriptor],
        image_url: Optional[str],
    ) -> List[SizeVariants]:
        """Sizes for every image, one after the other. The first failure aborts."""
        results = []
        for descriptor in descriptors:
            results.append(await self.generate_sizes(album_dir, descriptor, image_url))
        return results

    async def run(
        self,
        album_dir: str,
        names: Sequence[str],
        owner: Optional[str],
        image_url: Optional[str],
        skip_sizes: bool = False,
    ) -> List[ImageDescriptor]:
        """extract() followed by generate_all()."""
        descriptors = await self.extract(album_dir, names, owner, image_url)
        if not skip_sizes:
            await self.generate_all(album_dir, descriptors, image_url)
        return descriptors

    # ==================== Rotation ====================

    async def rotate(self, path: str, degrees: int) -> None:
        """
        Rotate an image file in place.

        Raises:
            PipelineError: If the image cannot be read, rotated or written.
        """
        deg = int(degrees)
        try:
            image = await self.processor.open(path)
            await image.rotate(deg)
            await image.write(path)
        except Exception as e:
            self.log.error(f"Failed to rotate {path} by {deg} degrees: {e}")
            raise PipelineError(f"Failed to rotate {path} by {deg} degrees", image=os.path.basename(path)) from e
        self.log.info(f"Rotated {path} by {deg} degrees")
