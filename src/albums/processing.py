"""
Albums - Image Processor

Geometry, format conversion, resizing, stripping and rotation of image
files. Pillow work runs in worker threads.
"""
import asyncio
import os
import re
from typing import Optional, Protocol, Tuple, runtime_checkable

from PIL import Image

from src.core.logging import component_logger

GEOMETRY_RE = re.compile(r"^(\d+)x(\d+)$")

# File extension -> Pillow format name
EXTENSION_FORMATS = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
    ".webp": "WEBP",
    ".tif": "TIFF",
    ".tiff": "TIFF",
    ".gif": "GIF",
    ".bmp": "BMP",
}


def parse_geometry(geometry: str) -> Tuple[int, int]:
    """``"900x900"`` -> ``(900, 900)``."""
    match = GEOMETRY_RE.match(geometry.strip())
    if not match:
        raise ValueError(f"Invalid geometry: {geometry!r}")
    return int(match.group(1)), int(match.group(2))


@runtime_checkable
class ImageHandle(Protocol):
    """An opened image that is transformed in place and written out."""

    width: int
    height: int
    format: str

    async def convert(self, fmt: str) -> None: ...

    async def resize(self, geometry: str) -> None: ...

    async def strip(self) -> None: ...

    async def rotate(self, degrees: int) -> None: ...

    async def write(self, path: str) -> None: ...


@runtime_checkable
class ImageProcessor(Protocol):
    async def open(self, path: str) -> ImageHandle: ...


class PillowImage:
    """ImageHandle over a Pillow image held in memory."""

    def __init__(self, image: Image.Image, fmt: Optional[str], quality: int = 85):
        self.image = image
        self.format = (fmt or "JPEG").upper()
        self.quality = quality
        self._stripped = False

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def __str__(self) -> str:
        return f"{self.width}x{self.height} {self.format}"

    async def convert(self, fmt: str) -> None:
        fmt = fmt.upper()
        if fmt == "JPG":
            fmt = "JPEG"
        self.format = fmt
        if fmt == "JPEG":
            self.image = await asyncio.to_thread(_to_rgb, self.image)

    async def resize(self, geometry: str) -> None:
        """Fit within the bounding box, keeping the aspect ratio."""
        size = parse_geometry(geometry)
        await asyncio.to_thread(self.image.thumbnail, size, Image.Resampling.LANCZOS)

    async def strip(self) -> None:
        self.image.info.clear()
        self._stripped = True

    async def rotate(self, degrees: int) -> None:
        # Pillow rotates counter-clockwise, positive degrees turn clockwise here
        self.image = await asyncio.to_thread(
            self.image.rotate, -int(degrees), Image.Resampling.BICUBIC, True)

    async def write(self, path: str) -> None:
        await asyncio.to_thread(self._write_sync, path)

    def _write_sync(self, path: str) -> None:
        ext = os.path.splitext(path)[1].lower()
        fmt = EXTENSION_FORMATS.get(ext, self.format)
        image = _to_rgb(self.image) if fmt == "JPEG" else self.image
        params = {}
        if fmt in ("JPEG", "WEBP"):
            params["quality"] = self.quality
        if not self._stripped:
            for key in ("exif", "icc_profile"):
                if self.image.info.get(key):
                    params[key] = self.image.info[key]
        image.save(path, format=fmt, **params)


class PillowImageProcessor:
    """ImageProcessor backed by Pillow."""

    def __init__(self, quality: int = 85, log=None):
        self.quality = quality
        self.log = log or component_logger("albums.processing")

    async def open(self, path: str) -> PillowImage:
        image, fmt = await asyncio.to_thread(self._open_sync, path)
        self.log.debug(f"Opened {path}: {image.width}x{image.height} {fmt}")
        return PillowImage(image, fmt, self.quality)

    @staticmethod
    def _open_sync(path: str) -> Tuple[Image.Image, Optional[str]]:
        with Image.open(path) as img:
            img.load()
            return img.copy(), img.format


def _to_rgb(img: Image.Image) -> Image.Image:
    """Flatten transparency onto white for JPEG output."""
    if img.mode in ("RGBA", "LA", "P"):
        if img.mode == "P" and "transparency" in img.info:
            img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        if img.mode in ("RGBA", "LA"):
            background.paste(img, mask=img.split()[-1])
        else:
            background.paste(img)
        background.info = dict(img.info)
        return background
    if img.mode != "RGB":
        converted = img.convert("RGB")
        converted.info = dict(img.info)
        return converted
    return img
