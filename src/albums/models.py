"""
Albums - Data Models

Image descriptors, the typed album configuration and operation results.
"""
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from bson import ObjectId
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from src.albums.ids import parse_album_id


class ImageDescriptor(BaseModel):
    """
    One image of an album.

    Unknown keys found in stored documents are kept so a rehydrated album
    writes them back unchanged.
    """
    model_config = ConfigDict(extra="allow")

    name: str
    url: str = ""
    big: Optional[str] = None
    med: Optional[str] = None
    sml: Optional[str] = None
    thumbnail: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    creator: Optional[str] = None
    hide: bool = False

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ImagePatch(BaseModel):
    """Partial update of one image, matched by name."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    title: Optional[str] = None
    description: Optional[str] = None
    keywords: Optional[List[str]] = None
    hide: Optional[bool] = None
    rotate_full_size: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("rotate_full_size", "rotateFullSize"))
    rotate_thumbnail: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("rotate_thumbnail", "rotateThumbnail"))
    thumbnail_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("thumbnail_name", "thumbnailName"))

    def metadata_tags(self) -> Dict[str, Any]:
        """Tags to write back into the image file."""
        tags: Dict[str, Any] = {}
        if self.title:
            tags["XMP:Title"] = self.title
            tags["IPTC:ObjectName"] = self.title
        if self.description:
            tags["MWG:Description"] = self.description
        if self.keywords:
            tags["MWG:Keywords"] = list(self.keywords)
        return tags


class InitSkip(BaseModel):
    """Steps of Album.init() to skip."""
    sizes: bool = False
    metadata: bool = False


class AlbumConfig(BaseModel):
    """Canonical album construction input, see normalize_album_config()."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    new: bool = False
    root_dir: Optional[str] = None
    album_id: Optional[ObjectId] = None
    album_dir: Optional[str] = None
    album_url: Optional[str] = None
    album_image_url: Optional[str] = None
    preview_image: Optional[str] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    owner: Optional[str] = None
    description: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    images: List[ImageDescriptor] = Field(default_factory=list)
    # Bare file names given instead of descriptors
    image_names: List[str] = Field(default_factory=list)
    public: bool = False
    post_id: Optional[Any] = None
    stream_id: Optional[str] = None
    redis: Optional[Any] = None
    mongo: Optional[Any] = None
    collection: Optional[Any] = None
    db_name: Optional[str] = None


_MISSING = object()


def _first(raw: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """First non-None value among the given keys."""
    for key in keys:
        value = raw.get(key, _MISSING)
        if value is not _MISSING and value is not None:
            return value
    return default


def normalize_album_config(raw: Union[Mapping[str, Any], AlbumConfig, None] = None) -> AlbumConfig:
    """
    Map a free-form configuration (camelCase keys, legacy aliases, stored
    documents) to an AlbumConfig.

    Every field has its own fallback chain: explicit key, legacy aliases,
    environment default, then None.
    """
    if isinstance(raw, AlbumConfig):
        return raw
    raw = dict(raw or {})

    keywords = _first(raw, "albumKeywords", "album_keywords", "keywords", default=[])
    if isinstance(keywords, str):
        keywords = [keywords]

    images: List[ImageDescriptor] = []
    image_names: List[str] = []
    for item in _first(raw, "albumImages", "album_images", "images", default=[]):
        if isinstance(item, str):
            image_names.append(item)
        elif isinstance(item, ImageDescriptor):
            images.append(item)
        else:
            images.append(ImageDescriptor.model_validate(item))

    album_id = _first(raw, "albumId", "album_id", "Id", "id", "_id")

    return AlbumConfig(
        new=bool(raw.get("new", False)),
        root_dir=_first(raw, "rootDir", "root_dir", default=os.environ.get("ALBUMS_ROOT_DIR")),
        album_id=parse_album_id(album_id),
        album_dir=_first(raw, "albumDir", "album_dir", "dir"),
        album_url=_first(raw, "albumUrl", "album_url", "url"),
        album_image_url=_first(raw, "albumImageUrl", "album_image_url", "imageUrl", "image_url"),
        preview_image=_first(raw, "albumPreviewImage", "album_preview_image", "previewImage", "preview_image"),
        name=_first(raw, "albumName", "album_name", "name"),
        slug=_first(raw, "albumSlug", "album_slug", "slug"),
        owner=_first(raw, "albumOwner", "album_owner", "owner", "creator"),
        description=_first(raw, "albumDescription", "album_description", "description"),
        # set semantics, first occurrence wins
        keywords=list(dict.fromkeys(keywords)),
        images=images,
        image_names=image_names,
        public=bool(raw.get("public", False)),
        post_id=_first(raw, "postId", "post_id"),
        stream_id=_first(raw, "streamId", "stream_id"),
        redis=raw.get("redis"),
        mongo=_first(raw, "mongo", "db"),
        collection=raw.get("collection"),
        db_name=_first(raw, "dbName", "db_name", default=os.environ.get("DB_NAME")),
    )


# ==================== Results ====================

@dataclass
class StepResult:
    """Outcome of one sub-step of a larger operation."""
    ok: bool = True
    skipped: bool = False
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: BaseException) -> "StepResult":
        return cls(ok=False, error=str(error))

    @classmethod
    def skip(cls) -> "StepResult":
        return cls(ok=True, skipped=True)


@dataclass
class SizeVariants:
    big: Optional[str] = None
    med: Optional[str] = None
    sml: Optional[str] = None
    thumbnail: Optional[str] = None


@dataclass
class SaveResult:
    """A successful document write, plus the outcome of the side steps."""
    album_id: ObjectId
    inserted: bool = False
    matched_count: int = 0
    modified_count: int = 0
    upserted_count: int = 0
    stream: StepResult = field(default_factory=StepResult)
    sizes: StepResult = field(default_factory=StepResult.skip)


@dataclass
class AddImageResult:
    descriptor: ImageDescriptor
    sizes: Optional[SizeVariants] = None
    save: Union[SaveResult, bool, None] = None

    @property
    def title(self) -> Optional[str]:
        return self.descriptor.title

    @property
    def keywords(self) -> List[str]:
        return self.descriptor.keywords

    @property
    def description(self) -> Optional[str]:
        return self.descriptor.description


@dataclass
class UpdateImageResult:
    found: bool = True
    message: Optional[str] = None
    metadata: StepResult = field(default_factory=StepResult.skip)
    rotate: StepResult = field(default_factory=StepResult.skip)
    thumbnail: StepResult = field(default_factory=StepResult.skip)
    sizes: StepResult = field(default_factory=StepResult.skip)
    size_variants: Optional[SizeVariants] = None
    save: Union[SaveResult, bool, None] = None
    save_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        steps = (self.metadata, self.rotate, self.thumbnail, self.sizes)
        return self.found and all(s.ok for s in steps) and bool(self.save)


@dataclass
class DeleteAlbumResult:
    stream: StepResult = field(default_factory=StepResult.skip)
    files: StepResult = field(default_factory=StepResult.skip)
    document: StepResult = field(default_factory=StepResult.skip)

    @property
    def ok(self) -> bool:
        return self.stream.ok and self.files.ok and self.document.ok

    def __bool__(self) -> bool:
        return self.ok
