"""
Albums - Album entity

An album is a directory of images under a root directory, described by
one document in the album store and, while public, one entry in the
recently added stream.

Lifecycle:
    Album(config)  -> CONSTRUCTED
    await init()   -> INITIALIZED (paths resolved, images described, sized)
    mutators       -> MUTATED
    await save()   -> SAVED
    await delete_album() -> DELETED
"""
import asyncio
import os
import shutil
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from bson import ObjectId

from src.albums.errors import (
    AddImageError,
    AlbumError,
    AlbumIOError,
    DeleteError,
    InitError,
    PathError,
    PipelineError,
)
from src.albums.ids import format_album_id
from src.albums.metadata import MetadataExtractor
from src.albums.models import (
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
from src.albums.paths import PathResolver, join_url
from src.albums.pipeline import ImagePipeline, belongs_to_image, is_generated_variant, thumbnail_name
from src.albums.processing import ImageProcessor
from src.albums.stream import RecentAlbumsStream, RecentEntry
from src.albums.sync import PersistenceSynchronizer
from src.albums.unpacker import ArchiveUnpacker
from src.core.config import AlbumSettings, MongoSettings, RedisSettings
from src.core.logging import component_logger


class AlbumState(str, Enum):
    CONSTRUCTED = "constructed"
    INITIALIZING = "initializing"
    INITIALIZED = "initialized"
    MUTATED = "mutated"
    SAVED = "saved"
    DELETED = "deleted"


class Album:
    """
    A photo album backed by a directory, a document and a stream entry.

    The document collection and the Redis client are borrowed from the
    caller, the album never opens or closes connections.
    """

    def __init__(
        self,
        config: Union[Mapping[str, Any], AlbumConfig, None] = None,
        *,
        settings: Optional[AlbumSettings] = None,
        mongo_settings: Optional[MongoSettings] = None,
        key_prefix: Optional[str] = None,
        extractor: Optional[MetadataExtractor] = None,
        processor: Optional[ImageProcessor] = None,
        pipeline: Optional[ImagePipeline] = None,
        log=None,
    ):
        cfg = normalize_album_config(config)
        self._settings = settings or AlbumSettings()
        self._mongo_settings = mongo_settings or MongoSettings()
        self._key_prefix = key_prefix if key_prefix is not None else RedisSettings().key_prefix
        self._log = log or component_logger("albums.album")
        self._resolver = PathResolver(self._settings.public_marker, log=self._log)
        self._pipeline = pipeline or ImagePipeline(
            extractor=extractor, processor=processor, sizes=self._settings.sizes, log=self._log)

        self._is_new = cfg.new
        self._redis = cfg.redis
        self._collection = self._resolve_collection(cfg)
        self._sync = self._make_synchronizer()

        root_dir = cfg.root_dir or self._settings.root_dir
        self._root_dir: Optional[str] = os.path.abspath(root_dir) if root_dir else None
        self._album_id: Optional[ObjectId] = cfg.album_id
        self._album_dir: Optional[str] = cfg.album_dir
        self._album_url = cfg.album_url
        self._album_image_url = cfg.album_image_url
        self._preview_image = cfg.preview_image
        self._name = cfg.name
        self._slug = cfg.slug
        self._owner = cfg.owner
        self._description = cfg.description
        self._keywords: Dict[str, None] = dict.fromkeys(cfg.keywords)
        self._images: List[ImageDescriptor] = list(cfg.images)
        self._pending_names: List[str] = list(cfg.image_names)
        self._public = cfg.public
        self._post_id = cfg.post_id
        self._stream_id = cfg.stream_id

        self._directory_entries: Tuple[str, ...] = ()
        self._stale_sizes: set = set()
        self._json: Optional[Dict[str, Any]] = None
        self._state = AlbumState.CONSTRUCTED

    def __str__(self) -> str:
        p = 16
        return (
            "Album configuration details: \n"
            f"{'name:':<{p}} {self._name}\n"
            f"{'id:':<{p}} ObjectId({self._album_id})\n"
            f"{'author:':<{p}} {self._owner}\n"
            f"{'slug:':<{p}} {self._slug}\n"
            f"{'root dir:':<{p}} {self._root_dir}\n"
            f"{'album dir:':<{p}} {self._album_dir}\n"
            f"{'album Image Url:':<{p}} {self._album_image_url}\n"
            f"{'album url:':<{p}} {self._album_url}\n"
        )

    def __repr__(self) -> str:
        return f"<Album {self._name!r} id={self._album_id} state={self._state.value}>"

    # ==================== Construction helpers ====================

    def _resolve_collection(self, cfg: AlbumConfig):
        if cfg.collection is not None:
            return cfg.collection
        if cfg.mongo is not None:
            mongo = self._mongo_settings
            return cfg.mongo[cfg.db_name or mongo.database_name][mongo.collection]
        return None

    def _make_synchronizer(self) -> PersistenceSynchronizer:
        stream = None
        if self._redis is not None:
            stream = RecentAlbumsStream(
                self._redis, self._settings.recent_stream, self._key_prefix, log=self._log)
        return PersistenceSynchronizer(
            self._collection, stream, log=self._log, name=self._mongo_settings.collection)

    @classmethod
    async def from_archive(
        cls,
        archive: str,
        config: Union[Mapping[str, Any], AlbumConfig, None] = None,
        *,
        unpacker: Optional[ArchiveUnpacker] = None,
        rename: Optional[str] = None,
        **kwargs,
    ) -> "Album":
        """
        Unpack an archive into the root dir and return a new album for the
        extracted directory. The album still needs ``init()``.
        """
        cfg = normalize_album_config(config)
        settings = kwargs.get("settings") or AlbumSettings()
        root_dir = cfg.root_dir or settings.root_dir
        if not root_dir:
            raise PathError("A root dir is required to unpack an album archive")
        unpacker = unpacker or ArchiveUnpacker()
        unpacked = await unpacker.unpack(archive, root_dir, rename=rename)
        cfg = cfg.model_copy(update={
            "new": True,
            "root_dir": root_dir,
            "album_dir": unpacked.final_path,
        })
        return cls(cfg, **kwargs)

    # ==================== Initialization ====================

    async def init(
        self,
        dir_path: Optional[str] = None,
        skip: Union[InitSkip, Mapping[str, bool], None] = None,
    ) -> "Album":
        """
        Resolve directories, describe and size the images, build the json.

        Already populated images (rehydrated albums) are never re-derived
        from disk, only the directory listing and counts are refreshed.

        Raises:
            InitError: Wrapping the path, pipeline or json failure.
        """
        if self._state is AlbumState.INITIALIZING:
            raise InitError("init() is already running on this album")
        if self._state is AlbumState.DELETED:
            raise InitError("Album was deleted")
        skip = skip if isinstance(skip, InitSkip) else InitSkip(**(skip or {}))

        previous = self._state
        self._state = AlbumState.INITIALIZING
        try:
            await self._init(dir_path, skip)
        except BaseException:
            self._state = previous
            raise
        self._state = AlbumState.INITIALIZED
        return self

    async def _init(self, dir_path: Optional[str], skip: InitSkip) -> None:
        if dir_path:
            album_dir = os.path.abspath(dir_path)
            self._log.debug(f"init using dirPath param: {dir_path}")
        elif self._album_dir:
            album_dir = os.path.abspath(self._album_dir)
            self._log.debug(f"init using albumDir property: {album_dir}")
        else:
            raise InitError("No album dir given")

        if self._root_dir is None:
            self._root_dir = os.path.dirname(album_dir)

        try:
            urls = self._resolver.derive_urls(album_dir, self._album_url, self._album_image_url)
        except PathError as e:
            self._log.error(f"Cannot derive album urls: {e}")
            raise InitError("Cannot derive the album urls.") from e
        self._album_url = urls.album_url
        self._album_image_url = urls.album_image_url

        try:
            await self._resolver.ensure_root(self._root_dir)
        except AlbumIOError as e:
            self._log.error("Failed to create the album root dir.")
            raise InitError("Failed to create the album root dir.") from e

        try:
            self._album_dir = self._resolver.resolve(self._root_dir, album_dir)
        except PathError as e:
            self._log.error("Problem resolving album directory path.")
            raise InitError("Problem resolving album directory path.") from e

        try:
            self._directory_entries = await self._scan_directory()
        except OSError as e:
            if not self._images:
                msg = f"Failed to read the album dir {self._album_dir}"
                self._log.error(msg)
                raise InitError(msg) from e
            self._log.warning(f"Album dir {self._album_dir} is not readable: {e}")
            self._directory_entries = ()

        if not self._images:
            names = self._pending_names or list(self._directory_entries)
            if skip.metadata:
                self._images = [self._bare_descriptor(name) for name in names]
            else:
                try:
                    self._images = await self._pipeline.extract(
                        self._album_dir, names, self._owner, self._album_image_url)
                except PipelineError as e:
                    self._log.error("Metadata extraction failed.")
                    raise InitError("Metadata extraction failed.") from e
            self._pending_names = []

        if not skip.sizes:
            try:
                await self._pipeline.generate_all(self._album_dir, self._images, self._album_image_url)
            except PipelineError as e:
                self._log.error(f"Image resizing failed: {e}")
                raise InitError("Image resizing failed.") from e
            self._stale_sizes.clear()
            if not self._preview_image and self._images:
                self._preview_image = self._images[0].thumbnail
                self._log.debug(f"setting album preview image to: {self._preview_image}")

        try:
            self._json = self.to_document(self._album_id)
        except Exception as e:
            self._log.error("Creating album json failed.")
            raise InitError("Creating album json failed.") from e

    async def _scan_directory(self) -> Tuple[str, ...]:
        def scan() -> Tuple[str, ...]:
            with os.scandir(self._album_dir) as it:
                names = [
                    entry.name for entry in it
                    if entry.is_file() and not entry.name.startswith('.')
                    and not is_generated_variant(entry.name)
                ]
            return tuple(sorted(names))

        return await asyncio.to_thread(scan)

    def _bare_descriptor(self, name: str) -> ImageDescriptor:
        url = join_url(self._album_image_url, name)
        return ImageDescriptor(
            name=name, url=url, big=url, med=None, sml=None, thumbnail=None,
            title=None, description=None, keywords=[], creator=self._owner, hide=False)

    @staticmethod
    def _thumbnail_file(descriptor: ImageDescriptor) -> str:
        if descriptor.thumbnail:
            return descriptor.thumbnail.rsplit("/", 1)[-1]
        return thumbnail_name(descriptor.name, ".jpg")

    # ==================== Images ====================

    def _find(self, name: str) -> Optional[int]:
        for index, image in enumerate(self._images):
            if image.name == name:
                return index
        return None

    def _mutated(self) -> None:
        if self._state in (AlbumState.INITIALIZED, AlbumState.SAVED):
            self._state = AlbumState.MUTATED

    def _require_dir(self, error_cls=AlbumError) -> str:
        if not self._album_dir or self._state is AlbumState.CONSTRUCTED:
            raise error_cls("Album is not initialized, call init() first")
        return self._album_dir

    async def add_image(self, new_image: str, skip_sizes: bool = False) -> AddImageResult:
        """
        Add one image file to the album and save.

        ``new_image`` is a file name inside the album dir or a path to a file
        that is copied in first.

        Raises:
            AddImageError: If the file, its metadata, its sizes or the save fail.
        """
        if not new_image:
            self._log.error("Missing required image.")
            raise AddImageError("Missing required image.")
        album_dir = self._require_dir(AddImageError)

        source = new_image if os.path.isabs(new_image) else os.path.join(album_dir, new_image)
        name = os.path.basename(source)
        if self._find(name) is not None:
            raise AddImageError(f"{name} is already in this album")
        target = os.path.join(album_dir, name)
        if os.path.abspath(source) != target:
            try:
                await asyncio.to_thread(shutil.copy2, source, target)
            except OSError as e:
                self._log.error(f"Failed to copy {source} into {album_dir}: {e}")
                raise AddImageError(f"Failed to copy {source} into the album") from e

        self._log.info(f"Adding new image to the gallery: {name}")
        try:
            descriptor = await self._pipeline.describe(target, self._owner, self._album_image_url)
        except PipelineError as e:
            raise AddImageError(f"Failed to get metadata for {new_image}") from e
        descriptor.name = name

        self._images.append(descriptor)
        sizes = None
        if not skip_sizes:
            try:
                sizes = await self._pipeline.generate_sizes(album_dir, descriptor, self._album_image_url)
            except PipelineError as e:
                self._images.pop()
                self._log.error(f"Failed to create image sizes for {new_image}")
                raise AddImageError(f"Failed to create image sizes for {new_image}") from e
        self._mutated()

        try:
            saved = await self.save()
        except AlbumError as e:
            self._log.error(f"Failed to save changes to gallery after adding {name}: {e}")
            raise AddImageError(f"Failed to save changes to gallery after adding {name}") from e
        return AddImageResult(descriptor=descriptor, sizes=sizes, save=saved)

    async def update_image(
        self,
        image: Union[ImagePatch, Mapping[str, Any], None] = None,
        remake_thumbnail: bool = False,
    ) -> UpdateImageResult:
        """
        Apply a patch to one image, write the metadata into the file,
        rotate and resize as asked, then save.

        Failures of the sub-steps are reported on the result and never
        prevent the save attempt.
        """
        if not image:
            msg = "Missing required parameter: image."
            self._log.error(msg)
            return UpdateImageResult(found=False, message=msg)
        patch = image if isinstance(image, ImagePatch) else ImagePatch.model_validate(image)
        album_dir = self._require_dir()

        index = self._find(patch.name)
        if index is None:
            result = UpdateImageResult(found=False, message=f"{patch.name} not found in this album.")
            self._log.info(result.message)
            return result

        descriptor = self._images[index]
        result = UpdateImageResult()
        image_path = os.path.join(album_dir, patch.name)
        thumb_path = os.path.join(album_dir, patch.thumbnail_name or self._thumbnail_file(descriptor))
        extractor = self._pipeline.extractor
        new_thumb = remake_thumbnail

        tags = patch.metadata_tags()
        if tags:
            try:
                await extractor.write(image_path, tags)
                if patch.title:
                    descriptor.title = patch.title
                if patch.description:
                    descriptor.description = patch.description
                if patch.keywords:
                    descriptor.keywords = list(patch.keywords)
                result.metadata = StepResult()
                new_thumb = False
            except Exception as e:
                self._log.error(f"Failed to update metadata for image: {image_path}: {e}")
                result.metadata = StepResult.failed(e)
        if patch.hide is not None:
            descriptor.hide = patch.hide

        rotated = False
        if patch.rotate_full_size:
            try:
                await self.rotate_image(patch.name, patch.rotate_full_size)
                rotated = True
                new_thumb = True
                result.rotate = StepResult()
            except PipelineError as e:
                result.rotate = StepResult.failed(e)

        if patch.rotate_thumbnail:
            try:
                await self._pipeline.rotate(thumb_path, patch.rotate_thumbnail)
                if not patch.rotate_full_size:
                    new_thumb = False
                await extractor.set_thumbnail(image_path, thumb_path)
                result.thumbnail = StepResult()
            except Exception as e:
                self._log.error(f"Failed to rotate and embed thumbnail {thumb_path}: {e}")
                result.thumbnail = StepResult.failed(e)

        if rotated or remake_thumbnail:
            try:
                result.size_variants = await self._pipeline.generate_sizes(
                    album_dir, descriptor, self._album_image_url,
                    remake_thumbnail=remake_thumbnail or new_thumb)
                self._stale_sizes.discard(patch.name)
                result.sizes = StepResult()
            except PipelineError as e:
                self._log.error(f"Failed to regenerate the image sizes for: {patch.name}")
                result.sizes = StepResult.failed(e)

        self._mutated()
        try:
            result.save = await self._persist(refresh_stale=False)
        except AlbumError as e:
            self._log.error(f"Failed to save changes to db: {e}")
            result.save = False
            result.save_error = str(e)
        return result

    async def rotate_image(self, image: str, degrees: int) -> None:
        """
        Rotate an image file in place. Album images get their size variants
        regenerated on the next save.

        Raises:
            PipelineError: If the rotation fails.
        """
        album_dir = self._require_dir(PipelineError)
        path = image if os.path.isabs(image) else os.path.join(album_dir, image)
        await self._pipeline.rotate(path, degrees)
        name = os.path.basename(path)
        if self._find(name) is not None:
            self._stale_sizes.add(name)
            self._mutated()

    async def delete_image(self, image_name: str) -> bool:
        """
        Remove an image, every generated variant of it, and its descriptor,
        then save.

        Returns:
            False if the image is not part of the album.

        Raises:
            AlbumIOError: If the files cannot be listed or removed.
            DeleteError: If the album cannot be saved afterwards.
        """
        if not image_name:
            msg = "Missing required image name parameter."
            self._log.error(msg)
            raise ValueError(msg)
        album_dir = self._require_dir(DeleteError)
        index = self._find(image_name)
        if index is None:
            return False

        try:
            files = await asyncio.to_thread(os.listdir, album_dir)
        except OSError as e:
            self._log.error(f"readdir failed: {e}")
            raise AlbumIOError("readdir failed") from e

        for file_name in files:
            if not belongs_to_image(file_name, image_name):
                continue
            path = os.path.join(album_dir, file_name)
            try:
                await asyncio.to_thread(os.remove, path)
            except OSError as e:
                self._log.error(f"Failed to delete image file {path}: {e}")
                raise AlbumIOError(f"Failed to delete image file {image_name}") from e
            self._log.debug(f"Image {path} was deleted")

        removed = self._images.pop(index)
        self._stale_sizes.discard(image_name)
        if self._preview_image and self._preview_image == removed.thumbnail:
            self._preview_image = self._images[0].thumbnail if self._images else None
        self._mutated()

        try:
            saved = await self.save()
        except AlbumError as e:
            err = "Image deleted, but failed to update gallery in db."
            self._log.error(err)
            raise DeleteError(err) from e
        if not saved:
            raise DeleteError("Image deleted, but save() failed without an exception.")
        return True

    # ==================== Persistence ====================

    async def save(self) -> Union[SaveResult, bool]:
        """
        Regenerate stale sizes, sync the recent stream, write the document.

        Returns:
            SaveResult, or False when the store changed nothing.

        Raises:
            PersistenceError: If there is no collection or the write raises.
        """
        return await self._persist(refresh_stale=True)

    async def _persist(self, refresh_stale: bool) -> Union[SaveResult, bool]:
        sizes = await self._refresh_stale_sizes() if refresh_stale else StepResult.skip()
        result = await self._sync.save(self)
        if result:
            result.sizes = sizes
        return result

    async def _refresh_stale_sizes(self) -> StepResult:
        if not self._stale_sizes:
            return StepResult.skip()
        step = StepResult()
        for name in sorted(self._stale_sizes):
            index = self._find(name)
            if index is None:
                self._stale_sizes.discard(name)
                continue
            try:
                await self._pipeline.generate_sizes(
                    self._album_dir, self._images[index], self._album_image_url, remake_thumbnail=True)
                self._stale_sizes.discard(name)
            except PipelineError as e:
                self._log.error(f"Failed to regenerate sizes for {name}: {e}")
                step = StepResult.failed(e)
        return step

    async def delete_album(self) -> DeleteAlbumResult:
        """
        Remove the stream entry, the album directory tree and the document.
        Every step is attempted, the result reports each one.
        """
        self._log.info(f"About to delete album: {self._name} ({self._album_dir})")
        result = DeleteAlbumResult()

        try:
            result.stream = await self._sync.remove_from_stream(self)
        except Exception as e:
            self._log.error(f"failed to remove albumId {self._album_id}, streamId {self._stream_id} from redis stream: {e}")
            result.stream = StepResult.failed(e)

        if self._album_dir:
            try:
                await asyncio.to_thread(shutil.rmtree, os.path.abspath(self._album_dir), False)
                result.files = StepResult()
            except FileNotFoundError:
                result.files = StepResult()
            except OSError as e:
                self._log.error(f"Failed to remove album dir {self._album_dir}: {e}")
                result.files = StepResult.failed(e)

        result.document = await self._sync.delete_document(self._album_id)
        self._state = AlbumState.DELETED
        return result

    def _mark_saved(self, album_id: ObjectId) -> None:
        self._album_id = album_id
        self._is_new = False
        self._json = self.to_document(album_id)
        self._state = AlbumState.SAVED

    def update_fields(self) -> Dict[str, Any]:
        """Every mutable field of the stored document."""
        return {
            "streamId": self._stream_id,
            "dir": self._album_dir,
            "slug": self._slug,
            "imageUrl": self._album_image_url,
            "creator": self._owner,
            "name": self._name,
            "url": self._album_url,
            "previewImage": self._preview_image,
            "description": self._description,
            "keywords": list(self._keywords),
            "public": self._public,
            "images": [image.to_document() for image in self._images],
            "post_id": self._post_id,
        }

    def to_document(self, album_id: Optional[ObjectId] = None) -> Dict[str, Any]:
        """The stored document shape of the album."""
        fields = self.update_fields()
        post_id = fields.pop("post_id")
        document = {"_id": album_id if album_id is not None else self._album_id, **fields}
        if post_id:
            document["post_id"] = post_id
        return document

    def get_json(self) -> Dict[str, Any]:
        self._json = self.to_document(self._album_id)
        return self._json

    def recent_entry(self, album_id: Optional[ObjectId] = None) -> RecentEntry:
        """Compact summary for the recently added stream."""
        return RecentEntry(
            id=format_album_id(album_id if album_id is not None else self._album_id),
            slug=self._slug,
            name=self._name,
            owner=self._owner,
            access=self._public,
            preview=self._preview_image,
            description=self._description,
        )

    # ==================== Directories ====================

    async def set_root_dir(self, dir_path: str) -> "Album":
        """
        Use ``dir_path`` as root dir, creating it if needed, and re-init
        without touching metadata or sizes.

        Raises:
            PathError: If the album dir is not inside ``dir_path``.
            AlbumIOError: If the directory cannot be created.
            InitError: If re-initialization fails.
        """
        root_dir = os.path.abspath(dir_path)
        if self._album_dir:
            # keep the old root when the album would fall outside the new one
            self._resolver.resolve(root_dir, self._album_dir)
        exists = await self._resolver.ensure_root(root_dir)
        self._log.debug(f"root dir {root_dir} existed: {exists}")
        self._root_dir = root_dir
        return await self.init(None, InitSkip(sizes=True, metadata=True))

    def set_album_dir(self, dir_path: str) -> str:
        """
        Point the album at another directory inside the root dir.

        Raises:
            PathError: If the directory is not inside the root dir.
        """
        if self._root_dir:
            self._album_dir = self._resolver.resolve(self._root_dir, dir_path)
        else:
            self._album_dir = os.path.abspath(dir_path)
        self._mutated()
        return self._album_dir

    def directory_entries(self) -> Iterable[str]:
        """Image file names found in the album dir by the last init()."""
        return iter(self._directory_entries)

    # ==================== Keywords ====================

    def add_keyword(self, word: str) -> List[str]:
        self._keywords[word] = None
        self._mutated()
        return list(self._keywords)

    def remove_keyword(self, word: str) -> bool:
        if word not in self._keywords:
            return False
        del self._keywords[word]
        self._mutated()
        return True

    # ==================== Properties ====================

    @property
    def state(self) -> AlbumState:
        return self._state

    @property
    def is_new(self) -> bool:
        return self._is_new

    @property
    def album_id(self) -> Optional[ObjectId]:
        return self._album_id

    @property
    def id(self) -> Optional[ObjectId]:
        return self._album_id

    @property
    def root_dir(self) -> Optional[str]:
        return self._root_dir

    @property
    def album_dir(self) -> Optional[str]:
        return self._album_dir

    @property
    def url(self) -> Optional[str]:
        return self._album_url

    @url.setter
    def url(self, value: str):
        self._album_url = value
        self._mutated()

    @property
    def image_url(self) -> Optional[str]:
        return self._album_image_url

    @property
    def images(self) -> Tuple[ImageDescriptor, ...]:
        """Copies of the image descriptors, in album order."""
        return tuple(image.model_copy(deep=True) for image in self._images)

    @property
    def number_of_images(self) -> int:
        return len(self._images)

    @property
    def preview_image(self) -> Optional[str]:
        return self._preview_image

    @preview_image.setter
    def preview_image(self, value: Optional[str]):
        self._preview_image = value
        self._mutated()

    @property
    def name(self) -> Optional[str]:
        return self._name

    @name.setter
    def name(self, value: Optional[str]):
        self._name = value
        self._mutated()

    @property
    def slug(self) -> Optional[str]:
        return self._slug

    @slug.setter
    def slug(self, value: Optional[str]):
        self._slug = value
        self._mutated()

    @property
    def owner(self) -> Optional[str]:
        return self._owner

    @owner.setter
    def owner(self, value: Optional[str]):
        self._owner = value
        self._mutated()

    @property
    def description(self) -> Optional[str]:
        return self._description

    @description.setter
    def description(self, value: Optional[str]):
        self._description = value
        self._mutated()

    @property
    def keywords(self) -> List[str]:
        return list(self._keywords)

    @keywords.setter
    def keywords(self, words: Iterable[str]):
        for word in words:
            self._keywords[word] = None
        self._mutated()

    @property
    def public(self) -> bool:
        return self._public

    @public.setter
    def public(self, value: bool):
        self._public = bool(value)
        self._mutated()

    @property
    def post_id(self) -> Optional[Any]:
        return self._post_id

    @post_id.setter
    def post_id(self, value: Optional[Any]):
        self._post_id = value
        self._mutated()

    @property
    def stream_id(self) -> Optional[str]:
        return self._stream_id

    @stream_id.setter
    def stream_id(self, value: Optional[str]):
        self._stream_id = value

    @property
    def collection(self):
        return self._collection

    @collection.setter
    def collection(self, collection):
        self._collection = collection
        self._sync = self._make_synchronizer()

    @property
    def redis(self):
        return self._redis

    @redis.setter
    def redis(self, client):
        self._redis = client
        self._sync = self._make_synchronizer()
