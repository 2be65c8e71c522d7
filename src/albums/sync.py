"""
Albums - Persistence Synchronizer

Keeps the album document and the album's recency stream entry consistent.

Save order is stream first, document second. The stream may briefly run
ahead of the durable record; a failed document write is raised to the
caller while a wrong stream entry is replaced on the next successful save.
"""
import asyncio
import weakref
from typing import TYPE_CHECKING, Any, Optional, Union

from bson import ObjectId

from src.albums.errors import PersistenceError
from src.albums.ids import format_album_id, new_album_id
from src.albums.models import SaveResult, StepResult
from src.albums.stream import RecentAlbumsStream
from src.core.logging import component_logger

if TYPE_CHECKING:
    from src.albums.album import Album

ALBUMS = "albums"


def _count(result: Any, name: str) -> int:
    value = getattr(result, name, 0)
    return value if isinstance(value, int) else 0


def _upserted_count(result: Any) -> int:
    count = getattr(result, "upserted_count", None)
    if isinstance(count, int):
        return count
    return 0 if getattr(result, "upserted_id", None) is None else 1


class PersistenceSynchronizer:
    """
    Save/delete protocol for one album store.

    Collection and Redis client are borrowed. Saves of the same album id
    are serialised within the process with a per-id asyncio.Lock.
    """

    _locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def __init__(self, collection, stream: Optional[RecentAlbumsStream] = None, log=None, name: str = ALBUMS):
        self.collection = collection
        self.name = name
        self.stream = stream
        self.log = log or component_logger("albums.sync")

    @classmethod
    def _lock_for(cls, key: str) -> asyncio.Lock:
        lock = cls._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            cls._locks[key] = lock
        return lock

    # ==================== Save ====================

    async def save(self, album: "Album") -> Union[SaveResult, bool]:
        """
        Persist the album.

        Returns:
            SaveResult on success, False when the store reports that
            nothing was matched, modified, upserted or inserted.

        Raises:
            PersistenceError: If there is no collection or the write raises.
        """
        if self.collection is None:
            msg = f"No connection to client collection {self.name}"
            self.log.error(msg)
            raise PersistenceError(msg)

        key = format_album_id(album.album_id) or f"new:{id(album)}"
        lock = self._lock_for(key)
        async with lock:
            return await self._save_locked(album)

    async def _save_locked(self, album: "Album") -> Union[SaveResult, bool]:
        first_save = album.album_id is None or album.is_new
        album_id = album.album_id if album.album_id is not None else new_album_id()
        self.log.debug(f"the _id is {album_id} (first save: {first_save})")

        stream_result = await self.sync_stream(album, album_id)

        try:
            if first_save:
                document = album.to_document(album_id)
                saved = await self.collection.insert_one(document)
                inserted = getattr(saved, "inserted_id", None) is not None
                result = SaveResult(album_id=album_id, inserted=inserted, upserted_count=int(inserted))
            else:
                update = {"$set": album.update_fields()}
                saved = await self.collection.update_one({"_id": album_id}, update, upsert=True)
                result = SaveResult(
                    album_id=album_id,
                    matched_count=_count(saved, "matched_count"),
                    modified_count=_count(saved, "modified_count"),
                    upserted_count=_upserted_count(saved),
                )
        except Exception as e:
            err = "Failed to save album json to db."
            self.log.error(f"{err} {e}")
            raise PersistenceError(err) from e

        result.stream = stream_result
        self.log.debug(f"Album save results: {result}")

        if not (result.inserted or result.matched_count or result.modified_count or result.upserted_count):
            self.log.warning(f"Save of album {album_id} matched and modified nothing")
            return False

        album._mark_saved(album_id)
        return result

    # ==================== Stream ====================

    async def sync_stream(self, album: "Album", album_id: ObjectId) -> StepResult:
        """Public albums get exactly one fresh entry, private ones none."""
        if album.public:
            return await self.add_to_stream(album, album_id)
        return await self.remove_from_stream(album)

    async def add_to_stream(self, album: "Album", album_id: ObjectId) -> StepResult:
        if self.stream is None:
            self.log.warning("no redis connection provided, album not added to the recent stream")
            return StepResult.skip()
        step = StepResult()
        if album.stream_id:
            self.log.debug(f"album already has a streamId: {album.stream_id}, clear it and re-add.")
            try:
                await self.stream.remove(album.stream_id)
            except Exception as e:
                self.log.error(f"Failed to remove streamId {album.stream_id}: {e}")
                # the stale entry may still be in the stream next to the new one
                step = StepResult.failed(e)
        try:
            album.stream_id = await self.stream.add(album.recent_entry(album_id))
        except Exception as e:
            self.log.error(f"Failed to add album {album_id} to the recent stream: {e}")
            return StepResult.failed(e)
        self.log.info(f"album {album_id} added to the recent stream as {album.stream_id}")
        return step

    async def remove_from_stream(self, album: "Album") -> StepResult:
        if not album.stream_id:
            return StepResult.skip()
        if self.stream is None:
            self.log.warning(f"no redis connection provided, streamId {album.stream_id} left in place")
            return StepResult.skip()
        try:
            await self.stream.remove(album.stream_id)
        except Exception as e:
            self.log.error(f"Failed to remove streamId {album.stream_id} from the recent stream: {e}")
            return StepResult.failed(e)
        self.log.info(f"streamId {album.stream_id} removed from the recent stream")
        album.stream_id = None
        return StepResult()

    # ==================== Delete ====================

    async def delete_document(self, album_id: Optional[ObjectId]) -> StepResult:
        if album_id is None:
            return StepResult.skip()
        if self.collection is None:
            return StepResult(ok=False, error=f"No connection to client collection {self.name}")
        try:
            response = await self.collection.delete_one({"_id": album_id})
        except Exception as e:
            self.log.error(f"failed to remove albumId {album_id} from db: {e}")
            return StepResult.failed(e)
        if _count(response, "deleted_count") != 1:
            msg = f"albumId {album_id} was not found in db"
            self.log.warning(msg)
            return StepResult(ok=False, error=msg)
        return StepResult()
