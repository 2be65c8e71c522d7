"""
Albums - Query Set

Read side over many albums: single album lookups that return rehydrated
Album instances, per owner listings and the recently added feed.
"""
from typing import Any, Dict, List, Optional, Union

from src.albums.album import Album
from src.albums.ids import parse_album_id
from src.albums.models import ImageDescriptor, InitSkip
from src.albums.stream import DEFAULT_PREFIX, RecentAlbumsStream, RecentEntry
from src.core.config import AlbumSettings, MongoSettings
from src.core.logging import component_logger

logger = component_logger("albums.queries")

# Reduced per album projection used by list()
LIST_PROJECTION = {
    "id": "$_id",
    "public": "$public",
    "name": "$name",
    "description": "$description",
    "slug": "$slug",
}


class Albums:
    """Static queries over the album collection and the recent stream."""

    @staticmethod
    async def _rehydrate(collection, query: Dict[str, Any], redis=None, **kwargs) -> Union[Album, bool]:
        try:
            document = await collection.find_one(query)
        except Exception as e:
            logger.error(f"Album lookup {query} failed: {e}")
            return False
        if document is None:
            logger.debug(f"No album matches {query}")
            return False
        try:
            album = Album({**document, "collection": collection, "redis": redis}, **kwargs)
            return await album.init(None, InitSkip(sizes=True, metadata=True))
        except Exception as e:
            logger.error(f"Failed to rehydrate album {document.get('_id')}: {e}")
            return False

    @staticmethod
    async def get_by_id(collection, album_id, redis=None, **kwargs) -> Union[Album, bool]:
        """Album with ``_id == album_id``, or False."""
        try:
            oid = parse_album_id(album_id)
        except ValueError as e:
            logger.error(str(e))
            return False
        if oid is None:
            return False
        return await Albums._rehydrate(collection, {"_id": oid}, redis, **kwargs)

    @staticmethod
    async def get_by_name(collection, name: str, redis=None, **kwargs) -> Union[Album, bool]:
        return await Albums._rehydrate(collection, {"name": name}, redis, **kwargs)

    @staticmethod
    async def get_by_slug(collection, slug: str, redis=None, **kwargs) -> Union[Album, bool]:
        return await Albums._rehydrate(collection, {"slug": slug}, redis, **kwargs)

    @staticmethod
    async def get_image_list(collection, album_id, owner: str) -> Union[List[ImageDescriptor], bool]:
        """
        Image descriptors of one album, only when ``owner`` created it.

        Raises:
            ValueError: If the collection or the album id is missing.
        """
        if collection is None:
            raise ValueError("Missing required album collection.")
        if not album_id:
            raise ValueError("Missing required album id.")
        try:
            oid = parse_album_id(album_id)
            document = await collection.find_one(
                {"_id": oid, "creator": owner}, projection={"_id": 0, "images": 1})
        except Exception as e:
            logger.error(f"Failed to get the image list of album {album_id}: {e}")
            return False
        if document is None:
            return False
        return [ImageDescriptor.model_validate(image) for image in document.get("images", [])]

    @staticmethod
    async def list(collection, owner: str) -> List[Dict[str, Any]]:
        """
        Albums of one owner in two buckets keyed on ``public``: ``False``
        for private albums and ``True`` for public ones.
        """
        pipeline = [
            {"$match": {"creator": owner}},
            {"$bucket": {
                "groupBy": "$public",
                "boundaries": [False, True],
                "default": True,
                "output": {
                    "count": {"$sum": 1},
                    "albums": {"$push": LIST_PROJECTION},
                },
            }},
        ]
        cursor = await collection.aggregate(pipeline)
        return await cursor.to_list(None)

    @staticmethod
    async def recently_added(
        redis,
        count: Optional[int] = None,
        stream: Optional[str] = None,
        prefix: Optional[str] = DEFAULT_PREFIX,
        settings: Optional[AlbumSettings] = None,
    ) -> List[RecentEntry]:
        """
        Newest recently added entries first. ``count`` and ``stream``
        default to ``recent_count`` and ``recent_stream`` of the settings.
        """
        settings = settings or AlbumSettings()
        count = settings.recent_count if count is None else count
        stream = stream or settings.recent_stream
        return await RecentAlbumsStream(redis, stream, prefix, log=logger).recent(count)

    @staticmethod
    async def users_with_public_albums(
        db, view: Optional[str] = None, settings: Optional[MongoSettings] = None
    ) -> List[Dict[str, Any]]:
        """Owners that have at least one public album, read from a view."""
        view = view or (settings or MongoSettings()).public_owners_view
        cursor = db[view].find()
        return await cursor.to_list(None)
