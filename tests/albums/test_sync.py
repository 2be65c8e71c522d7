import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from src.albums.album import Album, AlbumState
from src.albums.errors import PersistenceError
from src.albums.models import InitSkip
from src.albums.sync import PersistenceSynchronizer
from src.core.config import MongoSettings

SKIP_ALL = InitSkip(sizes=True, metadata=True)
STREAM_KEY = "mmt:albums:recent:10"


async def initialized(config, **overrides):
    album = Album({**config, **overrides}, extractor=AsyncMock())
    return await album.init(None, SKIP_ALL)


@pytest.mark.asyncio
async def test_save_with_nothing_changed_returns_false(album_config, store):
    oid = ObjectId()
    collection = store(matched=0, modified=0, upserted_id=None)
    album = await initialized(album_config, new=False, albumId=oid, collection=collection)

    assert await album.save() is False
    assert album.state is AlbumState.INITIALIZED
    collection.update_one.assert_awaited_once()


@pytest.mark.asyncio
async def test_save_counts_upsert_as_success(album_config, store):
    oid = ObjectId()
    collection = store(matched=0, modified=0, upserted_id=oid)
    album = await initialized(album_config, new=False, albumId=oid, collection=collection)

    result = await album.save()

    assert result
    assert result.upserted_count == 1
    assert album.album_id == oid
    assert album.state is AlbumState.SAVED
    (query, update), kwargs = collection.update_one.call_args
    assert query == {"_id": oid}
    assert kwargs == {"upsert": True}
    assert update["$set"]["keywords"] == ["sea", "sun"]
    assert "_id" not in update["$set"]


@pytest.mark.asyncio
async def test_first_save_inserts_and_assigns_id(album_config, collection):
    album = await initialized(album_config)
    assert album.album_id is None

    result = await album.save()

    assert result.inserted
    assert isinstance(album.album_id, ObjectId)
    assert not album.is_new
    [document], _ = collection.insert_one.call_args
    assert document["_id"] == album.album_id
    assert document["creator"] == "alice"
    assert {i["name"] for i in document["images"]} == {"beach.jpg", "tower.jpg"}

    await album.save()
    collection.update_one.assert_awaited_once()


@pytest.mark.asyncio
async def test_public_album_has_exactly_one_stream_entry(album_config, redis):
    album = await initialized(album_config, public=True)

    await album.save()
    first_id = album.stream_id
    await album.save()

    entries = redis.streams[STREAM_KEY]
    assert len(entries) == 1
    assert album.stream_id == entries[0][0]
    assert album.stream_id != first_id


@pytest.mark.asyncio
async def test_private_album_is_removed_from_stream(album_config, redis):
    album = await initialized(album_config, public=True)
    await album.save()
    assert len(redis.streams[STREAM_KEY]) == 1

    album.public = False
    result = await album.save()

    assert redis.streams[STREAM_KEY] == []
    assert album.stream_id is None
    assert result.stream.ok


@pytest.mark.asyncio
async def test_stream_failure_does_not_block_the_write(album_config, collection):
    broken = SimpleNamespace(xadd=AsyncMock(side_effect=ConnectionError("redis down")), xdel=AsyncMock())
    album = await initialized(album_config, public=True, redis=broken)

    result = await album.save()

    assert result.inserted
    assert not result.stream.ok
    assert "redis down" in result.stream.error
    collection.insert_one.assert_awaited_once()


@pytest.mark.asyncio
async def test_failed_removal_of_old_stream_entry_is_reported(album_config, collection, redis):
    album = await initialized(album_config, public=True)
    await album.save()
    old_id = album.stream_id
    redis.xdel = AsyncMock(side_effect=ConnectionError("redis down"))

    result = await album.save()

    assert not result.stream.ok
    assert "redis down" in result.stream.error
    assert [entry_id for entry_id, _ in redis.streams[STREAM_KEY]] == [old_id, album.stream_id]
    collection.update_one.assert_awaited_once()


@pytest.mark.asyncio
async def test_concurrent_saves_of_new_album_insert_once(album_config, collection, redis):
    async def slow_insert(document):
        await asyncio.sleep(0.01)
        return SimpleNamespace(inserted_id=document["_id"])

    collection.insert_one.side_effect = slow_insert
    album = await initialized(album_config, public=True)

    results = await asyncio.gather(album.save(), album.save(), album.save())

    assert all(results)
    assert sum(1 for r in results if r.inserted) == 1
    collection.insert_one.assert_awaited_once()
    assert collection.update_one.await_count == 2
    assert {r.album_id for r in results} == {album.album_id}
    assert len(redis.streams[STREAM_KEY]) == 1
    assert album.stream_id == redis.streams[STREAM_KEY][0][0]

@pytest.mark.asyncio
async def test_write_error_raises_persistence_error(album_config, collection):
    collection.insert_one.side_effect = RuntimeError("boom")
    album = await initialized(album_config)

    with pytest.raises(PersistenceError) as exc:
        await album.save()

    assert isinstance(exc.value.__cause__, RuntimeError)
    assert album.album_id is None


@pytest.mark.asyncio
async def test_save_without_collection_fails(album_config):
    album = await initialized(album_config, collection=None)
    with pytest.raises(PersistenceError):
        await album.save()


@pytest.mark.asyncio
async def test_delete_document_reports_missing_document(store):
    sync = PersistenceSynchronizer(store(deleted=0))

    step = await sync.delete_document(ObjectId())

    assert not step.ok
    assert (await sync.delete_document(None)).skipped


@pytest.mark.asyncio
async def test_collection_from_mongo_handle_follows_settings(album_config, collection, monkeypatch):
    monkeypatch.delenv("DB_NAME", raising=False)
    mongo = {"gallery": {"photo_albums": collection}}
    settings = MongoSettings(database_name="gallery", collection="photo_albums")
    album = Album({**album_config, "collection": None, "mongo": mongo},
                  mongo_settings=settings, extractor=AsyncMock())
    await album.init(None, SKIP_ALL)

    result = await album.save()

    assert result.inserted
    collection.insert_one.assert_awaited_once()


@pytest.mark.asyncio
async def test_missing_collection_error_names_configured_collection(album_config):
    album = Album({**album_config, "collection": None},
                  mongo_settings=MongoSettings(collection="photo_albums"), extractor=AsyncMock())
    await album.init(None, SKIP_ALL)

    with pytest.raises(PersistenceError, match="photo_albums"):
        await album.save()
