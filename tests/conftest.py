import os
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from PIL import Image


class FakeRedis:
    """In-memory stand-in for the stream commands of redis.asyncio.Redis."""

    def __init__(self):
        self.streams = {}
        self._seq = 0

    async def xadd(self, key, fields):
        self._seq += 1
        stream_id = f"1700000000000-{self._seq}"
        self.streams.setdefault(key, []).append((stream_id, dict(fields)))
        return stream_id

    async def xdel(self, key, *ids):
        entries = self.streams.get(key, [])
        kept = [e for e in entries if e[0] not in ids]
        self.streams[key] = kept
        return len(entries) - len(kept)

    async def xrevrange(self, key, max="+", min="-", count=None):
        entries = list(reversed(self.streams.get(key, [])))
        return entries[:count] if count else entries


class FakeExtractor:
    """Metadata extractor double returning canned records by file name."""

    def __init__(self, records=None, fail_read=False, fail_write=False):
        self.records = records or {}
        self.fail_read = fail_read
        self.fail_write = fail_write
        self.writes = []
        self.thumbnails = []

    async def read(self, path, tags=None):
        if self.fail_read:
            raise RuntimeError("extractor exploded")
        if os.path.isdir(path):
            names = sorted(os.listdir(path))
        else:
            names = [os.path.basename(path)]
        return [{"File:FileName": name, **self.records.get(name, {})} for name in names]

    async def write(self, path, tags):
        if self.fail_write:
            raise RuntimeError("write refused")
        self.writes.append((path, dict(tags)))
        return {"file": path, "tags": tags}

    async def set_thumbnail(self, path, thumbnail_path):
        self.thumbnails.append((path, thumbnail_path))


def make_collection(matched=1, modified=1, upserted_id=None, deleted=1, find=None):
    collection = MagicMock()
    collection.insert_one = AsyncMock(side_effect=lambda doc: SimpleNamespace(inserted_id=doc["_id"]))
    collection.update_one = AsyncMock(return_value=SimpleNamespace(
        matched_count=matched, modified_count=modified, upserted_id=upserted_id))
    collection.delete_one = AsyncMock(return_value=SimpleNamespace(deleted_count=deleted))
    collection.find_one = AsyncMock(return_value=find)
    return collection


@pytest.fixture
def collection():
    return make_collection()


@pytest.fixture
def redis():
    return FakeRedis()


@pytest.fixture
def extractor():
    return FakeExtractor()


@pytest.fixture
def root_dir(tmp_path):
    root = tmp_path / "public" / "albums"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def make_image():
    def _make(path, size=(1200, 800), color=(200, 40, 40), fmt=None):
        path = str(path)
        Image.new("RGB", size, color).save(path, format=fmt)
        return path
    return _make


@pytest.fixture
def album_dir(root_dir, make_image):
    """An album directory with a landscape and a portrait image."""
    path = root_dir / "summer"
    path.mkdir()
    make_image(path / "beach.jpg", (1200, 800))
    make_image(path / "tower.jpg", (600, 900))
    return path


@pytest.fixture
def album_config(root_dir, album_dir, collection, redis):
    return {
        "new": True,
        "rootDir": str(root_dir),
        "albumDir": str(album_dir),
        "albumName": "Summer",
        "albumSlug": "summer",
        "albumOwner": "alice",
        "albumDescription": "Beach days",
        "albumKeywords": ["sea", "sun"],
        "collection": collection,
        "redis": redis,
    }


@pytest.fixture
def object_id():
    return ObjectId()


@pytest.fixture
def make_extractor():
    return FakeExtractor


@pytest.fixture
def store():
    return make_collection
