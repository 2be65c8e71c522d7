import pytest
from bson import ObjectId

from src.albums.models import (
    AlbumConfig,
    DeleteAlbumResult,
    ImageDescriptor,
    ImagePatch,
    StepResult,
    UpdateImageResult,
    normalize_album_config,
)


def test_normalize_prefers_canonical_keys():
    oid = ObjectId()
    cfg = normalize_album_config({
        "albumId": str(oid),
        "_id": ObjectId(),
        "albumDir": "/data/public/a",
        "dir": "/ignored",
        "albumOwner": "alice",
        "creator": "bob",
    })
    assert cfg.album_id == oid
    assert cfg.album_dir == "/data/public/a"
    assert cfg.owner == "alice"


def test_normalize_maps_stored_document_keys():
    oid = ObjectId()
    cfg = normalize_album_config({
        "_id": oid,
        "dir": "/data/public/a",
        "imageUrl": "public/a",
        "creator": "bob",
        "previewImage": "a/x_thumbnail.jpg",
        "streamId": "1-1",
        "post_id": 7,
        "keywords": ["b", "a", "b"],
    })
    assert cfg.album_id == oid
    assert cfg.album_dir == "/data/public/a"
    assert cfg.album_image_url == "public/a"
    assert cfg.owner == "bob"
    assert cfg.preview_image == "a/x_thumbnail.jpg"
    assert cfg.stream_id == "1-1"
    assert cfg.post_id == 7
    assert cfg.keywords == ["b", "a"]


def test_normalize_splits_names_and_descriptors():
    cfg = normalize_album_config({"images": ["a.jpg", {"name": "b.jpg", "title": "B"}]})
    assert cfg.image_names == ["a.jpg"]
    assert [i.name for i in cfg.images] == ["b.jpg"]
    assert cfg.images[0].title == "B"


def test_normalize_env_defaults(monkeypatch):
    monkeypatch.setenv("ALBUMS_ROOT_DIR", "/srv/albums")
    monkeypatch.setenv("DB_NAME", "photos")
    cfg = normalize_album_config({})
    assert cfg.root_dir == "/srv/albums"
    assert cfg.db_name == "photos"
    assert cfg.public is False


def test_normalize_rejects_malformed_id():
    with pytest.raises(ValueError):
        normalize_album_config({"albumId": "not-an-id"})


def test_normalize_passes_config_through():
    cfg = AlbumConfig(name="x")
    assert normalize_album_config(cfg) is cfg


def test_descriptor_document_keeps_unknown_keys():
    descriptor = ImageDescriptor.model_validate({"name": "a.jpg", "exif": {"iso": 100}})
    assert descriptor.to_document() == {"name": "a.jpg", "exif": {"iso": 100}}


def test_patch_aliases_and_tags():
    patch = ImagePatch.model_validate({
        "name": "a.jpg", "title": "T", "keywords": ["k"], "rotateFullSize": 90, "thumbnailName": "t.jpg",
    })
    assert patch.rotate_full_size == 90
    assert patch.thumbnail_name == "t.jpg"
    assert patch.metadata_tags() == {"XMP:Title": "T", "IPTC:ObjectName": "T", "MWG:Keywords": ["k"]}


def test_result_truthiness():
    assert not DeleteAlbumResult(files=StepResult(ok=False, error="x"))
    assert DeleteAlbumResult()
    assert not UpdateImageResult(found=False).ok
    assert UpdateImageResult(save=True).ok
