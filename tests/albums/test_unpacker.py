import shutil

import pytest

from src.albums.errors import AlbumIOError
from src.albums.unpacker import ArchiveUnpacker, archive_stem


def test_archive_stem():
    assert archive_stem("/tmp/summer.tar.gz") == "summer"
    assert archive_stem("summer.zip") == "summer"


@pytest.fixture
def archive(tmp_path):
    staging = tmp_path / "staging" / "summer"
    staging.mkdir(parents=True)
    (staging / "a.jpg").write_bytes(b"jpg")
    return shutil.make_archive(str(tmp_path / "summer"), "gztar", str(staging.parent), "summer")


@pytest.mark.asyncio
async def test_unpack_into_dest(tmp_path, archive):
    dest = tmp_path / "albums"

    result = await ArchiveUnpacker().unpack(archive, str(dest))

    assert result.unpacked
    assert result.final_path == str(dest / "summer")
    assert (dest / "summer" / "a.jpg").read_bytes() == b"jpg"


@pytest.mark.asyncio
async def test_unpack_with_rename(tmp_path, archive):
    dest = tmp_path / "albums"
    result = await ArchiveUnpacker().unpack(archive, str(dest), rename="beach")
    assert result.final_path == str(dest / "beach")
    assert (dest / "beach" / "a.jpg").is_file()


@pytest.mark.asyncio
async def test_loose_files_are_gathered(tmp_path):
    staging = tmp_path / "staging"
    staging.mkdir()
    (staging / "a.jpg").write_bytes(b"a")
    (staging / "b.jpg").write_bytes(b"b")
    archive = shutil.make_archive(str(tmp_path / "loose"), "zip", str(staging))

    result = await ArchiveUnpacker().unpack(archive, str(tmp_path / "albums"))

    assert result.final_path == str(tmp_path / "albums" / "loose")
    assert sorted(p.name for p in (tmp_path / "albums" / "loose").iterdir()) == ["a.jpg", "b.jpg"]


@pytest.mark.asyncio
async def test_unreadable_archive(tmp_path):
    bogus = tmp_path / "bogus.zip"
    bogus.write_text("nope")
    with pytest.raises(AlbumIOError):
        await ArchiveUnpacker().unpack(str(bogus), str(tmp_path / "albums"))
