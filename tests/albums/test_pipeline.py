import pytest
from loguru import logger

from src.albums.errors import PipelineError
from src.albums.models import ImageDescriptor
from src.albums.pipeline import (
    ImagePipeline,
    belongs_to_image,
    decode_thumbnail,
    is_generated_variant,
    thumbnail_name,
)

IMAGE_URL = "albums/summer"


@pytest.fixture
def log_messages():
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="ERROR")
    yield messages
    logger.remove(handler_id)


def test_variant_names():
    assert is_generated_variant("beach_900x900.jpg")
    assert is_generated_variant("beach_thumbnail.png")
    assert not is_generated_variant("beach.jpg")
    assert not is_generated_variant("beach_900x900.png")
    assert thumbnail_name("beach.png") == "beach_thumbnail.png"
    assert thumbnail_name("beach.png", ".jpg") == "beach_thumbnail.jpg"


def test_belongs_to_image_is_anchored():
    assert belongs_to_image("beach.jpg", "beach.jpg")
    assert belongs_to_image("beach_600x600.jpg", "beach.jpg")
    assert belongs_to_image("beach_thumbnail.jpg", "beach.jpg")
    assert not belongs_to_image("beach2.jpg", "beach.jpg")
    assert not belongs_to_image("beach2_600x600.jpg", "beach.jpg")
    assert not belongs_to_image("my_beach_thumbnail.jpg", "beach.jpg")


def test_decode_thumbnail():
    assert decode_thumbnail(b"\xff\xd8") == b"\xff\xd8"
    assert decode_thumbnail("base64:/9g=") == b"\xff\xd8"
    with pytest.raises(ValueError):
        decode_thumbnail("base64:***")


@pytest.mark.asyncio
async def test_extract_five_images_three_titles(tmp_path, make_image, make_extractor):
    names = [f"img{i}.jpg" for i in range(5)]
    for name in names:
        make_image(tmp_path / name, (40, 30))
    extractor = make_extractor({
        "img0.jpg": {"IPTC:ObjectName": "Zero"},
        "img2.jpg": {"XMP:Title": "Two"},
        "img4.jpg": {"IPTC:ObjectName": "Four", "Composite:Keywords": "solo"},
    })
    pipeline = ImagePipeline(extractor=extractor)

    images = await pipeline.extract(str(tmp_path), names, "alice", IMAGE_URL)

    assert len(images) == 5
    assert [i.name for i in images] == names
    assert len([i for i in images if i.title is not None]) == 3
    assert len([i for i in images if i.title is None]) == 2
    assert images[4].keywords == ["solo"]
    assert all(i.creator == "alice" for i in images)
    assert images[1].url == "albums/summer/img1.jpg"


@pytest.mark.asyncio
async def test_extract_writes_embedded_thumbnail(tmp_path, make_image, make_extractor):
    make_image(tmp_path / "a.jpg", (40, 30))
    pipeline = ImagePipeline(extractor=make_extractor({"a.jpg": {"EXIF:ThumbnailImage": b"\xff\xd8thumb"}}))

    [image] = await pipeline.extract(str(tmp_path), ["a.jpg"], "alice", IMAGE_URL)

    assert image.thumbnail == "albums/summer/a_thumbnail.jpg"
    assert (tmp_path / "a_thumbnail.jpg").read_bytes() == b"\xff\xd8thumb"


@pytest.mark.asyncio
async def test_embedded_thumbnail_of_png_is_named_jpg(tmp_path, make_image, make_extractor):
    make_image(tmp_path / "a.png", (40, 30), fmt="PNG")
    pipeline = ImagePipeline(extractor=make_extractor({"a.png": {"EXIF:ThumbnailImage": b"\xff\xd8thumb"}}))

    [image] = await pipeline.extract(str(tmp_path), ["a.png"], "alice", IMAGE_URL)

    assert image.thumbnail == "albums/summer/a_thumbnail.jpg"
    assert (tmp_path / "a_thumbnail.jpg").read_bytes() == b"\xff\xd8thumb"
    assert not (tmp_path / "a_thumbnail.png").exists()


@pytest.mark.asyncio
async def test_bad_embedded_thumbnail_is_logged_and_skipped(tmp_path, make_image, make_extractor, log_messages):
    make_image(tmp_path / "a.jpg", (40, 30))
    pipeline = ImagePipeline(extractor=make_extractor({"a.jpg": {"EXIF:ThumbnailImage": "base64:***"}}))

    [image] = await pipeline.extract(str(tmp_path), ["a.jpg"], "alice", IMAGE_URL)

    assert image.thumbnail is None
    assert not (tmp_path / "a_thumbnail.jpg").exists()
    assert any("Failed to create thumbnail image for a.jpg" in m for m in log_messages)


@pytest.mark.asyncio
async def test_extract_failure_raises_pipeline_error(tmp_path, make_extractor):
    pipeline = ImagePipeline(extractor=make_extractor(fail_read=True))
    with pytest.raises(PipelineError):
        await pipeline.extract(str(tmp_path), ["a.jpg"], "alice", IMAGE_URL)


@pytest.mark.asyncio
async def test_landscape_sizes(tmp_path, make_image, make_extractor):
    make_image(tmp_path / "beach.jpg", (1200, 800))
    pipeline = ImagePipeline(extractor=make_extractor())
    descriptor = ImageDescriptor(name="beach.jpg", url="albums/summer/beach.jpg")

    sizes = await pipeline.generate_sizes(str(tmp_path), descriptor, IMAGE_URL)

    assert sizes.big == "albums/summer/beach_900x900.jpg"
    assert sizes.med == "albums/summer/beach_600x600.jpg"
    assert sizes.sml == "albums/summer/beach_350x350.jpg"
    assert sizes.thumbnail == "albums/summer/beach_thumbnail.jpg"
    assert descriptor.big == sizes.big
    for name in ("beach_900x900.jpg", "beach_600x600.jpg", "beach_350x350.jpg", "beach_thumbnail.jpg"):
        assert (tmp_path / name).is_file()


@pytest.mark.asyncio
async def test_portrait_and_square_sizes(tmp_path, make_image, make_extractor):
    make_image(tmp_path / "tower.jpg", (600, 900))
    make_image(tmp_path / "box.jpg", (500, 500))
    pipeline = ImagePipeline(extractor=make_extractor())

    tower = await pipeline.generate_sizes(str(tmp_path), ImageDescriptor(name="tower.jpg"), IMAGE_URL)
    box = await pipeline.generate_sizes(str(tmp_path), ImageDescriptor(name="box.jpg"), IMAGE_URL)

    assert tower.big.endswith("tower_600x600.jpg")
    assert tower.med.endswith("tower_400x400.jpg")
    assert box.big.endswith("box_600x600.jpg")


@pytest.mark.asyncio
async def test_existing_thumbnail_is_kept(tmp_path, make_image, make_extractor):
    make_image(tmp_path / "beach.jpg", (1200, 800))
    pipeline = ImagePipeline(extractor=make_extractor())
    descriptor = ImageDescriptor(name="beach.jpg", thumbnail="albums/summer/beach_thumbnail.jpg")

    await pipeline.generate_sizes(str(tmp_path), descriptor, IMAGE_URL)

    assert not (tmp_path / "beach_thumbnail.jpg").exists()


@pytest.mark.asyncio
async def test_size_failure_names_the_image(tmp_path, make_extractor):
    (tmp_path / "broken.jpg").write_text("not an image")
    pipeline = ImagePipeline(extractor=make_extractor())

    with pytest.raises(PipelineError) as exc:
        await pipeline.generate_all(str(tmp_path), [ImageDescriptor(name="broken.jpg")], IMAGE_URL)

    assert exc.value.image == "broken.jpg"


@pytest.mark.asyncio
async def test_run_describes_and_sizes(tmp_path, make_image, make_extractor):
    make_image(tmp_path / "a.jpg", (800, 1000))
    pipeline = ImagePipeline(extractor=make_extractor({"a.jpg": {"IPTC:ObjectName": "A"}}))

    [image] = await pipeline.run(str(tmp_path), ["a.jpg"], "alice", IMAGE_URL)

    assert image.title == "A"
    assert image.med == "albums/summer/a_400x400.jpg"
    assert image.thumbnail == "albums/summer/a_thumbnail.jpg"
