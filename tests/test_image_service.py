"""Image-level facade, still-image I/O and the resize pipeline."""

import numpy as np
import pytest
from PIL import Image as PILImage

from rasterops.models.frame import BufferOwner
from rasterops.models.kernel import BLUR_KERNEL, Kernel
from rasterops.pipeline.frame_resizer import resize_frames, resize_gallery
from rasterops.repositories.gif_repository import GifRepository
from rasterops.services.image_service import ImageService


@pytest.fixture
def image_service():
    return ImageService()


def test_load_returns_rgb_order(tmp_path, image_service):
    path = tmp_path / "red.png"
    PILImage.new("RGB", (3, 2), (255, 0, 0)).save(path)

    img = image_service.load(path)
    assert img.pixels.shape == (2, 3, 3)
    assert img.pixels.flags["C_CONTIGUOUS"]
    assert tuple(img.pixels[0, 0]) == (255, 0, 0)
    assert img.path == path


def test_load_missing_file_raises(tmp_path, image_service):
    with pytest.raises(FileNotFoundError):
        image_service.load(tmp_path / "missing.png")


def test_save_and_reload(tmp_path, image_service, quadrant_image):
    img = image_service.create_image(quadrant_image, tmp_path / "nested" / "q.png")
    image_service.save(img)
    np.testing.assert_array_equal(image_service.load(img.path).pixels, quadrant_image)


def test_stream_gallery_filters_extensions(tmp_path, image_service):
    PILImage.new("RGB", (2, 2)).save(tmp_path / "a.png")
    PILImage.new("RGB", (2, 2)).save(tmp_path / "b.jpg")
    (tmp_path / "notes.txt").write_text("skip me")
    (tmp_path / "fake.png").write_text("not an image")

    names = sorted(img.path.name for img in image_service.stream_gallery(tmp_path))
    assert names == ["a.png", "b.jpg"]


def test_stream_gallery_requires_directory(tmp_path, image_service):
    with pytest.raises(NotADirectoryError):
        list(image_service.stream_gallery(tmp_path / "nope"))


def test_resize_image_returns_new_image(image_service, quadrant_image):
    img = image_service.create_image(quadrant_image)
    small = image_service.resize_image(img, 2, 2)
    assert (small.width, small.height) == (2, 2)
    assert tuple(small.pixels[0, 0]) == (255, 0, 0)
    assert tuple(small.pixels[1, 1]) == (255, 255, 0)
    assert img.pixels.shape == (8, 8, 3)


def test_resize_image_with_blur(image_service):
    img = image_service.create_image(np.full((6, 6, 3), 90, dtype=np.uint8))
    assert np.all(image_service.resize_image(img, 3, 3, blur_iterations=1).pixels == 90)


def test_filter_image(image_service, gradient_image):
    img = image_service.create_image(gradient_image)
    same = image_service.filter_image(img, Kernel([[1.0]]))
    np.testing.assert_array_equal(same.pixels, gradient_image)
    blurred = image_service.filter_image(img, BLUR_KERNEL)
    assert blurred.pixels is not img.pixels


def test_hsv_round_trip_through_service(image_service):
    img = image_service.create_image(np.array([[[255, 0, 0], [128, 128, 128]]], dtype=np.uint8))
    hsv = image_service.to_hsv(img)
    assert tuple(hsv[0, 0]) == (0, 255, 255)
    assert tuple(hsv[0, 1]) == (0, 0, 128)
    np.testing.assert_array_equal(image_service.from_hsv(hsv).pixels, img.pixels)


def test_preserve_original_state(image_service, gradient_image):
    img = image_service.create_image(gradient_image.copy())
    image_service.apply_pipeline_modification(img, np.zeros_like(gradient_image))
    np.testing.assert_array_equal(img.original_pixels, gradient_image)
    assert not img.pixels.any()


def test_resize_frames_keeps_delays(gif_path):
    seq = GifRepository.load(gif_path)
    resized = resize_frames(seq, 2, 2, blur_iterations=1)
    seq.release(BufferOwner.DECODER)

    assert (resized.width, resized.height) == (2, 2)
    assert [f.delay for f in resized] == [100, 200, 300]
    assert all(f.pixels.shape == (2, 2, 3) for f in resized)
    assert resized.release(BufferOwner.ALIGNED) == 3


def test_resize_frames_rejects_released_sequence(gif_path):
    seq = GifRepository.load(gif_path)
    seq.release(BufferOwner.DECODER)
    with pytest.raises(ValueError):
        resize_frames(seq, 2, 2)


def test_resize_gallery_sets_output_paths(tmp_path, image_service, quadrant_image):
    gallery = [image_service.create_image(quadrant_image.copy(), tmp_path / "q.jpg")]
    out = resize_gallery(gallery, 4, 4, image_service=image_service,
                         output_dir=tmp_path / "out", ext=".png")
    assert out[0].path == tmp_path / "out" / "q.png"
    assert out[0].pixels.shape == (4, 4, 3)
    assert out[0].original_pixels.shape == (8, 8, 3)
