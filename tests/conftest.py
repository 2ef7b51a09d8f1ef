import numpy as np
import pytest
from PIL import Image as PILImage


@pytest.fixture
def quadrant_image():
    """Returns a simple 8x8 uint8 RGB buffer, one colour per quadrant."""
    img = np.zeros((8, 8, 3), dtype=np.uint8)
    img[:4, :4] = [255, 0, 0]    # Red quadrant
    img[:4, 4:] = [0, 255, 0]    # Green quadrant
    img[4:, :4] = [0, 0, 255]    # Blue quadrant
    img[4:, 4:] = [255, 255, 0]  # Yellow quadrant
    return img


@pytest.fixture
def gradient_image():
    """Returns a 5x7 buffer where every pixel is distinct."""
    h, w = 5, 7
    ys, xs = np.mgrid[0:h, 0:w]
    img = np.stack([xs * 30, ys * 50, (xs + ys) * 10], axis=-1)
    return img.astype(np.uint8)


@pytest.fixture
def gif_path(tmp_path):
    """Three 4x4 solid frames (red, green, blue) with 100/200/300 ms delays."""
    colours = [(255, 0, 0), (0, 255, 0), (0, 0, 255)]
    frames = [PILImage.new("RGB", (4, 4), c) for c in colours]
    path = tmp_path / "anim.gif"
    frames[0].save(path, save_all=True, append_images=frames[1:], duration=[100, 200, 300], loop=0)
    return path
