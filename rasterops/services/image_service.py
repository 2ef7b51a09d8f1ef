from pathlib import Path
from typing import Iterable, Union, Iterator
import logging

import numpy as np
from dotenv import load_dotenv

from ..models.image import Image
from ..models.kernel import Kernel
from ..models.pixel_buffer import new_buffer
from ..repositories.image_repository import ImageRepository
from .color_service import ColorService
from .filter_service import FilterService
from .resize_service import ResizeService

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class ImageService:
    """I/O helpers plus the buffer operations lifted to Image objects."""
    def __init__(self):
        self.image_repository = ImageRepository()
        self.filter_service = FilterService()
        self.resize_service = ResizeService(self.filter_service)
        self.color_service = ColorService()

    def create_image(self, pixels: np.ndarray, path: Union[str, Path] = None) -> Image:
        return self.image_repository.create_image(pixels, path)

    def load(self, path: str | Path) -> Image:
        """Load a single image from disk into an Image object."""
        return self.image_repository.load(path, timeout=self.image_repository.load_timeout)

    def stream_gallery(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[Image]:
        """
        Yield images lazily instead of returning a gigantic list.
        """
        return self.image_repository.iter_dir(folder,
                                              recursive=recursive,
                                              exts=exts)

    def apply_pipeline_modification(self, image: Image, new_pixels: np.ndarray) -> None:
        """
        Apply a pipeline modification while preserving original for comparison.
        """
        self.image_repository.update_pixels_preserve_original(image, new_pixels)

    def save(self, image: Image) -> None:
        """
        Business-level method to save the image to a specific path.
        """
        self.image_repository.save(image)

    def save_gallery(self, gallery: Iterable[Image]):
        for img in gallery:
            self.save(img)

    # ─── Pixel operations ────────────────────────────────────────────
    def resize_pixels(self, pixels: np.ndarray, width: int, height: int, blur_iterations: int = 0) -> np.ndarray:
        """
        Allocate destination (and scratch when blurring) and resize into it.
        """
        dest = new_buffer(width, height)
        scratch = new_buffer(width, height) if blur_iterations > 0 else None
        return self.resize_service.resize(pixels, dest, blur_iterations, scratch)

    def resize_image(self, img: Image, width: int, height: int, blur_iterations: int = 0) -> Image:
        """
        Resize an image and return a *new* Image at the same path.
        """
        new_pixels = self.resize_pixels(img.pixels, width, height, blur_iterations)
        logger.info(f"Resized {img.path.name if img.path else 'image'}: "
                    f"{img.width}x{img.height} -> {width}x{height}")
        return self.create_image(new_pixels, img.path)

    def filter_image(self, img: Image, kernel: Kernel) -> Image:
        """
        Convolve an image with `kernel` and return a *new* Image.
        """
        dest = np.empty_like(img.pixels)
        self.filter_service.apply_kernel(img.pixels, dest, kernel)
        return self.create_image(dest, img.path)

    def to_hsv(self, img: Image) -> np.ndarray:
        """(H, W, 3) HSV array, all channels on the 0-255 scale."""
        return self.color_service.rgb_buffer_to_hsv(img.pixels)

    def from_hsv(self, hsv_pixels: np.ndarray, path: Union[str, Path] = None) -> Image:
        return self.create_image(self.color_service.hsv_buffer_to_rgb(hsv_pixels), path)
