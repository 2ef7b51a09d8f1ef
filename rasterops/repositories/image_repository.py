from pathlib import Path
from typing import Union, Iterable, Iterator
import logging
import os
import signal

import numpy as np
import cv2
from PIL import Image as PILImage
from dotenv import load_dotenv

from ..models.image import Image

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class ImageRepository:
    """
    Handles file I/O and pixel updates for Image entities.
    """
    def __init__(self):
        self.VALID_EXTS = {
            ext.strip().lower()
            for ext in os.getenv("VALID_IMAGE_EXTENSIONS", ".png,.jpg,.jpeg,.bmp").split(",")
            if ext.strip()
        }
        self.load_timeout = int(os.getenv("IMAGE_LOAD_TIMEOUT", "5"))

    @staticmethod
    def create_image(pixels: np.ndarray, path: Union[str, Path] = None) -> Image:
        if path is None:
            return Image(pixels)
        return Image(pixels=pixels, path=Path(path))

    @staticmethod
    def load(path: Union[str, Path], timeout: int = 5) -> Image:
        path = Path(path)

        # ─── timeout wrapper ──────────────────────────────────────────────
        def _handler(signum, frame):
            raise TimeoutError(f"cv2.imread timed-out after {timeout}s: {path}")

        previous = signal.signal(signal.SIGALRM, _handler)
        signal.alarm(timeout)
        try:
            arr_bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)
        finally:
            signal.alarm(0)  # always disarm
            signal.signal(signal.SIGALRM, previous)
        # ──────────────────────────────────────────────────────────────────

        if arr_bgr is None:
            raise FileNotFoundError(f"Image not found or unreadable: {path}")

        arr = np.ascontiguousarray(arr_bgr[:, :, ::-1])
        return Image(pixels=arr, path=path)

    @staticmethod
    def save(image: Image) -> None:
        if image.path is None:
            raise ValueError("Image has no path to save to")
        Path(image.path).parent.mkdir(parents=True, exist_ok=True)
        PILImage.fromarray(image.pixels).save(image.path)

    @staticmethod
    def update_pixels_preserve_original(image: Image, new_pixels: np.ndarray) -> None:
        """Update pixels while preserving original for comparison"""
        if image.original_pixels is None:
            image.original_pixels = image.pixels.copy()
        image.pixels = new_pixels

    def iter_dir(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[Image]:
        """
        Yield Image objects one at a time.  Nothing accumulates in memory.
        Unreadable files are logged and skipped.
        """
        folder = Path(folder)
        if not folder.is_dir():
            raise NotADirectoryError(folder)

        allowed = {e.lower() for e in (exts or self.VALID_EXTS)}
        pattern = "**/*" if recursive else "*"

        for p in sorted(folder.glob(pattern)):
            if p.suffix.lower() not in allowed:
                logger.debug(f"Skipping due to extension: {p}")
                continue
            if not p.is_file():
                logger.debug(f"Skipping because not file: {p}")
                continue
            try:
                img = self.load(p, timeout=self.load_timeout)
            except (FileNotFoundError, TimeoutError) as err:
                logger.warning(f"Skipping {p.name}: {err}")
                continue
            logger.debug(f"Loaded: {p}")
            yield img

