"""
Frame Resizer Pipeline
Resizes every frame of an animation (or every image of a gallery) to a
common size, optionally blurring each result.
"""

import os
from pathlib import Path
from typing import Iterable, List
import logging

import numpy as np
from tqdm import tqdm
from dotenv import load_dotenv

from ..models.frame import Frame, FrameSequence
from ..models.image import Image
from ..services.image_service import ImageService

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

OUTPUT_DIR = os.getenv("OUTPUT_DIR_PATH", "data/resized")
OUTPUT_EXT = os.getenv("OUTPUT_IMG_EXT", ".png")


def resize_frames(
    sequence: FrameSequence,
    width: int,
    height: int,
    blur_iterations: int = 0,
    *,
    image_service: ImageService | None = None,
) -> FrameSequence:
    """
    Resize each frame's RGB pixels; alpha is dropped.

    Args:
        sequence: Loaded frames (not yet released).
        width, height: Target size.
        blur_iterations: > 0 adds the blur post-pass.
        image_service: Service used for the resize.

    Returns:
        FrameSequence: New sequence with library-owned RGB buffers and the same delays.
    """
    if sequence.released:
        raise ValueError("Cannot resize a released FrameSequence")

    image_service = image_service or ImageService()
    resized = FrameSequence(width=width, height=height)

    for frame in tqdm(sequence.frames, desc="frames", ncols=70, disable=len(sequence) < 2):
        # Decoder buffers are RGBA; the resize path works on a contiguous RGB copy.
        rgb = np.ascontiguousarray(frame.rgb)
        new_pixels = image_service.resize_pixels(rgb, width, height, blur_iterations)
        resized.append(Frame(delay=frame.delay, pixels=new_pixels))

    logger.info(f"Resized {len(resized)} frames to {width}x{height}")
    return resized


def resize_gallery(
    gallery: Iterable[Image],
    width: int,
    height: int,
    blur_iterations: int = 0,
    *,
    image_service: ImageService | None = None,
    output_dir: str | Path = OUTPUT_DIR,
    ext: str = OUTPUT_EXT,
) -> List[Image]:
    """
    Resize every image in *gallery* in-memory (preserving originals) and
    point each one at `output_dir/<stem><ext>` ready for saving.
    """
    image_service = image_service or ImageService()
    output_dir = Path(output_dir)
    output_ext = ext or ".png"

    resized_gallery = []
    for img in tqdm(list(gallery), desc="images", ncols=70):
        new_pixels = image_service.resize_pixels(img.pixels, width, height, blur_iterations)
        image_service.apply_pipeline_modification(img, new_pixels)

        stem = img.path.stem if img.path else f"image_{len(resized_gallery)}"
        img.path = output_dir / f"{stem}{output_ext}"
        resized_gallery.append(img)

    logger.info(f"Resized {len(resized_gallery)} images to {width}x{height}")
    return resized_gallery
