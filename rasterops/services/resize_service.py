from __future__ import annotations

import logging

import numpy as np

from ..models.kernel import BLUR_KERNEL
from ..models.pixel_buffer import require_rgb_buffer
from .filter_service import FilterService

logger = logging.getLogger(__name__)


def _axis_indices(src_extent: int, dst_extent: int) -> np.ndarray:
    """
    Nearest-neighbour source index for every destination index on one axis.
    Downsampling strides through the source, upsampling repeats each source
    pixel `step` times.
    """
    coords = np.arange(dst_extent)
    if dst_extent < src_extent:
        step = src_extent // dst_extent
        indices = coords * step
    else:
        step = dst_extent // src_extent
        indices = coords // step
    # Non-integer upscale factors would run past the last source pixel.
    return np.minimum(indices, src_extent - 1)


class ResizeService:
    """
    Nearest-neighbour resize with an optional 5x5 blur post-pass.
    Up/down sampling is decided per axis.
    """

    def __init__(self, filter_service: FilterService | None = None):
        self.filter_service = filter_service or FilterService()

    def resize(
        self,
        source: np.ndarray,
        dest: np.ndarray,
        blur_iterations: int = 0,
        blur_scratch: np.ndarray | None = None,
    ) -> np.ndarray:
        """
        Resample `source` into `dest` (sizes taken from the buffer shapes).

        Args:
            source: (src_h, src_w, 3) uint8 buffer.
            dest: (dst_h, dst_w, 3) uint8 buffer, written in place.
            blur_iterations: > 0 runs a single blur pass after resampling.
            blur_scratch: caller-owned buffer shaped like `dest`; required when blurring.

        Returns:
            `dest`.
        """
        require_rgb_buffer(source, "source")
        require_rgb_buffer(dest, "dest")
        if np.may_share_memory(source, dest):
            raise ValueError("source and dest must not alias")

        src_h, src_w = source.shape[:2]
        dst_h, dst_w = dest.shape[:2]

        if blur_iterations > 0:
            if blur_scratch is None:
                raise ValueError("blur_scratch is required when blur_iterations > 0")
            require_rgb_buffer(blur_scratch, "blur_scratch")
            if blur_scratch.shape != dest.shape:
                raise ValueError(f"blur_scratch {blur_scratch.shape} must match dest {dest.shape}")

        ys = _axis_indices(src_h, dst_h)
        xs = _axis_indices(src_w, dst_w)
        dest[...] = source[ys[:, None], xs[None, :]]

        if blur_iterations > 0:
            # Only one pass regardless of the count.
            blur_scratch[...] = dest
            self.filter_service.apply_kernel(blur_scratch, dest, BLUR_KERNEL)

        logger.debug(f"Resized {src_w}x{src_h} -> {dst_w}x{dst_h} (blur={blur_iterations > 0})")
        return dest
