from __future__ import annotations

import os
import logging

import numpy as np
from dotenv import load_dotenv

from ..models.kernel import Kernel
from ..models.pixel_buffer import require_rgb_buffer

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class FilterService:
    """
    Generic 2D convolution over RGB buffers.
    Edges wrap around (toroidal), so every output pixel sees a full kernel.
    """

    def __init__(self):
        self.default_factor = float(os.getenv("FILTER_FACTOR", "1.0"))
        self.default_bias = float(os.getenv("FILTER_BIAS", "0.0"))

    def apply(
        self,
        source: np.ndarray,
        dest: np.ndarray,
        kernel: np.ndarray,
        factor: float | None = None,
        bias: float | None = None,
    ) -> np.ndarray:
        """
        Convolve `source` with `kernel` into `dest` and return `dest`.

        Args:
            source: (H, W, 3) uint8 buffer to read.
            dest: (H, W, 3) uint8 buffer to write; must not overlap `source`
                unless the kernel is 1x1.
            kernel: 2D weights, (kernel_h, kernel_w).
            factor: scale applied to each weighted sum (defaults to env FILTER_FACTOR).
            bias: offset added after scaling (defaults to env FILTER_BIAS).

        Raises:
            ValueError: on malformed buffers, shape mismatch, aliasing or an empty kernel.
        """
        require_rgb_buffer(source, "source")
        require_rgb_buffer(dest, "dest")
        if source.shape != dest.shape:
            raise ValueError(f"source {source.shape} and dest {dest.shape} must have the same shape")

        weights = np.asarray(kernel, dtype=np.float64)
        if weights.ndim != 2 or weights.size == 0:
            raise ValueError(f"kernel must be a non-empty 2D array, got shape {weights.shape}")
        kernel_h, kernel_w = weights.shape

        if weights.size > 1 and np.may_share_memory(source, dest):
            raise ValueError("source and dest must not alias for kernels larger than 1x1")

        factor = self.default_factor if factor is None else factor
        bias = self.default_bias if bias is None else bias

        src = source.astype(np.float64)
        acc = np.zeros_like(src)
        # Output (y, x) reads source (y - kernel_h//2 + fy, x - kernel_w//2 + fx), wrapped;
        # np.roll by the negated offset lines that pixel up with (y, x).
        for fy in range(kernel_h):
            for fx in range(kernel_w):
                weight = weights[fy, fx]
                if weight == 0.0:
                    continue
                shift = (kernel_h // 2 - fy, kernel_w // 2 - fx)
                acc += weight * np.roll(src, shift, axis=(0, 1))

        out = np.rint(factor * acc + bias)
        np.clip(out, 0, 255, out=out)
        dest[...] = out.astype(np.uint8)

        logger.debug(f"Applied {kernel_w}x{kernel_h} kernel to {source.shape[1]}x{source.shape[0]} buffer")
        return dest

    def apply_kernel(self, source: np.ndarray, dest: np.ndarray, kernel: Kernel) -> np.ndarray:
        """Convolve with a Kernel's own factor and bias."""
        return self.apply(source, dest, kernel.weights, kernel.factor, kernel.bias)
