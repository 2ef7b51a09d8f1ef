from __future__ import annotations
import numpy as np


def new_buffer(width: int, height: int) -> np.ndarray:
    """Zeroed (H, W, 3) uint8 buffer."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Buffer size must be positive, got {width}x{height}")
    return np.zeros((height, width, 3), dtype=np.uint8)


def require_rgb_buffer(buf: np.ndarray | None, name: str = "buffer") -> np.ndarray:
    """
    Precondition check for pixel buffers: (H, W, 3) uint8, non-empty.
    Returns the buffer unchanged so it can be used inline.
    """
    if buf is None:
        raise ValueError(f"{name} is required")
    if not isinstance(buf, np.ndarray):
        raise ValueError(f"{name} must be a numpy array, got {type(buf).__name__}")
    if buf.ndim != 3 or buf.shape[2] != 3:
        raise ValueError(f"{name} must have shape (H, W, 3), got {buf.shape}")
    if buf.dtype != np.uint8:
        raise ValueError(f"{name} must be uint8, got {buf.dtype}")
    if buf.shape[0] == 0 or buf.shape[1] == 0:
        raise ValueError(f"{name} must not be empty, got {buf.shape}")
    return buf


def pack_pixels(buf: np.ndarray) -> np.ndarray:
    """
    (H, W, 3) uint8 -> flat uint32 words, row-major.
    r lands in byte 0, g in byte 1, b in byte 2.
    """
    require_rgb_buffer(buf)
    words = buf.astype(np.uint32)
    packed = words[..., 0] | (words[..., 1] << 8) | (words[..., 2] << 16)
    return packed.reshape(-1)


def unpack_pixels(words: np.ndarray, width: int, height: int) -> np.ndarray:
    """Flat uint32 words -> (H, W, 3) uint8. The top byte is ignored."""
    words = np.asarray(words, dtype=np.uint32)
    if words.size != width * height:
        raise ValueError(f"Expected {width * height} words for {width}x{height}, got {words.size}")
    grid = words.reshape(height, width)
    out = np.empty((height, width, 3), dtype=np.uint8)
    out[..., 0] = grid & 0xFF
    out[..., 1] = (grid >> 8) & 0xFF
    out[..., 2] = (grid >> 16) & 0xFF
    return out
