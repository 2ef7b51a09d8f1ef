from __future__ import annotations

import os
import logging

import numpy as np
from dotenv import load_dotenv

from ..models.color import RGBColor, HSVColor
from ..models.pixel_buffer import require_rgb_buffer

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# 43 ~ 255/6: width of one hue sector on the 0-255 scale.
_SECTOR = 43
_SECTOR_BASE = (0, 85, 171)


def _trunc_div(num: int, den: int) -> int:
    # Integer division rounding toward zero.
    q = abs(num) // abs(den)
    return q if (num >= 0) == (den > 0) else -q


def _srgb_encode(linear: np.ndarray) -> np.ndarray:
    """Standard piecewise sRGB transfer function, input and output in [0, 1]."""
    return np.where(
        linear <= 0.0031308,
        linear * 12.92,
        1.055 * np.power(linear, 1.0 / 2.4) - 0.055,
    )


class ColorService:
    """
    Colour-model conversions on RGBColor / HSVColor and on whole buffers.
    Stateless apart from the configured sRGB table size.
    """

    def __init__(self):
        self.srgb_table_size = int(os.getenv("SRGB_TABLE_SIZE", "4096"))

    # ─── Single colours ─────────────────────────────────────────────
    @staticmethod
    def lerp(a: RGBColor, b: RGBColor, t: float) -> RGBColor:
        """
        Per-channel a*(1-t) + b*t, truncated toward zero.
        t is not range checked; extrapolated channels are clamped to [0, 255].
        """
        def mix(x: int, y: int) -> int:
            return min(max(int(x + (y - x) * t), 0), 255)

        return RGBColor(mix(a.r, b.r), mix(a.g, b.g), mix(a.b, b.b))

    @staticmethod
    def rgb_to_hsv(colour: RGBColor) -> HSVColor:
        r, g, b = colour.r, colour.g, colour.b
        rgb_min = min(r, g, b)
        rgb_max = max(r, g, b)

        v = rgb_max
        if v == 0:
            return HSVColor(0, 0, 0)

        span = rgb_max - rgb_min
        s = 255 * span // v
        if s == 0:
            return HSVColor(0, 0, v)

        if rgb_max == r:
            h = _SECTOR_BASE[0] + _trunc_div(_SECTOR * (g - b), span)
        elif rgb_max == g:
            h = _SECTOR_BASE[1] + _trunc_div(_SECTOR * (b - r), span)
        else:
            h = _SECTOR_BASE[2] + _trunc_div(_SECTOR * (r - g), span)

        # Negative red-dominant hues wrap around the byte.
        return HSVColor(h & 0xFF, s, v)

    @staticmethod
    def hsv_to_rgb(colour: HSVColor) -> RGBColor:
        h, s, v = colour.h, colour.s, colour.v
        if s == 0:
            return RGBColor(v, v, v)

        region = h // _SECTOR
        rem = (h - region * _SECTOR) * 6

        p = (v * (255 - s)) >> 8
        q = (v * (255 - ((s * rem) >> 8))) >> 8
        t = (v * (255 - ((s * (255 - rem)) >> 8))) >> 8

        if region == 0:
            return RGBColor(v, t, p)
        if region == 1:
            return RGBColor(q, v, p)
        if region == 2:
            return RGBColor(p, v, t)
        if region == 3:
            return RGBColor(p, q, v)
        if region == 4:
            return RGBColor(t, p, v)
        return RGBColor(v, p, q)

    # ─── sRGB table ─────────────────────────────────────────────────
    def init_srgb_table(self, size: int | None = None) -> np.ndarray:
        """
        Sample the sRGB curve at `size` evenly spaced linear intensities.
        Returns a read-only uint8 table indexed by quantised linear value.
        """
        size = self.srgb_table_size if size is None else size
        if size < 2:
            raise ValueError(f"sRGB table needs at least 2 entries, got {size}")

        linear = np.linspace(0.0, 1.0, size)
        table = np.rint(_srgb_encode(linear) * 255.0).astype(np.uint8)
        table.flags.writeable = False
        logger.debug(f"Built sRGB table with {size} entries")
        return table

    @staticmethod
    def _table_index(table: np.ndarray, linear) -> np.ndarray:
        if table is None or len(table) < 2:
            raise ValueError("A built sRGB table is required")
        linear = np.asarray(linear, dtype=np.float64)
        if not np.all(np.isfinite(linear)):
            raise ValueError("Linear components must be finite")
        linear = np.clip(linear, 0.0, 1.0)
        return np.rint(linear * (len(table) - 1)).astype(np.intp)

    def linear_to_srgb(self, table: np.ndarray, linear) -> RGBColor:
        """Gamma-encode a linear (r, g, b) triple in [0, 1] through `table`."""
        if len(linear) != 3:
            raise ValueError(f"Expected 3 linear components, got {len(linear)}")
        r, g, b = (int(x) for x in table[self._table_index(table, linear)])
        return RGBColor(r, g, b)

    # ─── Whole buffers ──────────────────────────────────────────────
    def linear_buffer_to_srgb(self, table: np.ndarray, linear: np.ndarray) -> np.ndarray:
        """(H, W, 3) float linear -> (H, W, 3) uint8 sRGB."""
        linear = np.asarray(linear)
        if linear.ndim != 3 or linear.shape[2] != 3:
            raise ValueError(f"linear buffer must have shape (H, W, 3), got {linear.shape}")
        return table[self._table_index(table, linear)]

    @staticmethod
    def rgb_buffer_to_hsv(buf: np.ndarray) -> np.ndarray:
        """Vectorised rgb_to_hsv over an (H, W, 3) buffer; same integer math."""
        require_rgb_buffer(buf, "rgb buffer")
        rgb = buf.astype(np.int32)
        r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
        rgb_max = rgb.max(axis=2)
        rgb_min = rgb.min(axis=2)
        span = rgb_max - rgb_min

        v = rgb_max
        safe_v = np.where(v == 0, 1, v)
        s = np.where(v == 0, 0, 255 * span // safe_v)

        safe_span = np.where(span == 0, 1, span)
        red = rgb_max == r
        green = ~red & (rgb_max == g)

        delta = np.where(red, g - b, np.where(green, b - r, r - g))
        base = np.where(red, _SECTOR_BASE[0], np.where(green, _SECTOR_BASE[1], _SECTOR_BASE[2]))
        # np.trunc keeps the division rounding toward zero for negative deltas.
        h = base + np.trunc(_SECTOR * delta / safe_span).astype(np.int32)
        h = np.where(s == 0, 0, h) & 0xFF

        out = np.empty_like(buf)
        out[..., 0] = h
        out[..., 1] = s
        out[..., 2] = v
        return out

    @staticmethod
    def hsv_buffer_to_rgb(buf: np.ndarray) -> np.ndarray:
        """Vectorised hsv_to_rgb over an (H, W, 3) buffer; same integer math."""
        require_rgb_buffer(buf, "hsv buffer")
        hsv = buf.astype(np.int32)
        h, s, v = hsv[..., 0], hsv[..., 1], hsv[..., 2]

        region = h // _SECTOR
        rem = (h - region * _SECTOR) * 6
        p = (v * (255 - s)) >> 8
        q = (v * (255 - ((s * rem) >> 8))) >> 8
        t = (v * (255 - ((s * (255 - rem)) >> 8))) >> 8

        # One (r, g, b) choice per sector; anything past 4 uses the last one.
        sectors = [
            (v, t, p),
            (q, v, p),
            (p, v, t),
            (p, q, v),
            (t, p, v),
        ]
        conditions = [region == i for i in range(len(sectors))]
        out = np.empty_like(buf)
        for channel, default in enumerate((v, p, q)):
            picked = np.select(conditions, [sec[channel] for sec in sectors], default=default)
            out[..., channel] = np.where(s == 0, v, picked)
        return out
