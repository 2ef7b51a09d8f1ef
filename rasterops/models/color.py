from __future__ import annotations
from dataclasses import dataclass

import numpy as np


def _check_channels(name: str, values) -> None:
    for field, value in zip(name, values):
        if not isinstance(value, (int, np.integer)):
            raise ValueError(f"{name}.{field} must be an integer, got {value!r}")
        if not 0 <= value <= 255:
            raise ValueError(f"{name}.{field} must be in [0, 255], got {value}")


@dataclass(frozen=True)
class RGBColor:
    """
    Value object: three 8-bit channels.
    Packed layout is r in byte 0, g in byte 1, b in byte 2, top byte unused.
    """
    r: int = 0
    g: int = 0
    b: int = 0

    def __post_init__(self):
        _check_channels("rgb", (self.r, self.g, self.b))

    @property
    def packed(self) -> int:
        return self.r | (self.g << 8) | (self.b << 16)

    @classmethod
    def from_packed(cls, word: int) -> RGBColor:
        return cls(word & 0xFF, (word >> 8) & 0xFF, (word >> 16) & 0xFF)

    def as_tuple(self) -> tuple[int, int, int]:
        return self.r, self.g, self.b


@dataclass(frozen=True)
class HSVColor:
    """
    Value object: hue, saturation and value, all scaled to [0, 255].
    Hue is in 1/255ths of a full turn, not degrees.
    """
    h: int = 0
    s: int = 0
    v: int = 0

    def __post_init__(self):
        _check_channels("hsv", (self.h, self.s, self.v))

    @property
    def packed(self) -> int:
        return self.h | (self.s << 8) | (self.v << 16)

    @classmethod
    def from_packed(cls, word: int) -> HSVColor:
        return cls(word & 0xFF, (word >> 8) & 0xFF, (word >> 16) & 0xFF)

    def as_tuple(self) -> tuple[int, int, int]:
        return self.h, self.s, self.v
