"""
Decoded animation frames and the sequence that owns them.

A sequence's pixel buffers come from one of two places: buffers the
decoder allocated itself, or buffers this library copied them into.
Teardown has to send each buffer back the right way, so the caller states
which one with a BufferOwner.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, List, Optional, Protocol

import numpy as np

logger = logging.getLogger(__name__)


class BufferOwner(Enum):
    """Who allocated a frame's pixel buffer."""
    ALIGNED = auto()   # copied into library-owned buffers
    DECODER = auto()   # still owned by the decoder


@dataclass
class DecodedFrame:
    """One frame as produced by a decoder."""
    pixels: np.ndarray  # (H, W, 4) uint8 RGBA
    delay: int          # display time in milliseconds


class FrameDecoder(Protocol):
    """
    External decoding collaborator.
    next_frame() returns None at end-of-stream or on a decode error.
    """
    width: int
    height: int
    error: Optional[str]

    def next_frame(self) -> Optional[DecodedFrame]: ...

    def release(self, buffer: np.ndarray) -> None: ...

    def close(self) -> None: ...


@dataclass
class Frame:
    delay: int
    pixels: np.ndarray

    @property
    def rgb(self) -> np.ndarray:
        """Pixels without alpha, (H, W, 3)."""
        return self.pixels[..., :3]


@dataclass
class FrameSequence:
    """
    Owned, ordered list of frames.
    An empty sequence with `error` set means loading failed.
    `owner` records who allocated the frame buffers; release() must match it.
    """
    frames: List[Frame] = field(default_factory=list)
    width: int = 0
    height: int = 0
    error: Optional[str] = None
    decoder: Optional[FrameDecoder] = None
    owner: BufferOwner = BufferOwner.ALIGNED
    released: bool = False

    def __len__(self) -> int:
        return len(self.frames)

    def __iter__(self) -> Iterator[Frame]:
        return iter(self.frames)

    def __getitem__(self, index: int) -> Frame:
        return self.frames[index]

    @property
    def ok(self) -> bool:
        return self.error is None and len(self.frames) > 0

    @property
    def total_delay(self) -> int:
        return sum(f.delay for f in self.frames)

    def append(self, frame: Frame) -> None:
        if self.released:
            raise ValueError("Cannot append to a released FrameSequence")
        self.frames.append(frame)

    def release(self, owner: BufferOwner) -> int:
        """
        Free every frame buffer exactly once, then drop the frames.
        Returns the number of frames released; a second call returns 0.
        """
        if self.released:
            return 0
        if self.frames and owner is not self.owner:
            raise ValueError(f"Frames are {self.owner.name}-owned, cannot release them as {owner.name}")
        if owner is BufferOwner.DECODER and self.decoder is None and self.frames:
            raise ValueError("DECODER release requested but the sequence has no decoder")

        count = 0
        for frame in self.frames:
            if owner is BufferOwner.DECODER:
                self.decoder.release(frame.pixels)
            frame.pixels = None
            count += 1

        self.frames.clear()
        self.released = True
        logger.debug(f"Released {count} frames ({owner.name})")
        return count
