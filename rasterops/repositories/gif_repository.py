from pathlib import Path
from typing import BinaryIO, Optional, Union
import logging

import numpy as np
from PIL import Image as PILImage, UnidentifiedImageError

from ..models.frame import BufferOwner, DecodedFrame, Frame, FrameSequence

logger = logging.getLogger(__name__)

GIF_SIGNATURES = (b"GIF87a", b"GIF89a")


def is_gif(header: bytes) -> bool:
    return header[:6] in GIF_SIGNATURES


class PillowGifDecoder:
    """
    Frame-at-a-time GIF decoding backed by Pillow.
    Buffers handed out by next_frame() stay tracked until release() is
    called for them.
    """

    def __init__(self, stream: BinaryIO):
        self._image = PILImage.open(stream)
        self._index = 0
        self._live: dict[int, np.ndarray] = {}
        self.width, self.height = self._image.size
        self.error: Optional[str] = None

    @property
    def live_buffers(self) -> int:
        return len(self._live)

    def next_frame(self) -> Optional[DecodedFrame]:
        """Next RGBA frame, or None at end of stream / on error (see `error`)."""
        if self._image is None:
            return None
        try:
            self._image.seek(self._index)
            pixels = np.array(self._image.convert("RGBA"), dtype=np.uint8)
        except EOFError:
            return None
        except (OSError, ValueError) as err:
            self.error = f"Decode failed at frame {self._index}: {err}"
            logger.warning(self.error)
            return None

        delay = int(self._image.info.get("duration", 0) or 0)
        self._index += 1
        self._live[id(pixels)] = pixels
        return DecodedFrame(pixels=pixels, delay=delay)

    def release(self, buffer: np.ndarray) -> None:
        if self._live.pop(id(buffer), None) is None:
            raise ValueError("Buffer was not allocated by this decoder or was already released")

    def close(self) -> None:
        if self._image is not None:
            self._image.close()
            self._image = None


class GifRepository:
    """
    Assembles decoded GIF frames into a FrameSequence and writes them back.
    Never raises for unreadable input: the returned sequence carries `error`.
    """

    @staticmethod
    def load(path: Union[str, Path], *, copy_frames: bool = False) -> FrameSequence:
        """
        Decode every frame of a GIF.

        Args:
            path: GIF file on disk.
            copy_frames: copy each frame into a library-owned buffer and hand
                the decoder's buffer straight back. Release the result with
                BufferOwner.ALIGNED; otherwise use BufferOwner.DECODER.

        Returns:
            FrameSequence; empty with `error` set when nothing could be decoded.
        """
        path = Path(path)
        try:
            stream = open(path, "rb")
        except OSError as err:
            logger.warning(f"Unable to open {path}: {err}")
            return FrameSequence(error=f"Unable to open file: {path}")

        with stream:
            if not is_gif(stream.read(6)):
                logger.warning(f"Not a GIF: {path}")
                return FrameSequence(error=f"Unsupported format (not a GIF): {path}")
            stream.seek(0)

            try:
                decoder = PillowGifDecoder(stream)
            except (UnidentifiedImageError, OSError) as err:
                logger.warning(f"Unable to decode {path}: {err}")
                return FrameSequence(error=f"Unable to decode file: {path}")

            sequence = FrameSequence(
                decoder=None if copy_frames else decoder,
                owner=BufferOwner.ALIGNED if copy_frames else BufferOwner.DECODER,
            )
            try:
                while True:
                    decoded = decoder.next_frame()
                    if decoded is None:
                        break
                    if copy_frames:
                        pixels = decoded.pixels.copy()
                        decoder.release(decoded.pixels)
                    else:
                        pixels = decoded.pixels
                    sequence.append(Frame(delay=decoded.delay, pixels=pixels))
            finally:
                decoder.close()

        if decoder.error and not sequence.frames:
            sequence.error = decoder.error
        if sequence.frames:
            sequence.width, sequence.height = decoder.width, decoder.height
        elif sequence.error is None:
            sequence.error = f"No frames decoded: {path}"

        logger.info(f"Loaded {len(sequence)} frames from {path.name}")
        return sequence

    @staticmethod
    def save(sequence: FrameSequence, path: Union[str, Path]) -> Path:
        """Write frames as a looping animated GIF with their delays."""
        if not sequence.frames:
            raise ValueError("Cannot save an empty FrameSequence")

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        images = [PILImage.fromarray(np.ascontiguousarray(f.pixels)) for f in sequence.frames]
        images[0].save(
            path,
            format="GIF",
            save_all=True,
            append_images=images[1:],
            duration=[f.delay for f in sequence.frames],
            loop=0,
        )
        logger.info(f"Saved {len(images)} frames to {path}")
        return path
