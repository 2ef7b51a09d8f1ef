import sys
import argparse
import logging
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from ..models.frame import BufferOwner
from ..pipeline.frame_resizer import resize_frames, resize_gallery, OUTPUT_DIR, OUTPUT_EXT
from ..repositories.gif_repository import GifRepository
from ..services.image_service import ImageService

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rasterops-batch",
        description="Nearest-neighbour resize for animated GIFs, single images or image folders.",
    )
    parser.add_argument("input", type=Path, help="GIF, image file or directory of images")
    parser.add_argument("--width", type=int, required=True)
    parser.add_argument("--height", type=int, required=True)
    parser.add_argument("--blur", action="store_true", help="apply the 5x5 blur after resizing")
    parser.add_argument("--output", type=Path, default=None,
                        help=f"output file (GIF / image) or directory (default: {OUTPUT_DIR})")
    parser.add_argument("--recursive", action="store_true", help="descend into sub-directories")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _process_gif(args, image_service: ImageService) -> int:
    sequence = GifRepository.load(args.input)
    if not sequence.ok:
        logger.error(f"Could not load {args.input}: {sequence.error}")
        return 1

    try:
        resized = resize_frames(sequence, args.width, args.height, int(args.blur),
                                image_service=image_service)
    finally:
        sequence.release(BufferOwner.DECODER)

    output = args.output or Path(OUTPUT_DIR) / args.input.name
    try:
        GifRepository.save(resized, output)
    finally:
        resized.release(BufferOwner.ALIGNED)
    print(f"Wrote {output}")
    return 0


def _process_images(args, image_service: ImageService) -> int:
    if args.input.is_dir():
        gallery = image_service.stream_gallery(args.input, recursive=args.recursive)
        output_dir = args.output or Path(OUTPUT_DIR)
    else:
        gallery = [image_service.load(args.input)]
        output_dir = args.output.parent if args.output else Path(OUTPUT_DIR)

    resized_gallery = resize_gallery(gallery, args.width, args.height, int(args.blur),
                                     image_service=image_service,
                                     output_dir=output_dir, ext=OUTPUT_EXT)
    if args.output and not args.input.is_dir() and resized_gallery:
        resized_gallery[0].path = args.output

    image_service.save_gallery(resized_gallery)
    print(f"Wrote {len(resized_gallery)} image(s) to {output_dir}")
    return 0


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)

    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    if args.width <= 0 or args.height <= 0:
        logger.error(f"Target size must be positive, got {args.width}x{args.height}")
        return 2

    image_service = ImageService()
    try:
        if args.input.is_file() and args.input.suffix.lower() == ".gif":
            return _process_gif(args, image_service)
        return _process_images(args, image_service)
    except (FileNotFoundError, NotADirectoryError, TimeoutError, ValueError) as err:
        logger.error(f"{err}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
