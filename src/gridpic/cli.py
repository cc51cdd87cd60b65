import argparse
import logging
import sys
from pathlib import Path

from gridpic.pipeline import Failure, run_pipeline
from gridpic.quantize import DEFAULT_LEVELS, MAX_LEVELS, QuantizationConfig

logger = logging.getLogger(__name__)


def _levels(value: str) -> int:
    levels = int(value)
    if not 1 <= levels <= MAX_LEVELS:
        raise argparse.ArgumentTypeError(f"levels must be between 1 and {MAX_LEVELS}")
    return levels


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Quantize an image into a grid of palette indices")
    parser.add_argument("image", help="Path to input image")
    parser.add_argument(
        "-l",
        "--levels",
        type=_levels,
        default=DEFAULT_LEVELS,
        help=f"Bins per colour channel (default: {DEFAULT_LEVELS})",
    )
    parser.add_argument("-o", "--output", default=None, help="Write the grid to this file instead of stdout")
    parser.add_argument("--data-url", default=None, help="Write the PNG data URL of the decoded image to this file")
    parser.add_argument("-v", "--verbose", action="store_true", default=False, help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    image_path = Path(args.image)
    if not image_path.is_file():
        print(f"File not found: {image_path}", file=sys.stderr)
        return 1

    result = run_pipeline(image_path.read_bytes(), QuantizationConfig(levels=args.levels))
    if isinstance(result, Failure):
        print(f"{type(result.error).__name__}: {result.message}", file=sys.stderr)
        return 1

    try:
        if args.data_url is not None:
            Path(args.data_url).write_text(result.output.display + "\n")
            logger.debug("Wrote data URL to %s", args.data_url)
        if args.output is not None:
            Path(args.output).write_text(result.output.grid)
    except OSError as e:
        print(f"Failed to write output: {e}", file=sys.stderr)
        return 1
    if args.output is None:
        sys.stdout.write(result.output.grid)
    return 0


if __name__ == "__main__":
    sys.exit(main())
