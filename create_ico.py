import argparse
import sys
from pathlib import Path
from typing import List, Optional

from icopack.config import ResolutionSpec, Settings, load_settings
from icopack.core import IconBuilder
from icopack.errors import IconError


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="create_ico",
        description="Build a multi-resolution .ico file from a 256x256 RGBA image.",
    )
    parser.add_argument(
        "output",
        type=Path,
        help="Path of the .ico file to create. Must not exist yet.",
    )
    parser.add_argument(
        "image256",
        type=Path,
        help="256x256 RGBA source image.",
    )
    parser.add_argument(
        "image16",
        type=Path,
        nargs="?",
        help="Optional 16x16 RGBA image used as-is instead of a downsampled one.",
    )
    parser.add_argument(
        "--resolutions",
        type=ResolutionSpec.parse,
        help="Comma separated sizes, largest first (default: 256,72,48,32,16).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print the size of every encoded resolution.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        settings = load_settings()
        if args.resolutions is not None:
            settings = Settings(
                resolutions=args.resolutions,
                resample_filter=settings.resample_filter,
                alpha_uses_colorspace=settings.alpha_uses_colorspace,
            )
        builder = IconBuilder(settings=settings, verbose=args.verbose)
        destination = builder.build(args.output, args.image256, args.image16)
    except (IconError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 1

    print(f"'{destination}': success")
    return 0


if __name__ == "__main__":
    sys.exit(main())
