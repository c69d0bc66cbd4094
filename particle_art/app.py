"""particle-art command line - Main entry point."""

import argparse
import logging
import sys
from dataclasses import asdict, replace
from pathlib import Path

from particle_art.batch import BatchStatus, RateLimiter, convert_batch, save_svg
from particle_art.config_manager import ConfigManager
from particle_art.errors import ParticleArtError
from particle_art.image_processing import ImageProcessor
from particle_art.models import ExportFormat, ExportOptions

SETTING_KEYS = ("particle_size", "particle_density", "blur")
ENGINE_KEYS = ("max_size", "max_colors", "palette_method")


def run_convert(args, config_manager: ConfigManager) -> int:
    """Convert images and optionally export rasters next to the SVGs."""
    settings, engine = config_manager.load()

    overrides = {
        key: value
        for key, value in (
            ("particle_size", args.size),
            ("particle_density", args.density),
            ("blur", args.blur),
        )
        if value is not None
    }
    settings = replace(settings, **overrides)
    if args.max_size is not None:
        engine.max_size = args.max_size

    export_formats = []
    if args.export:
        export_formats = [ExportFormat.from_name(f) for f in args.export.split(",") if f.strip()]

    limiter = RateLimiter(args.rate_limit, 60.0) if args.rate_limit else None
    report = convert_batch(args.images, settings, ImageProcessor(engine), limiter)

    output_dir = Path(args.output)
    for item in report.items:
        if item.status is not BatchStatus.COMPLETED:
            print(f"✗ {item.source}: {item.error}")
            continue

        result = item.result
        svg_path = save_svg(result.svg_code, item.source, output_dir)
        print(
            f"✓ {item.source} -> {svg_path} "
            f"({result.width}x{result.height}, {result.group_count} groups, "
            f"{result.processing_time:.0f}ms)"
        )

        for export_format in export_formats:
            # Imported here so SVG-only runs work without the cairo library
            from particle_art.image_processing.export import export_svg, save_blob

            options = ExportOptions(
                format=export_format,
                scale=args.scale,
                quality=args.quality,
                background=args.background,
            )
            try:
                blob = export_svg(result.svg_code, result.width, result.height, options)
            except ParticleArtError as e:
                print(f"✗ {svg_path.with_suffix(export_format.extension)}: {e}")
                item.status = BatchStatus.ERROR
                continue
            path = save_blob(blob, svg_path.with_suffix(export_format.extension))
            print(f"  ✓ {path}")

    return 1 if report.failed or report.skipped else 0


def run_config(args, config_manager: ConfigManager) -> int:
    """Show, change or reset the persisted configuration."""
    if args.action == "reset":
        ok, error = config_manager.reset()
    elif args.action == "set":
        settings, engine = config_manager.load()
        if args.key in SETTING_KEYS:
            settings = replace(settings, **{args.key: float(args.value)})
            settings.validate()
        elif args.key in ENGINE_KEYS:
            value = args.value if args.key == "palette_method" else int(args.value)
            setattr(engine, args.key, value)
        else:
            print(f"Unknown key: {args.key}")
            return 1
        ok, error = config_manager.save(settings, engine)
    else:
        settings, engine = config_manager.load()
        print(f"Config file: {config_manager.config_path}")
        for key, value in {**asdict(settings), **asdict(engine)}.items():
            print(f"  {key} = {value}")
        return 0

    if not ok:
        print(f"Failed to save configuration: {error}")
        return 1
    print(f"✓ Saved configuration to {config_manager.config_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="particle-art",
        description="Particle art - convert raster images to particle SVGs",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--config", type=Path, default=None, help="Config file path")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    convert_parser = subparsers.add_parser("convert", help="Convert images to SVG")
    convert_parser.add_argument("images", nargs="+", help="Input images (PNG/JPEG/WEBP)")
    convert_parser.add_argument("-o", "--output", default=".", help="Output directory")
    convert_parser.add_argument("--size", type=float, help="Particle radius in px")
    convert_parser.add_argument("--density", type=float, help="Particle density (10-100)")
    convert_parser.add_argument("--blur", type=float, help="Gaussian blur sigma (0 = off)")
    convert_parser.add_argument("--max-size", type=int, help="Downscale cap in px")
    convert_parser.add_argument("--export", help="Also export rasters, e.g. png,jpg,webp")
    convert_parser.add_argument("--scale", type=float, default=2.0, help="Export scale")
    convert_parser.add_argument("--quality", type=int, default=95, help="JPEG/WEBP quality")
    convert_parser.add_argument("--background", help="Export background color")
    convert_parser.add_argument(
        "--rate-limit", type=int, default=0, help="Max conversions per minute (0 = off)"
    )

    config_parser = subparsers.add_parser("config", help="Manage saved settings")
    config_parser.add_argument("action", choices=["show", "set", "reset"])
    config_parser.add_argument("key", nargs="?")
    config_parser.add_argument("value", nargs="?")

    return parser


def main(argv=None) -> int:
    """Launch the particle-art command line."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config_manager = ConfigManager(args.config) if args.config else ConfigManager()

    try:
        if args.command == "convert":
            return run_convert(args, config_manager)
        elif args.command == "config":
            if args.action == "set" and (args.key is None or args.value is None):
                parser.error("config set requires KEY and VALUE")
            return run_config(args, config_manager)
    except (ParticleArtError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
