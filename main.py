# ==============================
# main.py
# ==============================
import argparse
import sys

from dzi_assemble import AssembleConfig, AssembleError, run
from dzi_assemble.logger import setup_logger


def _str_to_bool(value: str) -> bool:
    v = value.strip().lower()
    if v in ("true", "1", "yes", "on"):
        return True
    if v in ("false", "0", "no", "off"):
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got {value!r}")


def build_parser(defaults: AssembleConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="assemble-dzi",
        description="Assemble .dzi tile pyramids into one PNG per layer",
    )
    parser.add_argument("-e", "--event-dir", default=defaults.event_dir, help="Directory containing .dzi files")
    parser.add_argument("-t", "--tex-dir", default=defaults.tex_dir, help="Tile directory, relative to the event dir")
    parser.add_argument("-o", "--output-dir", default=defaults.output_dir, help="Output directory, relative to the event dir (recreated on every run)")
    parser.add_argument("--enable-lower-layers", type=_str_to_bool, default=defaults.enable_lower_layers,
                        metavar="{true,false}", help="Also compose layers below layer_1")
    parser.add_argument("--strict", action="store_true", default=defaults.strict_grid, help="Reject ragged tile grids")
    parser.add_argument("--keep-going", action="store_true", default=not defaults.fail_fast,
                        help="Continue with the next manifest after an error and report all failures at the end")
    parser.add_argument("--dry-run", action="store_true", help="Parse manifests and report planned output without writing")
    parser.add_argument("--no-clean", action="store_true", default=not defaults.clean_output,
                        help="Do not remove an existing output directory first")
    parser.add_argument("--log-level", default=defaults.log_level)
    parser.add_argument("--log-file", default=defaults.log_file)
    return parser


def main(argv=None) -> int:
    defaults = AssembleConfig()
    args = build_parser(defaults).parse_args(argv)

    cfg = AssembleConfig(
        event_dir=args.event_dir,
        tex_dir=args.tex_dir,
        output_dir=args.output_dir,
        enable_lower_layers=args.enable_lower_layers,
        manifest_extension=defaults.manifest_extension,
        tile_extension=defaults.tile_extension,
        strict_grid=args.strict,
        fail_fast=not args.keep_going,
        clean_output=not args.no_clean,
        dry_run=args.dry_run,
        log_level=args.log_level,
        log_file=args.log_file,
    )
    logger = setup_logger("dzi_assemble", cfg.log_file, cfg.log_level)

    try:
        summary = run(cfg)
    except AssembleError as e:
        logger.error(f"ERROR: {e}")
        logger.error("Ensure the `--event-dir`, `--tex-dir` paths exist!")
        logger.error("e.g.: python main.py --event-dir <event> --tex-dir <tex> --output-dir <dist> --enable-lower-layers <true|false>")
        return 1

    for failed in summary.failures:
        logger.error(f"- {failed.source.name}: {failed.error}")
    if not summary.ok:
        logger.error(f"{len(summary.failures)} of {len(summary.manifests)} manifest(s) failed")
        return 1

    if cfg.dry_run:
        logger.info(f"Dry run finished: {len(summary.manifests)} manifest(s) checked")
    else:
        logger.info(f"{summary.files_written} layer(s) written to {summary.output_dir}")
        logger.info("Assemble all cgs successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
