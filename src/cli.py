"""Command-line interface for packweight."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from errors import AnalysisError
from log import configure_logging
from reports.render import REPORT_FORMATS, render_report
from reports.write import REPORT_KINDS, generate_report, load_stats, write_report
from rules.config import ConfigError, load_config

if TYPE_CHECKING:
    from rules.config import PackweightConfig


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("stats", help="Path to the bundler stats JSON file")
    parser.add_argument(
        "--root",
        default=".",
        help="Project root holding packweight.toml (default: .)",
    )
    parser.add_argument(
        "--format",
        choices=REPORT_FORMATS,
        default=None,
        help="Output format (default: config format)",
    )
    parser.add_argument(
        "--out-dir",
        default=None,
        help="Write the report into this directory instead of stdout",
    )
    parser.add_argument(
        "--write",
        action="store_true",
        help="Write the report into the configured output directory",
    )
    parser.add_argument(
        "--ignore",
        action="append",
        default=[],
        metavar="PACKAGE",
        help="Leave a package's bundled files out of the analysis (repeatable)",
    )
    parser.add_argument(
        "--bail",
        action="store_true",
        help="Exit with status 1 when the report finds problems",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--log-file", default=None, help="Also log to this file")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="packweight")
    subparsers = parser.add_subparsers(dest="command", required=True)

    duplicates_parser = subparsers.add_parser(
        "duplicates", help="Report files bundled more than once"
    )
    _add_common_options(duplicates_parser)

    sizes_parser = subparsers.add_parser(
        "sizes", help="List every bundled module of each asset with its size"
    )
    _add_common_options(sizes_parser)

    versions_parser = subparsers.add_parser(
        "versions", help="Report packages bundled from more than one install"
    )
    _add_common_options(versions_parser)
    versions_parser.add_argument(
        "--all-versions",
        action="store_true",
        help="Include packages bundled from a single install",
    )

    return parser


def _apply_overrides(
    config: PackweightConfig, args: argparse.Namespace
) -> PackweightConfig:
    update: dict[str, object] = {}
    if args.ignore:
        update["ignored_packages"] = [*config.ignored_packages, *args.ignore]
    if args.format is not None:
        update["format"] = args.format
    if getattr(args, "all_versions", False):
        update["duplicates_only"] = False
    return config.model_copy(update=update)


def _handle_report(args: argparse.Namespace, root: Path) -> int:
    config = _apply_overrides(load_config(root), args)
    stats = load_stats(Path(args.stats).expanduser())
    report = generate_report(args.command, stats, config=config)

    if args.out_dir is not None or args.write:
        out_dir = (
            Path(args.out_dir).expanduser().resolve()
            if args.out_dir is not None
            else None
        )
        write_report(report, root=root, out_dir=out_dir, config=config)
    else:
        sys.stdout.write(render_report(report, config.format) + "\n")

    if args.bail and report.should_fail():
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file) if args.log_file else None
    configure_logging(verbose=args.verbose, log_file=log_file)

    root = Path(args.root).expanduser().resolve()

    if args.command in REPORT_KINDS:
        try:
            return _handle_report(args, root)
        except (AnalysisError, ConfigError, OSError) as exc:
            sys.stderr.write(f"error: {exc}\n")
            return 2

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
