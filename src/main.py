"""
Main entry point: collect inputs, classify them and report.
"""

import sys
import argparse
from dataclasses import replace
from typing import List, Optional

# Load environment variables from .env file (if exists)
try:
    from dotenv import load_dotenv  # ty: ignore[unresolved-import]

    load_dotenv()
except ImportError:
    pass

from core.config import Config, OutputFormat
from core.errors import CatalogLookupFailure, StdgateError
from core.standards import KNOWN_STANDARDS, parse_standard, standard_label
from core.utils import debug, error, info
from cli.helpers import collect_inputs
from features.catalog import build_catalog
from pipeline import Outcome, classify_batch
from reporter import list_features, report


def main(
    paths: List[str],
    config: Optional[Config] = None,
    output_path: Optional[str] = None,
) -> int:
    """Classify every input and print the report. Returns the process exit code."""
    config = config or Config.from_env()
    catalog = build_catalog()

    for feature_id in config.disabled_features:
        if feature_id not in catalog:
            error(f"Unknown feature: {feature_id}. Use --list-features to see available features.")
            return Outcome.FAILURE.exit_code

    # Step 1: Collect inputs
    inputs = collect_inputs(paths)
    if not inputs:
        error(f"No source files found at: {', '.join(paths) or '(nothing given)'}")
        return Outcome.FAILURE.exit_code

    if len(inputs) > 1:
        info(f"Classifying {len(inputs)} files (floor {standard_label(config.floor_standard)})")

    # Step 2: Scan, match and classify
    debug(f"Classifying with jobs={config.jobs}, disabled={list(config.disabled_features)}")
    batch = classify_batch(inputs, config, catalog)

    # Step 3: Report
    output_file = None
    if output_path:
        output_file = open(output_path, "w", encoding="utf-8")
        print(f"Writing results to: {output_path}", file=sys.stderr)
    try:
        return report(batch, config.output_format, catalog, output_file)
    finally:
        if output_file:
            output_file.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Report the minimum C++ standard a source tree needs and every newer-standard construct in it"
    )
    parser.add_argument("paths", nargs="*", help="C++ source files or directories ('-' reads stdin)")
    parser.add_argument(
        "--floor",
        metavar="STD",
        help=f"Highest standard the code may require, e.g. c++20 (known: {', '.join(map(str, KNOWN_STANDARDS))})",
    )
    parser.add_argument(
        "-o", "--output", choices=["human", "machine", "json"], default=None, help="Report format"
    )
    parser.add_argument(
        "--fail-on-unknown",
        action="store_true",
        default=None,
        help="Treat ambiguous constructs and scan errors as violations",
    )
    parser.add_argument("-O", "--output-file", metavar="FILE", help="Also write the report to FILE")
    parser.add_argument("-j", "--jobs", type=int, metavar="N", help="Number of files classified in parallel")
    parser.add_argument(
        "--disable",
        action="append",
        metavar="FEATURE",
        help="Skip the specified feature (can be specified multiple times)",
    )
    parser.add_argument("--list-features", action="store_true", help="List all features with examples")
    return parser


def config_from_args(args: argparse.Namespace, base: Config) -> Config:
    """Apply CLI flags on top of an environment-derived config."""
    config = base
    if args.floor:
        config = replace(config, floor_standard=parse_standard(args.floor))
    if args.output:
        config = replace(config, output_format=OutputFormat.from_string(args.output))
    if args.fail_on_unknown:
        config = replace(config, fail_on_unknown=True)
    if args.jobs is not None:
        config = replace(config, jobs=max(1, args.jobs))
    if args.disable:
        config = replace(config, disabled_features=tuple(config.disabled_features) + tuple(args.disable))
    return config


def cli(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_features:
        print(list_features(build_catalog()), end="")
        return 0

    if not args.paths:
        parser.error("at least one path is required (or use --list-features)")

    try:
        config = config_from_args(args, Config.from_env())
    except ValueError as e:
        parser.error(str(e))

    try:
        return main(args.paths, config, output_path=args.output_file)
    except CatalogLookupFailure as e:
        error(str(e))
        return Outcome.FAILURE.exit_code
    except StdgateError as e:
        error(f"Classification failed: {e}")
        return Outcome.FAILURE.exit_code
    except Exception as e:
        error(f"Internal error: {type(e).__name__}: {e}")
        return Outcome.FAILURE.exit_code


if __name__ == "__main__":
    sys.exit(cli())
