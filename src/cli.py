"""Command-line interface for apisurface."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from output.summary import format_summary
from output.write import write_function_code_per_endpoint, write_results
from pipeline.scan import ApiScanner
from settings.config import ConfigError, ScanConfig, load_config, resolve_api_routes_dir
from verify.verify import verify_determinism

DEFAULT_RESULTS_FILE = "api-surface.json"


def _add_common_paths(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Repository root (default: .)",
    )
    parser.add_argument(
        "--api-routes-dir",
        default=None,
        help="Route handler directory relative to root (e.g. src/app/api)",
    )
    parser.add_argument(
        "--function-code-dir",
        default=None,
        help="Directory for one JSON file per endpoint",
    )
    parser.add_argument(
        "--compact",
        action="store_true",
        help="Write JSON without indentation",
    )
    parser.add_argument(
        "--include-raw",
        action="store_true",
        help="Include every raw call in the results file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log detections and phase details",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="apisurface")
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", help="Scan a repository for API calls")
    _add_common_paths(scan_parser)
    scan_parser.add_argument(
        "--out",
        default=None,
        help=f"Results file (default: print the summary only; e.g. {DEFAULT_RESULTS_FILE})",
    )

    verify_parser = subparsers.add_parser(
        "verify", help="Verify a results file is reproduced by a fresh scan"
    )
    _add_common_paths(verify_parser)
    verify_parser.add_argument(
        "--results",
        default=DEFAULT_RESULTS_FILE,
        help=f"Results file to verify (default: {DEFAULT_RESULTS_FILE})",
    )

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _routes_root(config: ScanConfig) -> Path | None:
    if not config.api_routes_dir:
        return None
    return resolve_api_routes_dir(config.root_dir, config.api_routes_dir)


def _function_code_dir(config: ScanConfig) -> Path | None:
    if not config.function_code_output_dir:
        return None
    return Path(config.function_code_output_dir).expanduser().resolve()


def _handle_scan(config: ScanConfig, args: argparse.Namespace) -> int:
    result = ApiScanner(config).scan()
    pretty = not args.compact

    if args.out is not None:
        output_path = write_results(
            result,
            Path(args.out),
            pretty=pretty,
            include_raw=args.include_raw,
        )
        sys.stdout.write(format_summary(result))
        sys.stdout.write(f"\nResults saved to {output_path}\n")
    else:
        sys.stdout.write(format_summary(result))

    function_code_dir = _function_code_dir(config)
    if function_code_dir is not None:
        routes_root = _routes_root(config)
        write_function_code_per_endpoint(
            result.api_calls,
            function_code_dir,
            pretty=pretty,
            api_function_only=routes_root is not None,
            api_routes_dir=routes_root,
        )
        sys.stdout.write(f"Function code per endpoint saved to {function_code_dir}\n")
    return 0


def _handle_verify(config: ScanConfig, args: argparse.Namespace) -> int:
    results_path = Path(args.results).expanduser().resolve()
    try:
        result = verify_determinism(
            config=config,
            results_path=results_path,
            function_code_dir=_function_code_dir(config),
            pretty=not args.compact,
            include_raw=args.include_raw,
        )
    except (FileNotFoundError, NotADirectoryError) as exc:
        sys.stderr.write(f"results: {results_path}\n")
        sys.stderr.write(f"error: {exc}\n")
        return 2
    if not result.ok:
        for label, paths in (
            ("missing", result.missing),
            ("extra", result.extra),
            ("mismatches", result.mismatches),
        ):
            for path in paths:
                sys.stderr.write(f"{label}: {path}\n")
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    root = Path(args.root).expanduser().resolve()
    if not root.is_dir():
        sys.stderr.write(f"error: root is not a directory: {root}\n")
        return 2

    try:
        config = load_config(
            root,
            api_routes_dir=args.api_routes_dir,
            function_code_output_dir=args.function_code_dir,
        )
    except ConfigError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    if args.command == "scan":
        return _handle_scan(config, args)

    if args.command == "verify":
        return _handle_verify(config, args)

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
