"""Command line interface for OpenAPI to client generation."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .generator import GenerationError, run_generation
from .verify import format_report


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    parser = argparse.ArgumentParser(
        prog="openapi-to-client-generator",
        description="Generate pydantic models and an async httpx client from an OpenAPI document",
    )
    parser.add_argument(
        "--input", required=True, help="Path to an OpenAPI document (.yaml, .yml or .json)"
    )
    parser.add_argument(
        "--output", required=True, help="Package directory for the generated client"
    )
    parser.add_argument(
        "--path-prefix",
        default=None,
        help="Only generate operations for paths starting with this prefix",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Write into the output directory even if it already exists",
    )
    parser.add_argument(
        "--no-format",
        action="store_true",
        help="Skip running ruff over the generated package",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Import the generated models and check them against the resolved schemas",
    )
    parser.add_argument("--verbose", action="store_true", help="Log resolution steps")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run CLI and return process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        run = run_generation(
            input_path=Path(args.input),
            output_dir=Path(args.output),
            path_prefix=args.path_prefix,
            overwrite=bool(args.overwrite),
            format_output=not args.no_format,
            verify=bool(args.verify),
        )
    except GenerationError as exc:
        parser.error(str(exc))
        return 2

    for warning in run.result.warnings:
        print(f"Warning: {warning}")

    print(
        f"Generated {run.result.model_count} models and {run.result.operation_count} "
        f"operations in {run.result.output_dir}"
    )

    if run.verification_report is not None:
        print(format_report(run.verification_report))
        if run.verification_report.mismatch_count > 0:
            return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
