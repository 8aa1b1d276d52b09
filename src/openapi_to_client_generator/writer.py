"""Filesystem writers for the generated client package."""

from __future__ import annotations

import logging
from pathlib import Path
import subprocess
import sys

from .errors import GenerationError

logger = logging.getLogger(__name__)

_GENERATED_RUFF_IGNORE_CODES: tuple[str, ...] = (
    "D100",
    "D101",
    "D102",
    "D103",
    "D104",
    "D105",
    "D107",
    "D205",
    "D301",
    "D415",
    "E501",
)

# Generated modules use Python 3.12 syntax such as ``type`` aliases.
_RUFF_TARGET: tuple[str, ...] = ("--target-version", "py312")

MODELS_MODULE = "models.py"
CLIENT_MODULE = "api.py"
PACKAGE_INIT = "__init__.py"


class WriteError(GenerationError):
    """Raised when output files cannot be written."""


class FormatError(WriteError):
    """Raised when the formatter fails on the generated package."""


def create_output_layout(output_dir: Path, *, overwrite: bool = False) -> Path:
    """Create the output package directory.

    Args:
        output_dir (Path): Package directory to create.
        overwrite (bool): Whether an existing directory may be written into.

    Returns:
        Path: The created (or reused) package directory.
    """
    if output_dir.exists():
        if not overwrite:
            raise WriteError(f"Output directory already exists: {output_dir}")
        if not output_dir.is_dir():
            raise WriteError(f"Output path is not a directory: {output_dir}")
        logger.info("Writing into existing directory %s", output_dir)
        return output_dir

    try:
        output_dir.mkdir(parents=True)
    except OSError as exc:
        raise WriteError(f"Failed to create output directory {output_dir}: {exc}") from exc
    return output_dir


def write_package(
    *,
    package_dir: Path,
    models_source: str,
    client_source: str,
    init_source: str,
) -> list[Path]:
    """Write the rendered modules of the client package.

    Args:
        package_dir (Path): Directory created by ``create_output_layout``.
        models_source (str): Source of ``models.py``.
        client_source (str): Source of ``api.py``.
        init_source (str): Source of ``__init__.py``.

    Returns:
        list[Path]: Written file paths.
    """
    written: list[Path] = []
    for file_name, source in (
        (MODELS_MODULE, models_source),
        (CLIENT_MODULE, client_source),
        (PACKAGE_INIT, init_source),
    ):
        path = package_dir / file_name
        _write_file(path, source)
        logger.debug("Wrote %s", path)
        written.append(path)
    return written


def format_generated_tree(*, package_dir: Path) -> None:
    """Run Ruff auto-fixes and formatter against the generated package.

    Args:
        package_dir (Path): Generated package directory to format.

    Raises:
        FormatError: When ruff cannot be run or reports a failure.
    """
    _run_ruff(package_dir=package_dir, args=("format", *_RUFF_TARGET, str(package_dir)))
    _run_ruff(
        package_dir=package_dir,
        args=(
            "check",
            "--fix",
            *_RUFF_TARGET,
            "--ignore",
            ",".join(_GENERATED_RUFF_IGNORE_CODES),
            str(package_dir),
        ),
    )
    _run_ruff(package_dir=package_dir, args=("format", *_RUFF_TARGET, str(package_dir)))


def _run_ruff(*, package_dir: Path, args: tuple[str, ...]) -> None:
    command = [sys.executable, "-m", "ruff", *args]
    command_desc = " ".join(args[:-1])
    try:
        subprocess.run(
            command,
            check=True,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise FormatError(
            f"Failed to execute ruff {command_desc} for {package_dir}: {exc}"
        ) from exc
    except subprocess.CalledProcessError as exc:
        error_text = exc.stderr.strip() or exc.stdout.strip() or str(exc)
        raise FormatError(f"ruff {command_desc} failed for {package_dir}: {error_text}") from exc


def _write_file(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise WriteError(f"Failed to write file {path}: {exc}") from exc
