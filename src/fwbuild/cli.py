"""
Command-line interface for fwbuild.

    fwbuild build <target>     Build the binary image and listing for a target
    fwbuild upload <target>    Build, then transfer the binary to the board
    fwbuild clean              Delete all artifacts and the build state
    fwbuild                    Show usage and the available targets
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, NoReturn

from rich.console import Console

from fwbuild import __version__, output
from fwbuild.build.errors import FwbuildError
from fwbuild.build.orchestrator import BuildOrchestrator, BuildResult
from fwbuild.build.size_report import render_size_report
from fwbuild.deploy import create_deployer
from fwbuild.platform_configs import load_project_config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Exit status for a bare invocation (usage shown, nothing built)
EXIT_USAGE = 2

console = Console()


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    project_dir: Path
    target: str
    verbose: bool = False


@dataclass
class UploadArgs:
    """Arguments for the upload command."""

    project_dir: Path
    target: str
    verbose: bool = False


@dataclass
class CleanArgs:
    """Arguments for the clean command."""

    project_dir: Path
    verbose: bool = False


def setup_logging(verbose: bool) -> None:
    """Route diagnostic logging to stderr; DEBUG when verbose, warnings otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        stream=sys.stderr,
    )
    output.set_verbose(verbose)


def _fail(message: str) -> NoReturn:
    console.print()
    console.print("[bold red]✗ Build failed![/bold red]")
    console.print()
    console.print(message, markup=False, highlight=False)
    sys.exit(1)


def _run_build(project_dir: Path, target: str) -> BuildResult:
    output.log_header("fwbuild", __version__)
    output.log(f"Building target: {target}")

    result = BuildOrchestrator(project_dir).build(target)
    if not result.success:
        _fail(result.message)

    console.print()
    console.print("[bold green]✓ Build successful![/bold green]")
    console.print()
    if result.size_info is not None and result.elf_path is not None:
        render_size_report(result.elf_path.relative_to(project_dir.resolve()).as_posix(), result.size_info, console)
        console.print()
    output.log_build_complete(result.build_time)
    return result


def build_command(args: BuildArgs) -> None:
    """Build firmware for a target.

    Examples:
        fwbuild build mbed
        fwbuild -C ~/src/blinky build protoboard
        fwbuild -v build mbed
    """
    _run_build(args.project_dir, args.target)
    sys.exit(0)


def upload_command(args: UploadArgs) -> None:
    """Build firmware for a target, then transfer it to the board.

    The destination comes from the target's upload configuration and can be
    overridden with TTY (serial port) or MOUNT (mass-storage mount point);
    DEBUG sets the lpc21isp debug level.
    """
    config = load_project_config(args.project_dir)
    upload = config.platform(args.target).upload
    if upload is None:
        console.print(f"[bold red]✗ Target {args.target} has no upload configuration[/bold red]")
        sys.exit(1)

    result = _run_build(args.project_dir, args.target)
    if result.bin_path is None or not result.bin_path.exists():
        _fail(f"Build of {args.target} produced no binary image")

    output.log(f"Uploading {result.bin_path.name} ({upload.method})...")
    deployment = create_deployer(upload, verbose=args.verbose).deploy(args.target, result.bin_path)
    if not deployment.success:
        console.print("[bold red]✗ Upload failed![/bold red]")
        console.print(deployment.message, markup=False, highlight=False)
        sys.exit(1)

    console.print(f"[bold green]✓ {deployment.message}[/bold green]")
    sys.exit(0)


def clean_command(args: CleanArgs) -> None:
    """Delete all build artifacts and the persisted build state."""
    removed = BuildOrchestrator(args.project_dir).clean()
    output.log(f"Removed {removed} entries from build directory")
    sys.exit(0)


def print_usage(parser: argparse.ArgumentParser, project_dir: Path) -> NoReturn:
    """Print usage with the available targets and exit with status 2."""
    parser.print_usage()
    try:
        targets: List[str] = load_project_config(project_dir).targets
    except FwbuildError as e:
        targets = []
        console.print(f"[yellow]Could not load project configuration: {e}[/yellow]", highlight=False)
    print("Usage: fwbuild build TARGET")
    print(f"where TARGET is one of: {', '.join(targets) if targets else '(none configured)'}")
    sys.exit(EXIT_USAGE)


def main() -> None:
    """fwbuild - incremental multi-platform firmware builds."""
    parser = argparse.ArgumentParser(
        prog="fwbuild",
        description="fwbuild - incremental multi-platform firmware builder",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"fwbuild {__version__}",
    )
    parser.add_argument(
        "-C",
        "--project-dir",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output and debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    build_parser = subparsers.add_parser("build", help="Build firmware for a target")
    build_parser.add_argument("target", help="Target (platform) to build")

    upload_parser = subparsers.add_parser("upload", help="Build and upload firmware to a target")
    upload_parser.add_argument("target", help="Target (platform) to upload")

    subparsers.add_parser("clean", help="Delete all build artifacts")

    parsed_args = parser.parse_args()
    setup_logging(parsed_args.verbose)

    project_dir: Path = parsed_args.project_dir
    if not project_dir.is_dir():
        console.print(f"[bold red]✗ Error: Not a directory: {project_dir}[/bold red]", highlight=False)
        sys.exit(EXIT_USAGE)

    if not parsed_args.command:
        print_usage(parser, project_dir)

    try:
        if parsed_args.command == "build":
            build_command(BuildArgs(project_dir=project_dir, target=parsed_args.target, verbose=parsed_args.verbose))
        elif parsed_args.command == "upload":
            upload_command(UploadArgs(project_dir=project_dir, target=parsed_args.target, verbose=parsed_args.verbose))
        elif parsed_args.command == "clean":
            clean_command(CleanArgs(project_dir=project_dir, verbose=parsed_args.verbose))
    except FwbuildError as e:
        _fail(str(e))
    except OSError as e:
        _fail(f"File system error: {e}")
    except KeyboardInterrupt:
        console.print()
        console.print("[bold yellow]✗ Build interrupted[/bold yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
