"""Command line entry points for refreshc.

``refreshc`` compiles GLSL sources into .refresh containers;
``refreshc-inspect`` lists the records inside an existing container.

Every failure, including malformed command lines, exits with status 1.
"""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import click
import rich_click as rclick
from pydantic import ValidationError as PydanticValidationError

from refreshc import __version__
from refreshc.config import ToolchainSettings
from refreshc.container import read_container
from refreshc.errors import (
    EXIT_FAILURE,
    RefreshcError,
    UsageError,
    ValidationError,
    exit_with_error,
    format_pydantic_error,
)
from refreshc.models import Backend, CompileOptions
from refreshc.observability import configure_logging, get_logger
from refreshc.output import print_container, set_no_color, success
from refreshc.pipeline import compile_path

# Configure rich-click for better help formatting
rclick.rich_click.SHOW_ARGUMENTS = True
rclick.rich_click.GROUP_ARGUMENTS_OPTIONS = True


class RefreshcCommand(rclick.RichCommand):
    """Click command that reports usage problems with exit status 1.

    Invoking the command without any arguments prints the full help text
    and fails, rather than running with nothing selected.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        """Parse arguments, normalizing the exit status of usage errors.

        Args:
            ctx: Click context.
            args: Raw command line arguments.

        Returns:
            Remaining unparsed arguments.
        """
        if not args:
            click.echo(ctx.get_help(), color=ctx.color)
            ctx.exit(EXIT_FAILURE)
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = EXIT_FAILURE
            raise


def _usage_error(ctx: click.Context, message: str) -> NoReturn:
    """Abort with a usage error that prints the usage line and exits 1."""
    err = click.UsageError(message, ctx=ctx)
    err.exit_code = EXIT_FAILURE
    raise err


no_color_option = click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output.",
    is_eager=True,
    expose_value=False,
    callback=lambda ctx, param, value: set_no_color(value) if value else None,
)


def check_selection(
    backends: frozenset[Backend],
    toolchain: ToolchainSettings,
    input_path: Path | None,
) -> None:
    """Check that the command line names something compilable.

    Raises:
        UsageError: If no backend is selected, the ps5 backend is not
            available on this installation, or no input path was given.
    """
    if not backends:
        raise UsageError("No Refresh platforms selected!")
    if Backend.PS5 in backends and not toolchain.platform_enabled:
        raise UsageError(
            "The ps5 backend is unsupported on this installation. "
            "Set REFRESHC_PLATFORM_COMPILER to enable it."
        )
    if input_path is None:
        raise UsageError("Missing glsl source file or directory.")


def resolve_output_dir(output_dir: Path | None) -> Path:
    """Return the directory outputs go to, defaulting to the current one.

    Raises:
        ValidationError: If an explicit directory does not exist.
    """
    if output_dir is None:
        return Path.cwd()
    if not output_dir.is_dir():
        raise ValidationError(f"Output directory {output_dir} does not exist")
    return output_dir


def _load_toolchain() -> ToolchainSettings:
    """Load toolchain settings from the environment, exiting on bad values."""
    try:
        return ToolchainSettings()
    except PydanticValidationError as e:
        exit_with_error(f"Invalid toolchain configuration:\n{format_pydantic_error(e)}")


@click.command("refreshc", cls=RefreshcCommand)
@click.version_option(version=__version__, prog_name="refreshc")
@click.option("--vulkan", is_flag=True, help="Emit shader compatible with the Refresh Vulkan backend.")
@click.option("--d3d11", is_flag=True, help="Emit shader compatible with the Refresh D3D11 backend.")
@click.option("--ps5", is_flag=True, help="Emit shader compatible with the Refresh PS5 backend.")
@click.option(
    "--out",
    "output_dir",
    type=click.Path(path_type=Path),
    default=None,
    metavar="DIR",
    help="Write output file(s) to the directory DIR [default: current directory]",
)
@click.option(
    "--preserve-temp",
    is_flag=True,
    help="Do not delete the temp directory after compilation. Useful for debugging.",
)
@click.option("-v", "--verbose", is_flag=True, help="Log each compiler invocation.")
@no_color_option
@click.argument("input_path", required=False, type=click.Path(path_type=Path), metavar="PATH")
@click.pass_context
def cli(
    ctx: click.Context,
    vulkan: bool,
    d3d11: bool,
    ps5: bool,
    output_dir: Path | None,
    preserve_temp: bool,
    verbose: bool,
    input_path: Path | None,
) -> None:
    """Compile GLSL shaders into Refresh shader containers.

    PATH is a GLSL source file (.vert, .frag or .comp) or a directory of
    them. Each source produces `<name><ext>.refresh` holding one blob per
    selected backend.

    Examples:

        refreshc --vulkan shaders/blit.frag

        refreshc --vulkan --d3d11 --out build/shaders shaders/
    """
    configure_logging(log_level="DEBUG" if verbose else "WARNING")
    logger = get_logger()

    selected: dict[Backend, bool] = {
        Backend.VULKAN: vulkan,
        Backend.PS5: ps5,
        Backend.D3D11: d3d11,
    }
    backends = frozenset(backend for backend, enabled in selected.items() if enabled)
    toolchain = _load_toolchain()
    try:
        check_selection(backends, toolchain, input_path)
    except UsageError as e:
        _usage_error(ctx, e.user_message)
    assert input_path is not None  # Type narrowing for mypy

    try:
        output_dir = resolve_output_dir(output_dir)
    except ValidationError as e:
        exit_with_error(e.user_message)

    options = CompileOptions(
        output_dir=output_dir,
        backends=backends,
        preserve_temp=preserve_temp,
    )
    logger.debug(
        "compile_requested",
        input=str(input_path),
        output_dir=str(output_dir),
        backends=[backend.label for backend in sorted(backends)],
        preserve_temp=preserve_temp,
    )

    try:
        outputs = compile_path(input_path, options, toolchain)
    except RefreshcError as e:
        exit_with_error(e.user_message)

    for output in outputs:
        success(f"Wrote {output}", soft_wrap=True)


@click.command("refreshc-inspect", cls=RefreshcCommand)
@click.version_option(version=__version__, prog_name="refreshc-inspect")
@no_color_option
@click.argument("container_path", type=click.Path(path_type=Path, dir_okay=False), metavar="FILE")
def inspect_cmd(container_path: Path) -> None:
    """List the backend records stored in a .refresh container.

    Examples:

        refreshc-inspect build/shaders/blit.frag.refresh
    """
    try:
        container = read_container(container_path)
    except RefreshcError as e:
        exit_with_error(e.user_message)

    print_container(container_path, container)


if __name__ == "__main__":
    cli()
