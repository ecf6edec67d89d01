"""Compile pipeline: GLSL source in, .refresh container out.

For each source file the pipeline resolves the shader stage from the
extension, then inside a temporary working directory runs:

1. GLSL -> SPIR-V (always)
2. SPIR-V -> HLSL (when d3d11 or ps5 is requested)
3. HLSL -> platform binary (when ps5 is requested)

and finally packs the requested artifacts into the output container.
The working directory is removed on every exit path unless the request
asks to preserve it.

Sources are processed one at a time; the first failure stops the batch.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog

from refreshc.config import ToolchainSettings
from refreshc.container import write_container
from refreshc.errors import UnsupportedStageError, ValidationError
from refreshc.models import Backend, CompileOptions, CompileRequest, ShaderStage
from refreshc.output import info
from refreshc.tools import (
    compile_glsl_to_spirv,
    translate_hlsl_to_platform,
    translate_spirv_to_hlsl,
)

logger = structlog.get_logger(__name__)


def resolve_stage(path: Path) -> ShaderStage:
    """Determine the shader stage from a source file extension.

    Raises:
        UnsupportedStageError: If the extension is not .vert, .frag or .comp.
    """
    stage = ShaderStage.from_suffix(path.suffix)
    if stage is None:
        raise UnsupportedStageError(path)
    return stage


@contextmanager
def temporary_workspace(path: Path, preserve: bool = False) -> Iterator[Path]:
    """Provide a working directory for intermediate artifacts.

    The directory is created if needed and, unless ``preserve`` is set,
    removed with everything in it when the block exits, whether it
    returns normally or raises.

    Args:
        path: Working directory location.
        preserve: Leave the directory on disk afterwards.

    Yields:
        The working directory path.
    """
    path.mkdir(parents=True, exist_ok=True)
    try:
        yield path
    finally:
        if preserve:
            logger.debug("workspace_preserved", path=str(path))
        else:
            shutil.rmtree(path, ignore_errors=True)
            logger.debug("workspace_removed", path=str(path))


def compile_shader(request: CompileRequest, toolchain: ToolchainSettings) -> Path:
    """Compile one shader source into a .refresh container.

    Args:
        request: What to compile and where to put it.
        toolchain: External compiler locations.

    Returns:
        Path of the written container.

    Raises:
        UnsupportedStageError: Before any tool runs, for unknown extensions.
        ValidationError: If ps5 is requested without a platform compiler.
        ExternalToolError: If any compiler step fails.
        IoError: If the container cannot be assembled.
    """
    stage = resolve_stage(request.source)
    platform_compiler: str | None = None
    if Backend.PS5 in request.backends:
        if not toolchain.platform_compiler:
            raise ValidationError("The ps5 backend is unsupported on this installation")
        platform_compiler = toolchain.platform_compiler

    log = logger.bind(source=str(request.source), stage=stage.value)
    name = request.shader_name

    with temporary_workspace(toolchain.workspace_path(), preserve=request.preserve_temp) as workdir:
        spirv_path = compile_glsl_to_spirv(toolchain, request.source, workdir / f"{name}.spv")
        log.debug("spirv_compiled", artifact=str(spirv_path))
        artifacts: dict[Backend, Path] = {}
        if Backend.VULKAN in request.backends:
            artifacts[Backend.VULKAN] = spirv_path

        if request.needs_hlsl:
            hlsl_path = translate_spirv_to_hlsl(toolchain, spirv_path, workdir / f"{name}.hlsl")
            log.debug("hlsl_translated", artifact=str(hlsl_path))
            if Backend.D3D11 in request.backends:
                artifacts[Backend.D3D11] = hlsl_path

            if platform_compiler is not None:
                platform_path = translate_hlsl_to_platform(
                    platform_compiler,
                    hlsl_path,
                    stage,
                    workdir / f"{name}{toolchain.platform_extension}",
                )
                log.debug("platform_translated", artifact=str(platform_path))
                artifacts[Backend.PS5] = platform_path

        output_path = request.output_path
        write_container(output_path, artifacts)

    log.info("shader_compiled", output=str(output_path))
    return output_path


def collect_sources(path: Path) -> list[Path]:
    """List the source files named by an input path.

    A file is returned as-is. For a directory, every regular file directly
    inside it is returned, sorted by name; unsupported extensions are not
    filtered and will fail when compiled.

    Raises:
        ValidationError: If the path does not exist.
    """
    if path.is_dir():
        return sorted(entry for entry in path.iterdir() if entry.is_file())
    if path.is_file():
        return [path]
    raise ValidationError(f"glsl source file or directory ({path}) does not exist")


def compile_path(path: Path, options: CompileOptions, toolchain: ToolchainSettings) -> list[Path]:
    """Compile a source file, or every file in a directory, in order.

    Processing stops at the first failure: files before it keep their
    outputs and files after it are never attempted.

    Args:
        path: Source file or directory of source files.
        options: Output directory, backends and temp handling.
        toolchain: External compiler locations.

    Returns:
        Written container paths, in processing order.
    """
    is_batch = path.is_dir()
    sources = collect_sources(path)
    logger.debug("sources_collected", path=str(path), count=len(sources))

    outputs: list[Path] = []
    for source in sources:
        if is_batch:
            info(f"Compiling {source}", soft_wrap=True)
        outputs.append(compile_shader(options.request_for(source), toolchain))
    return outputs
