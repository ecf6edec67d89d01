"""Adapters for the external shader compilers.

Each adapter runs one executable to completion and checks only its exit
status. A zero exit is success whatever the tool printed. On a non-zero
exit the captured output is written back to stdout/stderr so the
compiler's own diagnostics reach the user, then an ExternalToolError
with a tool-specific message is raised.
"""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Sequence
from pathlib import Path

import structlog

from refreshc.config import ToolchainSettings
from refreshc.errors import ExternalToolError
from refreshc.models import ShaderStage

logger = structlog.get_logger(__name__)

HLSL_SHADER_MODEL = "50"


def run_tool(command: Sequence[str], failure_message: str) -> None:
    """Run an external tool and block until it exits.

    Args:
        command: Executable followed by its arguments.
        failure_message: User-facing message if the tool fails.

    Raises:
        ExternalToolError: If the tool cannot be started or exits non-zero.
    """
    args = [str(arg) for arg in command]
    tool = args[0]
    logger.debug("tool_invocation", tool=tool, args=args[1:])

    try:
        res = subprocess.run(args, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    except OSError as e:
        raise ExternalToolError(
            f"{failure_message} ({tool} could not be started)",
            tool=tool,
            internal_details=str(e),
        ) from e

    if res.returncode != 0:
        sys.stdout.write(res.stdout)
        sys.stderr.write(res.stderr)
        raise ExternalToolError(
            failure_message,
            tool=tool,
            returncode=res.returncode,
            internal_details=(
                f"exit code {res.returncode}\nstdout:\n{res.stdout.strip()}\nstderr:\n{res.stderr.strip()}"
            ),
        )

    logger.debug("tool_finished", tool=tool)


def compile_glsl_to_spirv(toolchain: ToolchainSettings, glsl_path: Path, output_path: Path) -> Path:
    """Compile GLSL source to a SPIR-V module with glslc."""
    run_tool(
        [toolchain.glslc, glsl_path, "-o", output_path],
        "Could not compile GLSL code",
    )
    return output_path


def translate_spirv_to_hlsl(toolchain: ToolchainSettings, spirv_path: Path, output_path: Path) -> Path:
    """Translate a SPIR-V module to shader model 5.0 HLSL with spirv-cross."""
    run_tool(
        [
            toolchain.spirv_cross,
            spirv_path,
            "--hlsl",
            "--shader-model",
            HLSL_SHADER_MODEL,
            "--output",
            output_path,
        ],
        "Could not translate SPIR-V to HLSL",
    )
    return output_path


def translate_hlsl_to_platform(
    platform_compiler: str,
    hlsl_path: Path,
    stage: ShaderStage,
    output_path: Path,
) -> Path:
    """Compile translated HLSL into the platform backend's binary format."""
    run_tool(
        [platform_compiler, hlsl_path, "--stage", stage.value, "-o", output_path],
        "Could not translate HLSL to the platform backend",
    )
    return output_path
