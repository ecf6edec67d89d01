"""refreshc - GLSL to Refresh shader container compiler.

Drives glslc, spirv-cross and an optional platform compiler, then packs
their outputs into a single tagged .refresh file per shader.
"""

from __future__ import annotations

__version__ = "0.1.0"

from refreshc.container import (
    ContainerRecord,
    ShaderContainer,
    decode_container,
    encode_container,
    read_container,
    write_container,
)
from refreshc.errors import (
    ContainerFormatError,
    ExternalToolError,
    IoError,
    RefreshcError,
    UnsupportedStageError,
    UsageError,
    ValidationError,
)
from refreshc.models import Backend, CompileOptions, CompileRequest, ShaderStage

__all__ = [
    "__version__",
    # Container format
    "ContainerRecord",
    "ShaderContainer",
    "decode_container",
    "encode_container",
    "read_container",
    "write_container",
    # Models
    "Backend",
    "CompileOptions",
    "CompileRequest",
    "ShaderStage",
    # Errors
    "ContainerFormatError",
    "ExternalToolError",
    "IoError",
    "RefreshcError",
    "UnsupportedStageError",
    "UsageError",
    "ValidationError",
]
