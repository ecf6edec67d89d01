"""Request and enum types shared by the refreshc pipeline.

Backend tags double as the on-disk record tags of a .refresh container,
and their numeric order is the order records are emitted in.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

CONTAINER_SUFFIX = ".refresh"


class Backend(IntEnum):
    """Shader backends a container can carry, valued by their record tag."""

    VULKAN = 1
    PS5 = 2
    D3D11 = 3

    @property
    def label(self) -> str:
        """Human-readable backend name."""
        return _BACKEND_LABELS[self]

    @property
    def needs_hlsl(self) -> bool:
        """Whether producing this backend goes through SPIR-V to HLSL translation."""
        return self in (Backend.PS5, Backend.D3D11)


_BACKEND_LABELS = {
    Backend.VULKAN: "vulkan",
    Backend.PS5: "ps5",
    Backend.D3D11: "d3d11",
}


class ShaderStage(str, Enum):
    """Pipeline stage of a GLSL source, inferred from its extension."""

    VERTEX = "vertex"
    FRAGMENT = "fragment"
    COMPUTE = "compute"

    @classmethod
    def from_suffix(cls, suffix: str) -> ShaderStage | None:
        """Look up the stage for a file suffix such as ``.vert``.

        Returns:
            The stage, or None if the suffix is not a recognized stage.
        """
        return _STAGE_SUFFIXES.get(suffix)


_STAGE_SUFFIXES = {
    ".vert": ShaderStage.VERTEX,
    ".frag": ShaderStage.FRAGMENT,
    ".comp": ShaderStage.COMPUTE,
}


def ordered_backends(backends: frozenset[Backend] | set[Backend]) -> list[Backend]:
    """Return backends in canonical emission order (vulkan, ps5, d3d11)."""
    return sorted(backends)


class CompileOptions(BaseModel):
    """Options shared by every file compiled in one invocation.

    Attributes:
        output_dir: Existing directory the .refresh files are written to.
        backends: Non-empty set of backends to emit.
        preserve_temp: Keep the temporary working directory afterwards.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    output_dir: Path = Field(..., description="Directory for output containers")
    backends: frozenset[Backend] = Field(..., description="Backends to emit")
    preserve_temp: bool = Field(default=False, description="Skip temp cleanup")

    @field_validator("backends")
    @classmethod
    def _require_backend(cls, value: frozenset[Backend]) -> frozenset[Backend]:
        if not value:
            raise ValueError("at least one backend must be selected")
        return value

    def request_for(self, source: Path) -> CompileRequest:
        """Build the CompileRequest for one source file."""
        return CompileRequest(
            source=source,
            output_dir=self.output_dir,
            backends=self.backends,
            preserve_temp=self.preserve_temp,
        )


class CompileRequest(CompileOptions):
    """Everything needed to compile a single shader source.

    Attributes:
        source: GLSL source file (.vert, .frag or .comp).

    Example:
        >>> request = CompileRequest(
        ...     source=Path("shaders/blit.frag"),
        ...     output_dir=Path("out"),
        ...     backends=frozenset({Backend.VULKAN}),
        ... )
        >>> request.output_path
        PosixPath('out/blit.frag.refresh')
    """

    source: Path = Field(..., description="GLSL source file")

    @property
    def shader_name(self) -> str:
        """Source file name without its extension."""
        return self.source.stem

    @property
    def output_path(self) -> Path:
        """Destination container path, ``<name><ext>.refresh``."""
        return self.output_dir / f"{self.source.stem}{self.source.suffix}{CONTAINER_SUFFIX}"

    @property
    def needs_hlsl(self) -> bool:
        """Whether any requested backend is built from translated HLSL."""
        return any(backend.needs_hlsl for backend in self.backends)
