"""Toolchain configuration for refreshc.

The external compilers refreshc drives are located through
``ToolchainSettings``, which can be loaded from environment variables
with the REFRESHC_ prefix (or a local .env file).

The platform backend is only available when a platform compiler is
configured; requesting it otherwise is reported as unsupported.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ToolchainSettings(BaseSettings):
    """Executables and working paths used by the compile pipeline.

    Example:
        >>> # From environment
        >>> settings = ToolchainSettings()
        >>>
        >>> # Explicit
        >>> settings = ToolchainSettings(
        ...     glslc="/opt/vulkan/bin/glslc",
        ...     platform_compiler="/opt/sdk/bin/ps5-shaderc",
        ... )
    """

    model_config = SettingsConfigDict(
        env_prefix="REFRESHC_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    glslc: str = Field(
        default="glslc",
        description="GLSL to SPIR-V compiler",
    )
    spirv_cross: str = Field(
        default="spirv-cross",
        description="SPIR-V to HLSL translator",
    )
    platform_compiler: str | None = Field(
        default=None,
        description="HLSL to platform binary compiler; enables the ps5 backend",
    )
    platform_extension: str = Field(
        default=".ps5",
        description="File extension of platform compiler output",
    )
    temp_dir: Path = Field(
        default=Path("temp"),
        description="Working directory for intermediate artifacts, relative to the cwd",
    )

    @field_validator("platform_extension")
    @classmethod
    def _dotted_extension(cls, value: str) -> str:
        return value if value.startswith(".") else f".{value}"

    @property
    def platform_enabled(self) -> bool:
        """Whether the platform backend can be produced on this installation."""
        return bool(self.platform_compiler)

    def workspace_path(self) -> Path:
        """Resolve the temporary working directory against the current directory."""
        return Path.cwd() / self.temp_dir
