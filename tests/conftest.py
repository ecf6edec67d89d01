"""Shared test fixtures for refreshc tests.

Provides CliRunner fixtures, GLSL source factories and a fake toolchain:
small executable Python scripts standing in for glslc, spirv-cross and
the platform compiler. Each fake records its invocation in a log file and
exits 1 when its input file name contains the value of FAKE_FAIL_ON.
"""

from __future__ import annotations

import logging
import os
import stat
import sys
from collections.abc import Callable, Generator
from dataclasses import dataclass
from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner

from refreshc.config import ToolchainSettings

# Shared prologue: argv[1] is always the input file.
_FAKE_PROLOGUE = """\
import os
import sys

src = sys.argv[1]
with open(os.environ["FAKE_TOOL_LOG"], "a") as log:
    log.write(TOOL + " " + os.path.basename(src) + "\\n")
fail_on = os.environ.get("FAKE_FAIL_ON")
if fail_on and fail_on in os.path.basename(src):
    sys.stderr.write(TOOL + ": error: forced failure\\n")
    sys.exit(1)
with open(src, "rb") as fh:
    data = fh.read()
"""

FAKE_GLSLC = """\
out = sys.argv[sys.argv.index("-o") + 1]
with open(out, "wb") as fh:
    fh.write(b"SPIRV:" + data)
"""

FAKE_SPIRV_CROSS = """\
assert sys.argv[2:5] == ["--hlsl", "--shader-model", "50"], sys.argv
out = sys.argv[sys.argv.index("--output") + 1]
with open(out, "wb") as fh:
    fh.write(b"// HLSL\\n" + data)
"""

FAKE_PLATFORM = """\
stage = sys.argv[sys.argv.index("--stage") + 1]
out = sys.argv[sys.argv.index("-o") + 1]
with open(out, "wb") as fh:
    fh.write(b"PS5:" + stage.encode() + b":" + data)
"""


@dataclass
class FakeToolchain:
    """Locations of the fake compilers and their invocation log."""

    glslc: Path
    spirv_cross: Path
    platform_compiler: Path
    log_path: Path

    def settings(self, *, platform: bool = True, temp_dir: Path | None = None) -> ToolchainSettings:
        """Build ToolchainSettings pointing at the fakes."""
        return ToolchainSettings(
            glslc=str(self.glslc),
            spirv_cross=str(self.spirv_cross),
            platform_compiler=str(self.platform_compiler) if platform else None,
            temp_dir=temp_dir or Path("temp"),
        )

    def invocations(self) -> list[str]:
        """Return logged invocations as ``"<tool> <input name>"`` lines."""
        if not self.log_path.exists():
            return []
        return self.log_path.read_text().splitlines()


def _write_script(path: Path, tool: str, body: str) -> Path:
    path.write_text(
        f"#!{sys.executable}\nTOOL = {tool!r}\n" + _FAKE_PROLOGUE + body,
    )
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> Generator[None, None, None]:
    """Route structlog output to stdout so capsys can capture it."""
    structlog.reset_defaults()
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,  # Important for test isolation
    )
    yield
    # The CLI installs a root handler bound to the runner's stderr.
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)


@pytest.fixture(autouse=True)
def clean_refreshc_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove REFRESHC_* variables so settings only come from the test."""
    for name in list(os.environ):
        if name.startswith("REFRESHC_"):
            monkeypatch.delenv(name)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click test runner.

    Returns:
        CliRunner instance for testing CLI commands.
    """
    return CliRunner()


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Change into an empty working directory for the test.

    The pipeline's temp directory is resolved against the cwd, so this
    keeps intermediate artifacts inside tmp_path.
    """
    path = tmp_path / "work"
    path.mkdir()
    monkeypatch.chdir(path)
    return path


@pytest.fixture
def fake_toolchain(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> FakeToolchain:
    """Write the fake compilers and point FAKE_TOOL_LOG at a fresh log."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    log_path = tmp_path / "invocations.log"
    monkeypatch.setenv("FAKE_TOOL_LOG", str(log_path))
    monkeypatch.delenv("FAKE_FAIL_ON", raising=False)

    return FakeToolchain(
        glslc=_write_script(bin_dir / "glslc", "glslc", FAKE_GLSLC),
        spirv_cross=_write_script(bin_dir / "spirv-cross", "spirv-cross", FAKE_SPIRV_CROSS),
        platform_compiler=_write_script(bin_dir / "ps5-shaderc", "ps5-shaderc", FAKE_PLATFORM),
        log_path=log_path,
    )


@pytest.fixture
def toolchain_env(
    fake_toolchain: FakeToolchain,
    monkeypatch: pytest.MonkeyPatch,
) -> FakeToolchain:
    """Expose the fake compilers to the CLI through REFRESHC_* variables."""
    monkeypatch.setenv("REFRESHC_GLSLC", str(fake_toolchain.glslc))
    monkeypatch.setenv("REFRESHC_SPIRV_CROSS", str(fake_toolchain.spirv_cross))
    monkeypatch.setenv("REFRESHC_PLATFORM_COMPILER", str(fake_toolchain.platform_compiler))
    return fake_toolchain


@pytest.fixture
def shader_dir(tmp_path: Path) -> Path:
    """Return an empty directory for GLSL sources."""
    path = tmp_path / "shaders"
    path.mkdir()
    return path


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    """Return an existing, empty output directory."""
    path = tmp_path / "out"
    path.mkdir()
    return path


@pytest.fixture
def create_shader(shader_dir: Path) -> Callable[..., Path]:
    """Factory fixture to create GLSL source files.

    Returns:
        Function that writes ``name`` into the shader directory.
    """

    def _create(name: str, content: str = "#version 450\nvoid main() {}\n") -> Path:
        path = shader_dir / name
        path.write_text(content)
        return path

    return _create

