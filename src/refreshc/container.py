"""Reading and writing .refresh shader containers.

A container is the magic ``RFSH`` followed by a flat run of records:

    byte      backend tag (see Backend)
    uint32    length of the blob, native byte order
    N bytes   blob

There is no trailer or checksum; the length prefixes are the only framing.
"""

from __future__ import annotations

import struct
from collections.abc import Iterable, Mapping
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict

from refreshc.errors import ContainerFormatError, IoError
from refreshc.models import Backend, ordered_backends

logger = structlog.get_logger(__name__)

MAGIC = b"RFSH"
RECORD_HEADER = struct.Struct("=BI")


class ContainerRecord(BaseModel):
    """One backend blob inside a container."""

    model_config = ConfigDict(frozen=True)

    backend: Backend
    data: bytes


class ShaderContainer(BaseModel):
    """A parsed container: records in file order."""

    model_config = ConfigDict(frozen=True)

    records: tuple[ContainerRecord, ...] = ()

    def backends(self) -> list[Backend]:
        """Backends present in the container, in file order."""
        return [record.backend for record in self.records]

    def code_for(self, backend: Backend) -> bytes:
        """Return the blob stored for a backend.

        Raises:
            ContainerFormatError: If the container has no record for the backend.
        """
        for record in self.records:
            if record.backend == backend:
                return record.data
        raise ContainerFormatError(
            "Container does not contain shader code for the selected backend "
            f"'{backend.label}'. Recompile the shader with this backend enabled."
        )


def encode_container(records: Iterable[ContainerRecord]) -> bytes:
    """Serialize records, in the order given, behind the magic marker."""
    parts = [MAGIC]
    for record in records:
        parts.append(RECORD_HEADER.pack(int(record.backend), len(record.data)))
        parts.append(record.data)
    return b"".join(parts)


def decode_container(data: bytes) -> ShaderContainer:
    """Parse container bytes.

    Raises:
        ContainerFormatError: On a bad magic number, an unknown backend tag,
            or a record running past the end of the data.
    """
    if data[: len(MAGIC)] != MAGIC:
        raise ContainerFormatError("Cannot parse malformed shader container: incorrect magic number")

    records: list[ContainerRecord] = []
    offset = len(MAGIC)
    while offset < len(data):
        if offset + RECORD_HEADER.size > len(data):
            raise ContainerFormatError(
                "Cannot parse malformed shader container: truncated record header",
                internal_details=f"offset={offset} size={len(data)}",
            )
        tag, length = RECORD_HEADER.unpack_from(data, offset)
        try:
            backend = Backend(tag)
        except ValueError:
            raise ContainerFormatError(
                f"Cannot parse malformed shader container: unknown backend tag ({tag})"
            ) from None

        start = offset + RECORD_HEADER.size
        end = start + length
        if end > len(data):
            raise ContainerFormatError(
                "Cannot parse malformed shader container: truncated record body",
                internal_details=f"backend={backend.label} length={length} available={len(data) - start}",
            )
        records.append(ContainerRecord(backend=backend, data=data[start:end]))
        offset = end

    return ShaderContainer(records=tuple(records))


def read_container(path: Path) -> ShaderContainer:
    """Read and parse a container file.

    Raises:
        IoError: If the file cannot be read.
        ContainerFormatError: If the contents are malformed.
    """
    try:
        data = path.read_bytes()
    except OSError as e:
        raise IoError(f"Cannot read container: {path}", path=path, internal_details=str(e)) from e
    return decode_container(data)


def write_container(path: Path, artifacts: Mapping[Backend, Path]) -> None:
    """Write a container holding one record per artifact.

    Every artifact is read before the output is opened, so an unreadable
    artifact never leaves a partial container behind. Records are emitted
    in canonical backend order regardless of mapping order. An existing
    file at ``path`` is overwritten.

    Args:
        path: Destination container file.
        artifacts: Compiled artifact file for each backend to include.

    Raises:
        IoError: If an artifact cannot be read or the output cannot be written.
    """
    records: list[ContainerRecord] = []
    for backend in ordered_backends(set(artifacts)):
        source = artifacts[backend]
        try:
            records.append(ContainerRecord(backend=backend, data=source.read_bytes()))
        except OSError as e:
            raise IoError(
                f"Cannot read compiled {backend.label} artifact: {source}",
                path=source,
                internal_details=str(e),
            ) from e

    try:
        with path.open("wb") as fh:
            fh.write(encode_container(records))
    except OSError as e:
        raise IoError(f"Cannot write output file: {path}", path=path, internal_details=str(e)) from e

    logger.debug(
        "container_written",
        path=str(path),
        backends=[record.backend.label for record in records],
        sizes=[len(record.data) for record in records],
    )
