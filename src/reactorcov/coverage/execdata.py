"""JaCoCo execution data (``*.exec``) files.

An exec file is a sequence of blocks, each starting with a type byte:

- ``0x01`` header: magic ``0xC0C0`` and format version (2-byte chars)
- ``0x10`` session info: id (modified UTF-8), start and dump time (8-byte longs)
- ``0x11`` execution data: class id (long), VM class name (UTF),
  probe array (var-int length followed by bits packed LSB first)

Several sessions may be appended to one file. Probes only say which
bytecode paths ran; mapping them to lines requires the class files, so
execution data is kept per class rather than folded into FileCoverage.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

from reactorcov.coverage.models import CoverageParseError

BLOCK_HEADER = 0x01
BLOCK_SESSIONINFO = 0x10
BLOCK_EXECUTIONDATA = 0x11

MAGIC_NUMBER = 0xC0C0
FORMAT_VERSION = 0x1007


@dataclass(frozen=True, slots=True)
class SessionInfo:
    """One recording session (JVM run) contained in an exec file."""

    id: str
    start: int  # epoch millis
    dump: int


@dataclass(frozen=True, slots=True)
class ClassExecution:
    """Probe hits recorded for one class."""

    class_id: int
    name: str  # VM name, e.g. com/example/Foo
    probes: tuple[bool, ...]

    @property
    def probes_found(self) -> int:
        return len(self.probes)

    @property
    def probes_hit(self) -> int:
        return sum(self.probes)

    def merge(self, other: ClassExecution) -> ClassExecution:
        """OR-combine probes of the same class."""
        if other.class_id != self.class_id or len(other.probes) != len(self.probes):
            raise CoverageParseError(f"Incompatible execution data for class {self.name}")
        return ClassExecution(
            class_id=self.class_id,
            name=self.name,
            probes=tuple(a or b for a, b in zip(self.probes, other.probes, strict=True)),
        )


@dataclass(slots=True)
class ExecutionDataStore:
    """Merged execution data of a session, keyed by class name."""

    classes: dict[str, ClassExecution] = field(default_factory=dict)
    sessions: list[SessionInfo] = field(default_factory=list)

    def put(self, data: ClassExecution) -> None:
        existing = self.classes.get(data.name)
        self.classes[data.name] = data if existing is None else existing.merge(data)

    def get(self, name: str) -> ClassExecution | None:
        return self.classes.get(name)

    def update(self, other: ExecutionDataStore) -> None:
        for data in other.classes.values():
            self.put(data)
        self.sessions.extend(other.sessions)


class _Reader:
    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def _read(self, size: int) -> bytes:
        data = self._stream.read(size)
        if len(data) != size:
            raise CoverageParseError("Unexpected end of execution data")
        return data

    def byte(self) -> int | None:
        data = self._stream.read(1)
        return data[0] if data else None

    def char(self) -> int:
        return struct.unpack(">H", self._read(2))[0]

    def long(self) -> int:
        return struct.unpack(">q", self._read(8))[0]

    def utf(self) -> str:
        length = self.char()
        raw = self._read(length)
        try:
            # Modified UTF-8 writes NUL as C0 80 and supplementary characters as
            # surrogate pairs; C0 never occurs otherwise
            return raw.replace(b"\xc0\x80", b"\x00").decode("utf-8", errors="surrogatepass")
        except UnicodeDecodeError as e:
            raise CoverageParseError(f"Invalid string in execution data: {e}") from e

    def var_int(self) -> int:
        result = 0
        shift = 0
        while True:
            value = self._read(1)[0]
            result |= (value & 0x7F) << shift
            if not value & 0x80:
                return result
            shift += 7
            if shift > 35:
                raise CoverageParseError("Var-int too long in execution data")

    def bool_array(self) -> tuple[bool, ...]:
        length = self.var_int()
        packed = self._read((length + 7) // 8)
        return tuple(bool(packed[i // 8] & (1 << (i % 8))) for i in range(length))


def is_exec_file(path: Path) -> bool:
    """Sniff the exec header (block type and magic number)."""
    try:
        with path.open("rb") as f:
            head = f.read(3)
    except OSError:
        return False
    if len(head) != 3 or head[0] != BLOCK_HEADER:
        return False
    return struct.unpack(">H", head[1:])[0] == MAGIC_NUMBER


def read_exec_file(path: Path) -> ExecutionDataStore:
    """Read every block of an exec file.

    Raises:
        CoverageParseError: Bad magic, unsupported version, unknown block or truncation.
        OSError: The file cannot be read.
    """
    store = ExecutionDataStore()
    with path.open("rb") as f:
        reader = _Reader(f)
        first = True
        while (block := reader.byte()) is not None:
            if first and block != BLOCK_HEADER:
                raise CoverageParseError(f"{path} is not a JaCoCo exec file")
            first = False
            if block == BLOCK_HEADER:
                if reader.char() != MAGIC_NUMBER:
                    raise CoverageParseError(f"{path}: invalid exec magic number")
                version = reader.char()
                if version != FORMAT_VERSION:
                    raise CoverageParseError(
                        f"{path}: unsupported exec format version {version:#06x}, "
                        f"expected {FORMAT_VERSION:#06x}"
                    )
            elif block == BLOCK_SESSIONINFO:
                store.sessions.append(
                    SessionInfo(id=reader.utf(), start=reader.long(), dump=reader.long())
                )
            elif block == BLOCK_EXECUTIONDATA:
                store.put(
                    ClassExecution(
                        class_id=reader.long(), name=reader.utf(), probes=reader.bool_array()
                    )
                )
            else:
                raise CoverageParseError(f"{path}: unknown block type {block:#04x}")
    return store
