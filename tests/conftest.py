"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages and
provides a writer for JaCoCo exec files.
"""

import struct
import sys
import zlib
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of reactorcov modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("reactorcov"):
        del sys.modules[module_name]


def _utf(value: str) -> bytes:
    raw = value.encode("utf-8")
    return struct.pack(">H", len(raw)) + raw


def _var_int(value: int) -> bytes:
    out = bytearray()
    while value & ~0x7F:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def _probes(values: Sequence[bool]) -> bytes:
    packed = bytearray((len(values) + 7) // 8)
    for i, hit in enumerate(values):
        if hit:
            packed[i // 8] |= 1 << (i % 8)
    return _var_int(len(values)) + bytes(packed)


def exec_bytes(
    classes: dict[str, Sequence[bool]],
    *,
    session: str = "test-session",
    version: int = 0x1007,
) -> bytes:
    """Encode a JaCoCo exec file: header, one session, one block per class."""
    data = bytearray(b"\x01" + struct.pack(">HH", 0xC0C0, version))
    data += b"\x10" + _utf(session) + struct.pack(">qq", 1_700_000_000_000, 1_700_000_060_000)
    for name, probes in classes.items():
        # Stable id per class name so separate files merge
        class_id = zlib.crc32(name.encode())
        data += b"\x11" + struct.pack(">q", class_id) + _utf(name) + _probes(probes)
    return bytes(data)


@pytest.fixture
def write_exec() -> Callable[..., Path]:
    """Write a JaCoCo exec file, creating parent directories."""

    def _write(path: Path, classes: dict[str, Sequence[bool]], **kwargs: object) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(exec_bytes(classes, **kwargs))  # type: ignore[arg-type]
        return path

    return _write
