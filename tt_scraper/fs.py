from __future__ import annotations

import asyncio
from pathlib import Path, PurePosixPath
from typing import Protocol


class FileSystem(Protocol):
    """Byte-level file operations used by history, downloads, and artifacts."""

    async def read_bytes(self, path: str) -> bytes: ...

    async def write_bytes(self, path: str, data: bytes) -> None: ...

    async def append_bytes(self, path: str, data: bytes) -> None: ...

    async def make_dirs(self, path: str) -> None: ...

    async def exists(self, path: str) -> bool: ...


def _append(path: Path, data: bytes) -> None:
    with path.open("ab") as fp:
        fp.write(data)


class LocalFileSystem:
    """Disk-backed FileSystem; blocking calls run in a worker thread."""

    async def read_bytes(self, path: str) -> bytes:
        return await asyncio.to_thread(Path(path).read_bytes)

    async def write_bytes(self, path: str, data: bytes) -> None:
        await asyncio.to_thread(Path(path).write_bytes, data)

    async def append_bytes(self, path: str, data: bytes) -> None:
        await asyncio.to_thread(_append, Path(path), data)

    async def make_dirs(self, path: str) -> None:
        if not path:
            return
        await asyncio.to_thread(Path(path).mkdir, parents=True, exist_ok=True)

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(Path(path).exists)


def _norm(path: str) -> str:
    return str(PurePosixPath(str(path).replace("\\", "/")))


class MemoryFileSystem:
    """
    In-memory FileSystem that records every operation.

    Used for offline runs and tests; `reads`/`writes` hold paths in call order.
    """

    def __init__(self, files: dict[str, bytes] | None = None) -> None:
        self.files: dict[str, bytes] = {_norm(k): bytes(v) for k, v in (files or {}).items()}
        self.dirs: set[str] = set()
        self.reads: list[str] = []
        self.writes: list[str] = []
        self.fail_writes: set[str] = set()
        self.fail_dirs: set[str] = set()

    async def read_bytes(self, path: str) -> bytes:
        p = _norm(path)
        self.reads.append(p)
        if p not in self.files:
            raise FileNotFoundError(p)
        return self.files[p]

    async def write_bytes(self, path: str, data: bytes) -> None:
        p = _norm(path)
        self.writes.append(p)
        if p in self.fail_writes:
            raise OSError(f"write refused: {p}")
        self.files[p] = bytes(data)

    async def append_bytes(self, path: str, data: bytes) -> None:
        p = _norm(path)
        self.writes.append(p)
        if p in self.fail_writes:
            raise OSError(f"write refused: {p}")
        self.files[p] = self.files.get(p, b"") + bytes(data)

    async def make_dirs(self, path: str) -> None:
        p = _norm(path)
        if p in self.fail_dirs:
            raise PermissionError(f"mkdir refused: {p}")
        self.dirs.add(p)

    async def exists(self, path: str) -> bool:
        p = _norm(path)
        return p in self.files or p in self.dirs

    def writes_to(self, suffix: str) -> list[str]:
        return [p for p in self.writes if p.endswith(suffix)]
