"""ArchivePort protocol for the optional object-storage upload."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class ArchivePort(Protocol):
    """Stores a local file under ``destination_key``; raises ``StorageError`` on failure."""

    async def store(self, local_path: Path, destination_key: str) -> None: ...
