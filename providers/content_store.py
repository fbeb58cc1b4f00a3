"""Local content store for generated audio and video artifacts."""
from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Optional
from uuid import uuid4

logger = logging.getLogger(__name__)


class ContentStore:  # Filesystem-backed artifact storage
    def __init__(self, root: Path, url_prefix: str = "/uploads") -> None:
        self._root = Path(root)
        self._prefix = url_prefix.rstrip("/")

    @property
    def root(self) -> Path:
        return self._root

    def save(self, data: bytes, *, kind: str, suffix: str) -> str:
        """Write ``data`` under a collision-free name and return its URL."""

        directory = self._root / kind
        directory.mkdir(parents=True, exist_ok=True)
        filename = f"{kind}_{uuid4().hex}{suffix}"
        tmp_path = directory / (filename + ".tmp")
        with open(tmp_path, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, directory / filename)
        logger.debug("Saved %s artifact %s (%d bytes)", kind, filename, len(data))
        return f"{self._prefix}/{kind}/{filename}"

    def path_for(self, url: str) -> Optional[Path]:
        if not url.startswith(self._prefix + "/"):
            return None
        relative = url[len(self._prefix) + 1 :]
        path = (self._root / relative).resolve()
        if self._root.resolve() not in path.parents:
            return None
        return path

    def cleanup(self, max_age_s: float = 24 * 60 * 60, now: Optional[float] = None) -> int:
        """Delete artifacts older than ``max_age_s`` and return how many were removed."""

        if not self._root.exists():
            return 0
        current = time.time() if now is None else now
        removed = 0
        for path in self._root.rglob("*"):
            if path.is_file() and current - path.stat().st_mtime > max_age_s:
                path.unlink()
                removed += 1
        if removed:
            logger.info("Removed %d expired artifacts from %s", removed, self._root)
        return removed


__all__ = ["ContentStore"]
