from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from werkzeug.utils import secure_filename


class StorageError(RuntimeError):
    pass


class Storage:
    def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class LocalStorage(Storage):
    """Files under `root`, which the server also publishes at /uploads."""

    root: Path

    def _path(self, key: str) -> Path:
        safe_key = key.lstrip("/").replace("\\", "/")
        p = (self.root / safe_key).resolve()
        if self.root.resolve() not in p.parents:
            raise StorageError(f"Key escapes storage root: {key!r}")
        return p

    def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> None:
        p = self._path(key)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)


def storage_from_config(config: dict) -> Storage:
    return LocalStorage(root=Path(config.get("UPLOADS_DIR") or "uploads"))


def build_upload_key(prefix: str, filename: str, upload_date: date | None = None) -> str:
    """Deterministic-by-day, collision-free key for an uploaded file."""
    if upload_date is None:
        upload_date = date.today()
    safe_filename = secure_filename(filename or "") or "upload.bin"
    return f"{prefix}/{upload_date.isoformat()}/{uuid.uuid4().hex[:12]}-{safe_filename}"
