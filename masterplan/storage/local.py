import os
from pathlib import Path
from typing import BinaryIO

# public prefix of every storage path handed to clients
PUBLIC_PREFIX = "/uploads/"


class LocalStorage:
    """Store files under the uploads root. Keys are '/'-separated paths relative to it."""

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path | None:
        full = (self.root / key.replace("/", os.sep)).resolve()
        if full != self.root and self.root not in full.parents:
            return None
        return full

    def put(self, key: str, file_like: BinaryIO) -> int:
        """Create a new file at key. Raises FileExistsError instead of overwriting."""
        path = self._path(key)
        if path is None:
            raise ValueError(f"Key escapes storage root: {key}")
        path.parent.mkdir(parents=True, exist_ok=True)
        written = 0
        with open(path, "xb") as f:
            while True:
                chunk = file_like.read(65536)
                if not chunk:
                    break
                f.write(chunk)
                written += len(chunk)
        return written

    def get_path(self, key: str) -> Path | None:
        path = self._path(key)
        if path is None or not path.is_file():
            return None
        return path

    def exists(self, key: str) -> bool:
        return self.get_path(key) is not None

    def delete(self, key: str) -> bool:
        path = self.get_path(key)
        if path is None:
            return False
        path.unlink()
        return True

    def public_path(self, key: str) -> str:
        return PUBLIC_PREFIX + key.lstrip("/")

    def key_from_public_path(self, public_path: str) -> str:
        """'/uploads/master-plans/A/x.pdf' -> 'master-plans/A/x.pdf'."""
        key = public_path.replace("\\", "/").lstrip("/")
        prefix = PUBLIC_PREFIX.strip("/") + "/"
        if key.startswith(prefix):
            key = key[len(prefix):]
        return key
