from __future__ import annotations

from pathlib import Path

from casemap.errors import FetchFailed


class LocalTransport:
    """Same contract as HttpTransport, served from a directory."""

    def __init__(self, data_dir: str) -> None:
        self.data_dir = Path(data_dir)

    def exists(self, name: str) -> bool:
        return (self.data_dir / name).is_file()

    def get(self, name: str) -> bytes:
        path = self.data_dir / name
        if not path.is_file():
            raise FetchFailed(name, 404)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise FetchFailed(name, None, str(exc)) from exc
