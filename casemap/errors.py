from __future__ import annotations

from typing import Optional


class DatasetError(Exception):
    kind = "dataset_error"


class UnknownDatasetKey(DatasetError):
    kind = "unknown_dataset"

    def __init__(self, key: str) -> None:
        super().__init__(f"No dataset mapping for {key!r}")
        self.key = key


class FetchFailed(DatasetError):
    kind = "fetch_failed"

    def __init__(self, name: str, status: Optional[int] = None, detail: str = "") -> None:
        msg = f"Failed to fetch {name} ({status if status is not None else 'no response'})"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)
        self.name = name
        self.status = status


class MalformedSource(DatasetError):
    kind = "malformed_source"


class CodecUnavailable(DatasetError):
    kind = "codec_unavailable"


class NoUsableData(DatasetError):
    kind = "no_usable_data"
