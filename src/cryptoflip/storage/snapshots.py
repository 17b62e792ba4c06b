"""Snapshot persistence for flip detection.

One record per asset holding the last observed label. Records must
survive restarts so flips are detected across independent runs.
"""

import json
import logging
from pathlib import Path
from threading import RLock
from typing import Any, Protocol, runtime_checkable

from cryptoflip.core.types import SignalSnapshot

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_PATH = Path("data/snapshots.json")


@runtime_checkable
class SnapshotStore(Protocol):
    """Key-value contract read before, and written after, each cycle."""

    def get(self, asset_id: str) -> SignalSnapshot | None: ...

    def put(self, asset_id: str, snapshot: SignalSnapshot) -> None: ...


class InMemorySnapshotStore:
    """Process-local store. Not durable; used for tests and one-shot runs."""

    def __init__(self) -> None:
        self._records: dict[str, SignalSnapshot] = {}

    def get(self, asset_id: str) -> SignalSnapshot | None:
        return self._records.get(asset_id)

    def put(self, asset_id: str, snapshot: SignalSnapshot) -> None:
        self._records[asset_id] = snapshot

    def __len__(self) -> int:
        return len(self._records)


class JsonSnapshotStore:
    """Durable store backed by a single JSON document.

    Writes go to a temp file that is then renamed over the original, so
    a crash mid-write leaves the previous document intact.
    """

    def __init__(self, path: Path | str = DEFAULT_SNAPSHOT_PATH) -> None:
        """Initialize JSON snapshot store.

        Args:
            path: Location of the JSON document
        """
        self._path = Path(path)
        self._lock = RLock()
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def backup_path(self) -> Path:
        """Where an unreadable snapshot file is moved before it is rewritten."""
        return self._path.with_name(self._path.name + ".bak")

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        with open(self._path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Snapshot file {self._path} does not hold an object")
        return data

    def get(self, asset_id: str) -> SignalSnapshot | None:
        """Read the snapshot for an asset.

        Raises:
            OSError: If the file cannot be read
            ValueError: If the file is not valid JSON
        """
        with self._lock:
            record = self._read_all().get(asset_id)
        if record is None:
            return None
        try:
            return SignalSnapshot.from_dict(record)
        except ValueError as e:
            logger.warning(f"Ignoring malformed snapshot for {asset_id}: {e}")
            return None

    def put(self, asset_id: str, snapshot: SignalSnapshot) -> None:
        """Write the snapshot for an asset, keeping the other records.

        Raises:
            OSError: If the file cannot be written
        """
        with self._lock:
            try:
                data = self._read_all()
            except ValueError as e:
                backup = self.backup_path
                self._path.replace(backup)
                logger.error(
                    f"Snapshot file unreadable, moved to {backup}; "
                    f"all other assets restart from baseline: {e}"
                )
                data = {}
            data[asset_id] = snapshot.to_dict()

            temp_file = self._path.with_suffix(".tmp")
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            temp_file.replace(self._path)
