"""Tests for snapshot stores."""

import json

import pytest

from cryptoflip.core.types import Confidence, SignalSnapshot
from cryptoflip.storage import InMemorySnapshotStore, JsonSnapshotStore, SnapshotStore


class TestInMemorySnapshotStore:
    """Test the process-local store."""

    def test_missing_is_none(self):
        assert InMemorySnapshotStore().get("BTCUSDT") is None

    def test_put_then_get(self):
        store = InMemorySnapshotStore()
        snap = SignalSnapshot("BTCUSDT", Confidence.WEAK_BULLISH, 100.0)
        store.put("BTCUSDT", snap)
        assert store.get("BTCUSDT") == snap

    def test_satisfies_protocol(self):
        assert isinstance(InMemorySnapshotStore(), SnapshotStore)


class TestJsonSnapshotStore:
    """Test the durable JSON store."""

    def test_missing_file(self, tmp_path):
        store = JsonSnapshotStore(tmp_path / "snaps.json")
        assert store.get("BTCUSDT") is None

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "snaps.json"
        JsonSnapshotStore(path).put(
            "BTCUSDT", SignalSnapshot("BTCUSDT", Confidence.CONFIRMED_BEARISH, 64000.5)
        )
        loaded = JsonSnapshotStore(path).get("BTCUSDT")
        assert loaded is not None
        assert loaded.confidence == Confidence.CONFIRMED_BEARISH
        assert loaded.reference_price == 64000.5

    def test_keeps_other_assets(self, tmp_path):
        store = JsonSnapshotStore(tmp_path / "snaps.json")
        store.put("BTCUSDT", SignalSnapshot("BTCUSDT", Confidence.NEUTRAL))
        store.put("ETHUSDT", SignalSnapshot("ETHUSDT", Confidence.WEAK_BEARISH))
        store.put("BTCUSDT", SignalSnapshot("BTCUSDT", Confidence.CONFIRMED_BULLISH))
        data = json.loads(store.path.read_text())
        assert set(data) == {"BTCUSDT", "ETHUSDT"}
        assert data["BTCUSDT"]["confidence"] == "confirmed_bullish"
        assert not store.path.with_suffix(".tmp").exists()

    def test_malformed_record_reads_as_absent(self, tmp_path):
        path = tmp_path / "snaps.json"
        path.write_text(json.dumps({"BTCUSDT": {"asset_id": "BTCUSDT", "confidence": "sideways"}}))
        assert JsonSnapshotStore(path).get("BTCUSDT") is None

    def test_corrupt_file_raises_on_read(self, tmp_path):
        path = tmp_path / "snaps.json"
        path.write_text("{not json")
        with pytest.raises(ValueError):
            JsonSnapshotStore(path).get("BTCUSDT")

    def test_corrupt_file_is_rewritten(self, tmp_path):
        path = tmp_path / "snaps.json"
        path.write_text("{not json")
        store = JsonSnapshotStore(path)
        store.put("BTCUSDT", SignalSnapshot("BTCUSDT", Confidence.NEUTRAL))
        assert store.get("BTCUSDT").confidence == Confidence.NEUTRAL

    def test_corrupt_file_is_kept_as_backup(self, tmp_path):
        path = tmp_path / "snaps.json"
        path.write_text("{not json")
        store = JsonSnapshotStore(path)

        store.put("BTCUSDT", SignalSnapshot("BTCUSDT", Confidence.NEUTRAL))

        assert store.backup_path == tmp_path / "snaps.json.bak"
        assert store.backup_path.read_text() == "{not json"
        assert list(json.loads(path.read_text())) == ["BTCUSDT"]


class TestSignalSnapshot:
    """Test snapshot serialization."""

    def test_from_dict_rejects_missing_fields(self):
        with pytest.raises(ValueError):
            SignalSnapshot.from_dict({"confidence": "neutral"})

    def test_null_price(self):
        snap = SignalSnapshot.from_dict({"asset_id": "X", "confidence": "neutral"})
        assert snap.reference_price is None
