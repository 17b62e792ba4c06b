"""Flip detector - emits an event when an asset lands on a confirmed label.

States per asset mirror Confidence, plus "no prior record":

    no record            -> baseline only, never an event
    same label           -> no event
    label changed, new label confirmed      -> FlipEvent(from, to)
    label changed, new label weak or neutral -> no event

The new snapshot is written at the end of every cycle whether or not an
event fired.
"""

import logging

from cryptoflip.core.types import AssetSignal, FlipEvent, SignalSnapshot
from cryptoflip.storage.snapshots import SnapshotStore

logger = logging.getLogger(__name__)


def detect_flip(current: AssetSignal, prior: SignalSnapshot | None) -> FlipEvent | None:
    """Compare a fresh asset signal with the last persisted snapshot.

    Args:
        current: Signal computed in this cycle
        prior: Snapshot from the previous cycle, or None

    Returns:
        FlipEvent if the asset moved onto a confirmed label, None otherwise
    """
    if prior is None:
        return None

    if prior.confidence == current.confidence:
        return None

    if not current.confidence.is_confirmed:
        return None

    return FlipEvent(
        asset_id=current.asset_id,
        from_confidence=prior.confidence,
        to_confidence=current.confidence,
        reference_price=current.price,
    )


class FlipDetector:
    """Runs flip detection against a snapshot store.

    The store is the only state: the detector itself keeps nothing
    between cycles, so restarts do not lose or invent flips.
    """

    def __init__(self, store: SnapshotStore, write_retries: int = 2) -> None:
        """Initialize flip detector.

        Args:
            store: Snapshot store
            write_retries: Extra attempts after a failed snapshot write
        """
        self._store = store
        self._write_retries = max(0, write_retries)

    @property
    def store(self) -> SnapshotStore:
        return self._store

    def _read_prior(self, asset_id: str) -> SignalSnapshot | None:
        try:
            return self._store.get(asset_id)
        except Exception as e:
            # Unreadable history is handled as a first observation
            logger.error(f"[FLIP] {asset_id}: snapshot read failed, using as baseline: {e}")
            return None

    def _write(self, asset_id: str, snapshot: SignalSnapshot) -> bool:
        attempts = self._write_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                self._store.put(asset_id, snapshot)
                return True
            except Exception as e:
                logger.error(
                    f"[FLIP] {asset_id}: snapshot write failed "
                    f"(attempt {attempt}/{attempts}): {e}"
                )
        return False

    def process(self, current: AssetSignal) -> FlipEvent | None:
        """Detect a flip for one asset and persist its new snapshot.

        Args:
            current: Signal computed in this cycle

        Returns:
            FlipEvent or None
        """
        asset_id = current.asset_id
        prior = self._read_prior(asset_id)
        event = detect_flip(current, prior)

        if prior is None:
            logger.info(f"[FLIP] {asset_id}: baseline {current.confidence.value}")
        elif event is not None:
            logger.info(
                f"[FLIP] {asset_id}: {event.from_confidence.value} -> "
                f"{event.to_confidence.value} @ {event.reference_price}"
            )
        elif prior.confidence != current.confidence:
            logger.debug(
                f"[FLIP] {asset_id}: {prior.confidence.value} -> "
                f"{current.confidence.value} (not confirmed, not reported)"
            )

        self._write(asset_id, SignalSnapshot.from_signal(current))
        return event
