# backend/lib/consumption_core/aggregator.py
import threading
from collections import deque
from typing import Deque, Dict, List, Optional, Sequence

from .models import AggregatedAlert, Reading, Tier

MAX_BUFFERED_READINGS = 15

ALERT_MESSAGES = {
    Tier.CRITICAL: "critical consumption",
    Tier.WARNING: "elevated consumption",
    Tier.EXCELLENT: "stable consumption",
}


class AlertBuffers:
    """
    Per-device buffers of classified readings, most recent first.

    Each buffer keeps at most `capacity` readings; pushing onto a full
    buffer drops the oldest one. All access goes through a lock because the
    update and aggregation cycles run on separate threads.
    """

    def __init__(self, capacity: int = MAX_BUFFERED_READINGS):
        self.capacity = capacity
        self._buffers: Dict[str, Deque[Reading]] = {}
        self._lock = threading.Lock()

    def push(self, device_id: str, reading: Reading) -> None:
        with self._lock:
            buffer = self._buffers.get(device_id)
            if buffer is None:
                buffer = deque(maxlen=self.capacity)
                self._buffers[device_id] = buffer
            buffer.appendleft(reading)

    def head(self, device_id: str) -> Optional[Reading]:
        with self._lock:
            buffer = self._buffers.get(device_id)
            return buffer[0] if buffer else None

    def snapshot(self, device_id: str) -> List[Reading]:
        with self._lock:
            return list(self._buffers.get(device_id, ()))

    def device_ids(self) -> List[str]:
        """Devices that currently hold at least one reading."""
        with self._lock:
            return [device_id for device_id, buffer in self._buffers.items() if buffer]

    def clear(self, device_id: str, readings: Optional[Sequence[Reading]] = None) -> None:
        """
        Empty a device's buffer. When `readings` is given only those exact
        reading objects are removed, so anything pushed after a snapshot
        was taken is kept.
        """
        with self._lock:
            buffer = self._buffers.get(device_id)
            if buffer is None:
                return
            if readings is None:
                buffer.clear()
                return
            consumed = {id(r) for r in readings}
            kept = [r for r in buffer if id(r) not in consumed]
            buffer.clear()
            buffer.extend(kept)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(buffer) for buffer in self._buffers.values())


def predominant_tier(counts: Dict[str, int], total: int) -> Tier:
    # critical wins as soon as it reaches a third of the samples
    if counts[Tier.CRITICAL.value] >= total / 3:
        return Tier.CRITICAL
    if counts[Tier.WARNING.value] > counts[Tier.EXCELLENT.value]:
        return Tier.WARNING
    return Tier.EXCELLENT


def aggregate(device_id: str, readings: Sequence[Reading]) -> Optional[AggregatedAlert]:
    """
    Summarise a buffer of readings into a single grouped alert.

    Returns None for an empty buffer.
    """
    if not readings:
        return None

    counts = {tier.value: 0 for tier in Tier}
    for r in readings:
        counts[r.tier.value] += 1

    total = len(readings)
    tier = predominant_tier(counts, total)
    values = [r.value for r in readings]

    return AggregatedAlert(
        device_id=device_id,
        tier=tier,
        message=ALERT_MESSAGES[tier],
        average_reading=sum(values) / total,
        max_reading=max(values),
        counts=counts,
        samples=total,
    )
