# tests/test_aggregator.py
import pytest

from backend.lib.consumption_core.aggregator import AlertBuffers, aggregate
from backend.lib.consumption_core.models import Tier
from conftest import make_reading


def test_empty_buffer_gives_no_alert():
    assert aggregate("d1", []) is None


def test_one_of_each_tier_is_critical():
    alert = aggregate("d1", [make_reading(3.3), make_reading(2.5), make_reading(1.0)])
    assert alert.tier == Tier.CRITICAL
    assert alert.message == "critical consumption"
    assert alert.counts == {"critical": 1, "warning": 1, "excellent": 1}


def test_warning_majority_without_critical():
    alert = aggregate("d1", [make_reading(2.5), make_reading(2.8), make_reading(1.0)])
    assert alert.tier == Tier.WARNING
    assert alert.message == "elevated consumption"


def test_all_excellent():
    alert = aggregate("d1", [make_reading(1.0), make_reading(1.5), make_reading(2.0)])
    assert alert.tier == Tier.EXCELLENT
    assert alert.message == "stable consumption"
    assert alert.average_reading == pytest.approx(1.5)
    assert alert.max_reading == 2.0
    assert alert.samples == 3


def test_warning_excellent_tie_is_excellent():
    alert = aggregate("d1", [make_reading(2.5), make_reading(1.0)])
    assert alert.tier == Tier.EXCELLENT


def test_critical_threshold_is_fractional():
    # 15 samples: 5 critical reaches one third
    readings = [make_reading(3.3)] * 5 + [make_reading(1.0)] * 10
    assert aggregate("d1", readings).tier == Tier.CRITICAL

    # 14 samples: 4 critical is below 14 / 3
    readings = [make_reading(3.3)] * 4 + [make_reading(2.5)] * 6 + [make_reading(1.0)] * 4
    assert aggregate("d1", readings).tier == Tier.WARNING


def test_aggregate_is_deterministic():
    readings = [make_reading(v) for v in (3.4, 2.3, 2.9, 0.7, 1.8)]
    first = aggregate("d1", readings)
    second = aggregate("d1", readings)
    assert first == second
    assert sum(first.counts.values()) == len(readings)
    assert first.max_reading == 3.4


def test_buffer_is_most_recent_first_and_capped():
    buffers = AlertBuffers()
    readings = [make_reading(0.5 + i * 0.1) for i in range(16)]
    for r in readings:
        buffers.push("d1", r)

    snapshot = buffers.snapshot("d1")
    assert len(snapshot) == 15
    assert snapshot[0] is readings[-1]
    assert readings[0] not in snapshot
    assert buffers.head("d1") is readings[-1]


def test_buffers_are_created_lazily():
    buffers = AlertBuffers()
    assert buffers.head("d1") is None
    assert buffers.snapshot("d1") == []
    assert buffers.device_ids() == []

    buffers.push("d1", make_reading(1.0))
    assert buffers.device_ids() == ["d1"]


def test_clear_keeps_readings_pushed_after_snapshot():
    buffers = AlertBuffers()
    buffers.push("d1", make_reading(1.0))
    buffers.push("d1", make_reading(2.0))
    snapshot = buffers.snapshot("d1")

    late = make_reading(3.0)
    buffers.push("d1", late)
    buffers.clear("d1", snapshot)

    assert buffers.snapshot("d1") == [late]


def test_clear_everything():
    buffers = AlertBuffers()
    buffers.push("d1", make_reading(1.0))
    buffers.clear("d1")
    buffers.clear("unknown")
    assert buffers.snapshot("d1") == []
    assert buffers.device_ids() == []
    assert len(buffers) == 0
