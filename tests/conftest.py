# tests/conftest.py
from datetime import datetime, timezone

import pytest

from backend.lib.consumption_core.classifier import classify
from backend.lib.consumption_core.models import Reading


class FakeStore:
    """In-memory stand-in for DynamoDBService."""

    def __init__(self, device_ids=(), fail_updates=(), fail_alerts=False):
        self.readings = {device_id: None for device_id in device_ids}
        self.fail_updates = set(fail_updates)
        self.fail_alerts = fail_alerts
        self.history = []
        self.alerts = []
        self.suggestions = []
        self.cutoffs = []

    def list_device_ids(self):
        return list(self.readings)

    def update_reading(self, device_id, reading):
        if device_id in self.fail_updates:
            return False
        self.readings[device_id] = reading
        return True

    def put_history(self, device_id, reading):
        self.history.append((device_id, reading))
        return True

    def put_alert(self, alert):
        if self.fail_alerts:
            return False
        self.alerts.append(alert)
        return True

    def put_suggestion(self, suggestion):
        self.suggestions.append(suggestion)
        return True

    def delete_suggestions_older_than(self, cutoff):
        self.cutoffs.append(cutoff)
        return 0


class ScriptedRandom:
    """
    Replays fixed values for random() and uniform(); choice() always picks
    the element at `choice_index`.
    """

    def __init__(self, randoms=(), uniforms=(), choice_index=0):
        self.randoms = list(randoms)
        self.uniforms = list(uniforms)
        self.choice_index = choice_index

    def random(self):
        return self.randoms.pop(0)

    def uniform(self, a, b):
        return self.uniforms.pop(0)

    def choice(self, seq):
        return seq[self.choice_index]


def make_reading(value, created_at=None):
    tier, message = classify(value)
    return Reading(
        value=value,
        tier=tier,
        message=message,
        created_at=created_at or datetime(2025, 11, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def fake_store():
    return FakeStore(device_ids=["d1"])
