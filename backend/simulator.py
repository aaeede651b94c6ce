# backend/simulator.py
"""
Consumption simulator engine.

Three independent periodic cycles drive the simulation:

- reading update (every 2 s): new reading per device, classified and
  buffered, written to the devices table
- alert aggregation (every 30 s): one grouped alert per device with
  buffered readings, plus an optional suggestion
- suggestion cleanup (every 24 h): drop suggestions past the retention window

Each cycle is a plain method, so it can be called directly without starting
the timers.
"""
import logging
import random
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from backend.lib.consumption_core.aggregator import AlertBuffers, aggregate
from backend.lib.consumption_core.classifier import classify
from backend.lib.consumption_core.generator import ConsumptionGenerator
from backend.lib.consumption_core.models import AggregatedAlert, Reading, Suggestion
from backend.lib.consumption_core.suggestions import SuggestionGenerator, temporal_context

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass
class SimulatorFeatures:
    record_history: bool = False
    generate_suggestions: bool = False


@dataclass
class SimulatorConfig:
    update_interval: float = 2.0
    alert_interval: float = 30.0
    alert_kickoff: float = 5.0
    cleanup_interval: float = 24 * 60 * 60
    retention_days: float = 7.0
    features: SimulatorFeatures = field(default_factory=SimulatorFeatures)

    @classmethod
    def from_settings(cls, settings) -> "SimulatorConfig":
        return cls(
            update_interval=settings.update_interval,
            alert_interval=settings.alert_interval,
            alert_kickoff=settings.alert_kickoff,
            cleanup_interval=settings.cleanup_interval,
            retention_days=settings.retention_days,
            features=SimulatorFeatures(
                record_history=settings.record_history,
                generate_suggestions=settings.generate_suggestions,
            ),
        )


class PeriodicTask(threading.Thread):
    """
    Runs `func` every `interval` seconds at a fixed rate until `stop_event`
    is set. Exceptions are logged and the schedule carries on.
    """

    def __init__(self, name: str, func: Callable[[], object], interval: float,
                 first_delay: float, stop_event: threading.Event):
        super().__init__(name=name, daemon=True)
        self.func = func
        self.interval = interval
        self.first_delay = first_delay
        self.stop_event = stop_event

    def run(self):
        next_run = time.monotonic() + self.first_delay
        while not self.stop_event.wait(max(0.0, next_run - time.monotonic())):
            try:
                self.func()
            except Exception:
                logger.exception("%s cycle failed", self.name)
            next_run += self.interval
            # a cycle that overran its slot runs again right away, once
            next_run = max(next_run, time.monotonic())


class ConsumptionSimulator:
    def __init__(self, store, config: Optional[SimulatorConfig] = None,
                 rng: Optional[random.Random] = None,
                 clock: Callable[[], datetime] = local_now):
        """
        store: document store (see backend.lib.dynamodb_service.DynamoDBService)
        rng: shared source of randomness for readings and suggestions
        clock: returns the current (timezone-aware) time
        """
        self.store = store
        self.config = config or SimulatorConfig()
        rng = rng or random.Random()
        self.generator = ConsumptionGenerator(rng)
        self.suggester = SuggestionGenerator(rng)
        self.buffers = AlertBuffers()
        self.clock = clock

        self._stop = threading.Event()
        self._tasks: List[PeriodicTask] = []

    # -------------------------------------------------------------------------
    # Reading update cycle
    # -------------------------------------------------------------------------

    def update_device(self, device_id: str) -> Optional[Reading]:
        """
        Generate, store and buffer one reading for a device.

        Returns None if the store rejected the update; nothing is buffered
        in that case.
        """
        value = self.generator.generate(self.buffers.head(device_id))
        tier, message = classify(value)

        if not self.store.update_reading(device_id, value):
            logger.warning("Reading for %s not recorded this cycle", device_id)
            return None

        if self.config.features.record_history:
            self.store.put_history(device_id, value)

        reading = Reading(value=value, tier=tier, message=message, created_at=self.clock())
        self.buffers.push(device_id, reading)
        logger.info("%s -> %.2f kWh -> %s", device_id, value, tier.value)
        return reading

    def run_update_cycle(self) -> List[Reading]:
        readings = []
        for device_id in self.store.list_device_ids():
            try:
                reading = self.update_device(device_id)
            except Exception:
                logger.exception("Error updating consumption for %s", device_id)
                continue
            if reading is not None:
                readings.append(reading)
        return readings

    # -------------------------------------------------------------------------
    # Aggregation cycle
    # -------------------------------------------------------------------------

    def process_device_alerts(self, device_id: str) -> Optional[AggregatedAlert]:
        """
        Aggregate a device's buffer and store the grouped alert.

        The aggregated readings leave the buffer only once the alert is
        stored; on a failed write they stay for the next cycle.
        """
        readings = self.buffers.snapshot(device_id)
        alert = aggregate(device_id, readings)
        if alert is None:
            return None

        if not self.store.put_alert(alert):
            logger.warning("Alert for %s not stored, keeping %d readings buffered",
                           device_id, len(readings))
            return None

        self.buffers.clear(device_id, readings)
        logger.info("Alert for %s: %s (%s), average %.2f kWh over %d samples",
                    device_id, alert.tier.value, alert.message,
                    alert.average_reading, alert.samples)

        if self.config.features.generate_suggestions and self.suggester.should_suggest(alert.tier):
            self.create_suggestion(alert)
        return alert

    def create_suggestion(self, alert: AggregatedAlert) -> Optional[Suggestion]:
        now = self.clock()
        suggestion = self.suggester.suggest(
            alert.device_id, alert.tier, alert.average_reading,
            temporal_context(now), created_at=now
        )
        if not self.store.put_suggestion(suggestion):
            return None
        logger.info("Suggestion for %s: %s", alert.device_id, suggestion.short_message)
        return suggestion

    def run_aggregation_cycle(self) -> List[AggregatedAlert]:
        alerts = []
        device_ids = self.buffers.device_ids()
        logger.info("Processing grouped alerts for %d devices", len(device_ids))

        for device_id in device_ids:
            try:
                alert = self.process_device_alerts(device_id)
            except Exception:
                logger.exception("Error processing alerts for %s", device_id)
                continue
            if alert is not None:
                alerts.append(alert)
        return alerts

    # -------------------------------------------------------------------------
    # Retention sweep
    # -------------------------------------------------------------------------

    def run_retention_sweep(self) -> int:
        cutoff = self.clock() - timedelta(days=self.config.retention_days)
        deleted = self.store.delete_suggestions_older_than(cutoff)
        logger.info("Removed %d suggestions older than %s", deleted, cutoff.isoformat())
        return deleted

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------

    def start(self) -> None:
        if self._tasks:
            return
        self._stop.clear()
        self._tasks = [
            PeriodicTask('reading-update', self.run_update_cycle,
                         self.config.update_interval, 0.0, self._stop),
            PeriodicTask('alert-aggregation', self.run_aggregation_cycle,
                         self.config.alert_interval, self.config.alert_kickoff, self._stop),
        ]
        if self.config.features.generate_suggestions:
            self._tasks.append(
                PeriodicTask('suggestion-cleanup', self.run_retention_sweep,
                             self.config.cleanup_interval, self.config.cleanup_interval,
                             self._stop)
            )
        for task in self._tasks:
            task.start()
        logger.info("Simulator started: readings every %ss, alerts every %ss",
                    self.config.update_interval, self.config.alert_interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        for task in self._tasks:
            task.join(timeout)
        self._tasks = []
        logger.info("Simulator stopped")

    def wait(self) -> None:
        """Block until stop() is called; wakes up regularly so Ctrl-C gets through."""
        while not self._stop.wait(1.0):
            pass
