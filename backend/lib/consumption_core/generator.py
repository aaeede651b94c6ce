# backend/lib/consumption_core/generator.py
import random
from typing import Dict, Optional

from .classifier import CRITICAL_THRESHOLD, WARNING_THRESHOLD, classify
from .models import Reading, Tier

MIN_READING = 0.5
MAX_READING = 3.5

# target mix: 25% critical, 35% warning, 40% excellent
DIST_CRITICAL = 0.25
DIST_WARNING = 0.35

JITTER = 0.05
TREND_PROBABILITY = 0.2
TREND_STEP = 0.15


def clamp(value: float, low: float = MIN_READING, high: float = MAX_READING) -> float:
    return max(low, min(high, value))


class ConsumptionGenerator:
    def __init__(self, rng: Optional[random.Random] = None):
        """
        rng: source of randomness; pass a seeded random.Random for
        reproducible sequences.
        """
        self.rng = rng or random.Random()

    def baseline(self) -> float:
        """
        Draw an independent reading following the target tier mix.
        """
        r = self.rng.random()
        if r < DIST_CRITICAL:
            value = self.rng.uniform(CRITICAL_THRESHOLD, MAX_READING)
        elif r < DIST_CRITICAL + DIST_WARNING:
            value = self.rng.uniform(WARNING_THRESHOLD, CRITICAL_THRESHOLD)
        else:
            value = self.rng.uniform(MIN_READING, WARNING_THRESHOLD)

        value += self.rng.uniform(-JITTER, JITTER)
        return round(clamp(value), 5)

    def generate(self, previous: Optional[Reading] = None) -> float:
        """
        Produce the next reading for a device. With a previous reading the
        value follows it 20% of the time (small random step), otherwise it
        falls back to the baseline draw.
        """
        if previous is None:
            return self.baseline()

        if self.rng.random() < TREND_PROBABILITY:
            step = self.rng.uniform(-TREND_STEP, TREND_STEP)
            return round(clamp(previous.value + step), 5)
        return self.baseline()


def tier_distribution(generator: ConsumptionGenerator, iterations: int = 1000) -> Dict[str, int]:
    """
    Classify `iterations` baseline draws and count them per tier.
    """
    counts = {tier.value: 0 for tier in Tier}
    for _ in range(iterations):
        tier, _message = classify(generator.baseline())
        counts[tier.value] += 1
    return counts
