# backend/lib/consumption_core/classifier.py
from typing import Tuple

from .models import Tier

CRITICAL_THRESHOLD = 3.2
WARNING_THRESHOLD = 2.2

MESSAGES = {
    Tier.CRITICAL: "extremely high consumption",
    Tier.WARNING: "above-normal consumption",
    Tier.EXCELLENT: "consumption within ideal range",
}


def classify(value: float) -> Tuple[Tier, str]:
    """
    Map a kWh reading to its severity tier and a short message.

    critical  : value >= 3.2
    warning   : 2.2 <= value < 3.2
    excellent : value < 2.2
    """
    if value >= CRITICAL_THRESHOLD:
        tier = Tier.CRITICAL
    elif value >= WARNING_THRESHOLD:
        tier = Tier.WARNING
    else:
        tier = Tier.EXCELLENT
    return tier, MESSAGES[tier]
