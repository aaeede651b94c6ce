# backend/lib/consumption_core/suggestions.py
"""
Human-readable suggestions attached to grouped alerts.

A suggestion is a short headline plus a longer description picked at random
from a pool per tier. Most of the time a practical tip is appended, chosen
from general advice plus whatever applies to the current season, time of
day and day of week.
"""
import random
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from .models import Suggestion, TemporalContext, Tier

TIP_PROBABILITY = 0.7
EXCELLENT_SUGGESTION_PROBABILITY = 1 / 3
TIP_LABEL = "Tip:"

# (short message, description); "{average}" is replaced by the average reading
MESSAGES = {
    Tier.CRITICAL: [
        (
            "Critical consumption alert!",
            "Your energy consumption has reached critical levels. This could point to a "
            "problem with your wiring or a faulty appliance.",
        ),
        (
            "Excessive consumption detected",
            "Your current consumption of {average} kWh is well above the recommended level. "
            "Check high-draw appliances such as air conditioners or heaters.",
        ),
        (
            "Consumption spike detected!",
            "An abnormal spike in your energy consumption was detected. Check whether several "
            "appliances are running at once or one of them is failing.",
        ),
        (
            "Possible electrical leak",
            "Consumption held at critical levels could indicate an electrical leak. Consider "
            "asking an electrician to inspect your installation.",
        ),
        (
            "Overload risk",
            "The current consumption level puts your electrical installation at risk. Spread "
            "out the use of your appliances to avoid overloads.",
        ),
    ],
    Tier.WARNING: [
        (
            "Consumption above average",
            "Your consumption is above the recommended average. Consider switching off "
            "devices you are not using.",
        ),
        (
            "Optimise your energy use",
            "You have been consuming {average} kWh on average. Check fridges, televisions on "
            "standby or chargers left plugged in.",
        ),
        (
            "Gradual increase detected",
            "We noticed a gradual increase in your energy consumption. This may be due to "
            "heavy use of certain appliances.",
        ),
        (
            "Consider off-peak hours",
            "Your consumption is elevated. Running appliances during low-demand hours "
            "(22:00-08:00) can help reduce costs.",
        ),
        (
            "Keep an eye on consumption",
            "Your home is using more energy than usual. Check whether any appliance is "
            "drawing more than expected.",
        ),
    ],
    Tier.EXCELLENT: [
        (
            "Excellent energy consumption!",
            "Your consumption stays at optimal levels. Keep it up to maintain an efficient home!",
        ),
        (
            "Efficient consumption detected",
            "With an average consumption of {average} kWh you are using energy efficiently. "
            "Congratulations!",
        ),
        (
            "Remarkable energy savings",
            "Your consumption pattern shows responsible energy use. That means lower bills "
            "and a smaller environmental impact.",
        ),
    ],
}

GENERAL_TIPS = [
    "Replacing traditional bulbs with LEDs can cut lighting consumption by up to 80%.",
    "Unplugging appliances instead of leaving them on standby can save up to 10% on your bill.",
    "Appliances with an A+++ energy label use up to 80% less energy.",
    "Regular maintenance keeps your appliances efficient and reduces consumption.",
]

SUMMER_TIPS = [
    "Keeping the air conditioner at 24°C is economical and comfortable.",
    "Using fans instead of air conditioning can significantly reduce consumption.",
    "Closing blinds during the sunniest hours reduces the need for cooling.",
    "Programming the air conditioner to switch off overnight can bring significant savings.",
]

WINTER_TIPS = [
    "Keeping the heating between 19 and 21°C gives comfort with moderate consumption.",
    "Draught excluders on doors and windows stop heat loss and reduce consumption.",
    "Programming the heating to turn down overnight saves energy.",
    "Airing the house for 10 minutes a day renews the air without losing much heat.",
]

NIGHT_TIPS = [
    "Take advantage of night tariffs to run washing machines and dishwashers.",
    "Dimming the lights in unused rooms lowers consumption.",
    "Timers that switch devices off overnight avoid unnecessary consumption.",
]

WEEKEND_TIPS = [
    "Make the most of weekend daylight to reduce artificial lighting.",
    "If you are going away for the weekend, remember to unplug the main appliances.",
    "The weekend is a good time to review the schedules of your smart devices.",
]


def is_summer(now: datetime) -> bool:
    return 6 <= now.month <= 9


def is_winter(now: datetime) -> bool:
    return now.month == 12 or now.month <= 3


def is_night(now: datetime) -> bool:
    return now.hour >= 20 or now.hour <= 6


def is_weekend(now: datetime) -> bool:
    # Monday == 0 ... Saturday == 5, Sunday == 6
    return now.weekday() >= 5


def temporal_context(now: datetime) -> TemporalContext:
    return TemporalContext(
        is_summer=is_summer(now),
        is_winter=is_winter(now),
        is_night=is_night(now),
        is_weekend=is_weekend(now),
    )


def tip_pool(context: TemporalContext) -> List[str]:
    pool = list(GENERAL_TIPS)
    if context.is_summer:
        pool.extend(SUMMER_TIPS)
    if context.is_winter:
        pool.extend(WINTER_TIPS)
    if context.is_night:
        pool.extend(NIGHT_TIPS)
    if context.is_weekend:
        pool.extend(WEEKEND_TIPS)
    return pool


class SuggestionGenerator:
    def __init__(self, rng: Optional[random.Random] = None,
                 id_factory: Optional[Callable[[], str]] = None):
        self.rng = rng or random.Random()
        self.id_factory = id_factory

    def should_suggest(self, tier: Tier) -> bool:
        """
        Critical and warning alerts always get a suggestion; excellent ones
        only about one time in three.
        """
        if tier in (Tier.CRITICAL, Tier.WARNING):
            return True
        return self.rng.random() < EXCELLENT_SUGGESTION_PROBABILITY

    def pick_message(self, tier: Tier, average_reading: float) -> Tuple[str, str]:
        short, description = self.rng.choice(MESSAGES[tier])
        return short, description.format(average=f"{average_reading:.2f}")

    def suggest(self, device_id: str, tier: Tier, average_reading: float,
                context: TemporalContext, created_at: Optional[datetime] = None) -> Suggestion:
        short, description = self.pick_message(tier, average_reading)

        if self.rng.random() < TIP_PROBABILITY:
            tip = self.rng.choice(tip_pool(context))
            description = f"{description}\n\n{TIP_LABEL} {tip}"

        return Suggestion(
            device_id=device_id,
            tier=tier,
            short_message=short,
            description=description,
            related_reading=average_reading,
            context=context,
            read=False,
            suggestion_id=self.id_factory() if self.id_factory else None,
            created_at=created_at,
        )
